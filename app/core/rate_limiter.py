from slowapi import Limiter
from slowapi.util import get_remote_address

from app.core.config import settings

# Workers share counters through Redis in production.
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=["300/minute"],
    storage_uri=settings.REDIS_URL if settings.ENVIRONMENT == "production" else "memory://",
)
