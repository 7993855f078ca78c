import hmac
import structlog
from fastapi import Depends, HTTPException, Request
from sqlalchemy.orm import Session

from app.core.config import settings
from app.db.session import get_db
from app.services.cart_service import CartStore

logger = structlog.get_logger()

ADMIN_KEY_HEADER = "X-Admin-Key"


def require_admin(request: Request) -> None:
    provided_key = request.headers.get(ADMIN_KEY_HEADER, "")
    client_ip = request.client.host if request.client else None
    action_name = f"{request.method} {request.url.path}"

    if not provided_key or not hmac.compare_digest(provided_key, settings.ADMIN_API_KEY):
        logger.warning(
            "admin_access_denied",
            action=action_name,
            client_ip=client_ip,
        )
        raise HTTPException(
            status_code=403,
            detail="Admin access required",
        )

    logger.info(
        "admin_action",
        action=action_name,
        client_ip=client_ip,
    )


def get_cart_store(token: str, db: Session = Depends(get_db)) -> CartStore:
    """Resolve the ``{token}`` path parameter to the shopper's cart."""
    return CartStore.load(db, token)
