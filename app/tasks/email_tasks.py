from celery import Task
from celery.utils.log import get_task_logger
from email.message import EmailMessage
from typing import Optional

from app.core.celery_app import celery_app
from app.core.config import settings
from app.utils.email import _send_email_smtp

logger = get_task_logger(__name__)


# -------------------------------
# Base Task (Retry-safe)
# -------------------------------
class EmailTask(Task):
    """
    Base email task with retries and backoff.
    Prevents email loss on temporary SMTP failures.
    """
    autoretry_for = (Exception,)
    retry_kwargs = {"max_retries": 3}
    retry_backoff = True
    retry_backoff_max = 600  # 10 minutes
    retry_jitter = True
    acks_late = True  # retry if worker crashes


# -------------------------------
# Helper: Build Email
# -------------------------------
def build_email(
    *,
    to: str,
    subject: str,
    text: str,
    html: Optional[str] = None,
    from_email: Optional[str] = None,
) -> EmailMessage:
    msg = EmailMessage()
    msg["Subject"] = subject
    msg["From"] = from_email or f"{settings.EMAILS_FROM_NAME} <{settings.EMAILS_FROM_EMAIL}>"
    msg["To"] = to
    msg.set_content(text)

    if html:
        msg.add_alternative(html, subtype="html")

    return msg


# -------------------------------
# Generic Email
# -------------------------------
@celery_app.task(base=EmailTask, bind=True)
def send_email_task(self, to_email: str, subject: str, body: str, html: Optional[str] = None):
    msg = build_email(
        to=to_email,
        subject=subject,
        text=body,
        html=html,
        from_email=settings.EMAILS_FROM_ORDERS or None,
    )

    _send_email_smtp(msg)
    logger.info("email_sent to=%s subject=%s", to_email, subject)
