import logging
import smtplib
from email.message import EmailMessage
from typing import Optional
from app.core.config import settings

logger = logging.getLogger(__name__)


def _send_email_smtp(msg: EmailMessage) -> None:
    """
    Send an email message over SMTP.
    This is intended to be called from Celery workers, not request handlers.
    """
    with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT, timeout=30) as server:
        server.ehlo()
        server.starttls()
        server.ehlo()
        if settings.SMTP_USER and settings.SMTP_PASSWORD:
            server.login(settings.SMTP_USER, settings.SMTP_PASSWORD)
        server.send_message(msg)


def send_email_async(to_email: str, subject: str, body: str, html: Optional[str] = None) -> bool:
    """
    Queue email for asynchronous sending via Celery.

    Returns True when the task was queued. Failures are logged and never
    propagate into the request that triggered the email.
    """
    try:
        from app.tasks.email_tasks import send_email_task

        result = send_email_task.delay(to_email, subject, body, html)

        logger.info(
            "Email queued for sending",
            extra={
                "to": to_email,
                "subject": subject,
                "task_id": result.id
            }
        )
        return True

    except Exception as exc:
        logger.exception(
            "Failed to queue email task",
            extra={
                "to": to_email,
                "subject": subject,
                "error": str(exc)
            }
        )
        return False


def send_checkout_summary_email(to_email: str, lines, totals, coupon_code: Optional[str] = None) -> bool:
    """
    Send the checkout summary email using the HTML template (non-blocking via Celery).

    Args:
        to_email: Recipient email address
        lines: Cart line items as returned in the cart snapshot
        totals: CartTotals for the cart
        coupon_code: Applied coupon, if any
    """
    from app.utils.email_templates import checkout_summary_template

    subject = "Your Order Summary"
    body = f"Your cart total is ₹{totals.total:,.2f}."
    html = checkout_summary_template(lines, totals, coupon_code)

    queued = send_email_async(to_email, subject, body, html)
    if queued:
        logger.info(
            "Checkout summary email queued",
            extra={"recipient": to_email, "total": totals.total}
        )
    return queued
