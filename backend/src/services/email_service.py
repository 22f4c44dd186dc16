"""
Outbound email through the Resend HTTP API.

Sending never raises: every failure is logged and reported as False, so
callers can treat notifications as best-effort.
"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Optional, Union

import httpx

from core.config import RESEND_API_KEY, RESEND_API_URL, EMAIL_FROM, EMAIL_TIMEOUT_SECONDS

logger = logging.getLogger(__name__)


class EmailService:
    """Service for sending transactional email."""

    @staticmethod
    def is_enabled() -> bool:
        return bool(RESEND_API_KEY)

    @staticmethod
    def send_email(to: str, subject: str, html: str, text: Optional[str] = None) -> bool:
        """
        Send a single email.

        Returns:
            True if the provider accepted the message, False otherwise
        """
        if not EmailService.is_enabled():
            logger.info(f"📭 Email disabled (no RESEND_API_KEY), skipping message to {to}")
            return False
        if not to:
            logger.warning("Email recipient missing, skipping message")
            return False

        payload: dict[str, object] = {
            "from": EMAIL_FROM,
            "to": [to],
            "subject": subject,
            "html": html,
        }
        if text:
            payload["text"] = text

        headers = {
            "Authorization": f"Bearer {RESEND_API_KEY}",
            "Content-Type": "application/json",
        }

        try:
            with httpx.Client(timeout=EMAIL_TIMEOUT_SECONDS) as client:
                response = client.post(RESEND_API_URL, headers=headers, json=payload)
                response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error(f"❌ Email provider rejected message to {to}: {e.response.status_code} {e.response.text}")
            return False
        except httpx.HTTPError as e:
            logger.error(f"❌ Failed to send email to {to}: {e}")
            return False

        logger.info(f"📧 Email sent to {to}: {subject}")
        return True

    @staticmethod
    def send_commission_notification(
        email: Optional[str],
        name: str,
        amount: Union[Decimal, float],
        period: Union[datetime, str],
    ) -> bool:
        """
        Notify a doctor that a commission has been paid.

        Args:
            email: Doctor's email address
            name: Doctor's name
            amount: Commission amount paid
            period: Calculation date of the commission (or a period label)
        """
        if not email:
            logger.info(f"Doctor {name} has no email, skipping commission notification")
            return False

        period_label = period.strftime("%d %b %Y") if isinstance(period, datetime) else str(period)
        amount_label = f"{Decimal(str(amount)):,.2f}"
        subject = f"Commission payment of {amount_label} processed"
        html = (
            f"<p>Dear Dr. {name},</p>"
            f"<p>Your referral commission of <strong>{amount_label}</strong> "
            f"for {period_label} has been paid.</p>"
            "<p>Thank you for your continued referrals.</p>"
        )
        text = (
            f"Dear Dr. {name},\n\n"
            f"Your referral commission of {amount_label} for {period_label} has been paid.\n"
        )
        return EmailService.send_email(email, subject, html, text)
