"""
SMTP Email Service
==================

Concrete implementation of EmailServiceInterface using Django's email backend.
Works with whatever EMAIL_BACKEND is configured (SMTP, console, locmem, ...).
"""

import logging
import smtplib
import socket
from typing import List

from django.conf import settings
from django.core.mail import BadHeaderError, EmailMultiAlternatives, get_connection

from utils.logging_utils import mask_value

from .interface import EmailDeliveryException, EmailMessage, EmailRejectedException, EmailServiceInterface


logger = logging.getLogger(__name__)

# smtplib errors after which the same message will never be accepted
PERMANENT_SMTP_ERRORS = (
    smtplib.SMTPRecipientsRefused,
    smtplib.SMTPSenderRefused,
    smtplib.SMTPNotSupportedError,
)


class SMTPEmailService(EmailServiceInterface):
    """
    Django email service implementation.

    Configuration (in settings.py):
        EMAIL_BACKEND: Django email backend class
        EMAIL_HOST / EMAIL_PORT / EMAIL_HOST_USER / EMAIL_HOST_PASSWORD / EMAIL_USE_TLS
        EMAIL_TIMEOUT: Socket timeout in seconds
        DEFAULT_FROM_EMAIL: Default sender address
    """

    def __init__(self):
        """Initialize SMTP email service."""
        self.default_from = getattr(settings, "DEFAULT_FROM_EMAIL", "noreply@foremade.com")

    def _build(self, message: EmailMessage, connection=None) -> EmailMultiAlternatives:
        email = EmailMultiAlternatives(
            subject=message.subject,
            body=message.body,
            from_email=message.from_email or self.default_from,
            to=message.to,
            reply_to=message.reply_to or None,
            connection=connection,
        )
        if message.html_body:
            email.attach_alternative(message.html_body, "text/html")
        return email

    def send(self, message: EmailMessage) -> bool:
        """
        Send a single email.

        Raises:
            EmailRejectedException: Recipient or sender refused, or bad headers
            EmailDeliveryException: Connection, timeout or other SMTP failure
        """
        recipients = ", ".join(mask_value(address) for address in message.to)
        try:
            num_sent = self._build(message).send(fail_silently=False)
        except (BadHeaderError, *PERMANENT_SMTP_ERRORS) as e:
            logger.error(f"Email to {recipients} rejected: {e}")
            raise EmailRejectedException(f"Email rejected: {e}") from e
        except (smtplib.SMTPException, socket.timeout, OSError) as e:
            logger.warning(f"Email to {recipients} failed: {e}")
            raise EmailDeliveryException(f"Email delivery failed: {e}") from e

        success = num_sent > 0
        if success:
            logger.info(f"Email sent successfully to {recipients}")
        else:
            logger.warning(f"Email backend accepted nothing for {recipients}")
        return success

    def send_bulk(self, messages: List[EmailMessage]) -> int:
        """Send several messages over a single backend connection."""
        try:
            connection = get_connection(fail_silently=False)
            num_sent = connection.send_messages([self._build(message, connection) for message in messages])
        except (smtplib.SMTPException, socket.timeout, OSError) as e:
            logger.error(f"Failed to send bulk emails: {e}")
            raise EmailDeliveryException(f"Bulk email send failed: {e}") from e

        logger.info(f"Bulk email: sent {num_sent} of {len(messages)} emails")
        return num_sent or 0
