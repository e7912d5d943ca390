"""
Email Service Interface
========================

Abstract base class defining the contract for sending email.

Failures are split in two: ``EmailDeliveryException`` for problems that may
go away on their own (SMTP server down, connection reset, timeout) and
``EmailRejectedException`` for messages the server will never accept
(refused recipient, malformed headers).
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class EmailMessage:
    """
    Represents an email message.

    Attributes:
        subject: Email subject line
        body: Email body (plain text)
        to: List of recipient email addresses
        from_email: Sender email address (optional, uses default if None)
        html_body: HTML version of email body (optional)
        reply_to: Reply-to addresses
    """

    subject: str
    body: str
    to: List[str]
    from_email: Optional[str] = None
    html_body: Optional[str] = None
    reply_to: List[str] = field(default_factory=list)


class EmailServiceInterface(ABC):
    """
    Abstract interface for email operations.

    Concrete implementations:
        - SMTPEmailService: Django's configured email backend
        - MockEmailService: Records messages in memory
    """

    @abstractmethod
    def send(self, message: EmailMessage) -> bool:
        """
        Send a single email message.

        Args:
            message: EmailMessage to send

        Returns:
            True once the backend accepted the message

        Raises:
            EmailDeliveryException: Temporary failure, may succeed later
            EmailRejectedException: The message will never be accepted
        """
        pass

    @abstractmethod
    def send_bulk(self, messages: List[EmailMessage]) -> int:
        """
        Send several messages over one connection.

        Returns:
            Number of emails accepted
        """
        pass


class EmailException(Exception):
    """Base exception for email operations."""

    pass


class EmailDeliveryException(EmailException):
    """Temporary delivery failure."""

    pass


class EmailRejectedException(EmailException):
    """Permanent delivery failure."""

    pass
