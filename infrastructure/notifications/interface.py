"""
Notification Service Interface
===============================

Abstract base class for delivering templated messages to a recipient.

A notification is addressed by recipient, template name and template data.
Delivery failures are either transient (worth retrying) or rejected (the
same request will never succeed).
"""

from abc import ABC, abstractmethod
from typing import Any, Dict


class NotificationServiceInterface(ABC):
    """
    Abstract interface for notification delivery.

    Concrete implementations:
        - EmailNotificationService: Renders the template and sends it by email
        - MockNotificationService: Records notifications in memory
    """

    @abstractmethod
    def send(self, to: str, template: str, data: Dict[str, Any]) -> bool:
        """
        Deliver one notification.

        Args:
            to: Recipient address
            template: Template name (e.g. "order_confirmation")
            data: Template context

        Returns:
            True once the message was accepted for delivery

        Raises:
            NotificationTransientException: Temporary failure, may succeed later
            NotificationRejectedException: The request can never succeed
        """
        pass


class NotificationException(Exception):
    """Base exception for notification delivery."""

    pass


class NotificationTransientException(NotificationException):
    """Temporary delivery failure."""

    pass


class NotificationRejectedException(NotificationException):
    """Permanent delivery failure."""

    pass
