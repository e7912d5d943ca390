"""
Notification Delivery Layer
===========================

Templated, per-recipient notifications over a pluggable channel.
"""

from .email_service import EmailNotificationService
from .factory import NotificationFactory
from .interface import (
    NotificationException,
    NotificationRejectedException,
    NotificationServiceInterface,
    NotificationTransientException,
)
from .mock_service import MockNotificationService

__all__ = [
    "NotificationServiceInterface",
    "NotificationException",
    "NotificationTransientException",
    "NotificationRejectedException",
    "EmailNotificationService",
    "MockNotificationService",
    "NotificationFactory",
]
