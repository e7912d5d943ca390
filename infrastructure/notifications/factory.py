"""
Notification Service Factory
============================

Creates the notification backend named by INFRASTRUCTURE["NOTIFICATION_BACKEND"].
"""

import logging
from typing import Literal

from django.conf import settings

from .email_service import EmailNotificationService
from .interface import NotificationServiceInterface
from .mock_service import MockNotificationService


logger = logging.getLogger(__name__)

NotificationBackend = Literal["email", "mock"]


class NotificationFactory:
    @staticmethod
    def create(backend: NotificationBackend | None = None) -> NotificationServiceInterface:
        """
        Create a notification service instance.

        Raises:
            ValueError: If backend type is invalid
        """
        backend_type = backend or getattr(settings, "INFRASTRUCTURE", {}).get("NOTIFICATION_BACKEND", "email")

        logger.info(f"Creating notification backend: {backend_type}")

        if backend_type == "email":
            return EmailNotificationService()
        elif backend_type == "mock":
            return MockNotificationService()
        else:
            raise ValueError(f"Invalid notification backend: {backend_type}. Must be 'email' or 'mock'")
