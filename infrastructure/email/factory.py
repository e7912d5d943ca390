"""
Email Service Factory
======================

Factory pattern for creating email service instances based on configuration.
"""

import logging
from typing import Literal

from django.conf import settings

from .interface import EmailServiceInterface
from .mock_service import MockEmailService
from .smtp_service import SMTPEmailService


logger = logging.getLogger(__name__)

EmailBackend = Literal["smtp", "mock"]


class EmailFactory:
    """
    Factory for creating email service instances.

    Usage:
        # In settings.py
        INFRASTRUCTURE = {"EMAIL_BACKEND_TYPE": "smtp"}  # or "mock" for testing

        # In your code
        email_service = EmailFactory.create()
    """

    @staticmethod
    def create(backend: EmailBackend | None = None) -> EmailServiceInterface:
        """
        Create an email service instance.

        Args:
            backend: Email backend type ('smtp' or 'mock').
                     If None, reads INFRASTRUCTURE["EMAIL_BACKEND_TYPE"]

        Raises:
            ValueError: If backend type is invalid
        """
        backend_type = backend or getattr(settings, "INFRASTRUCTURE", {}).get("EMAIL_BACKEND_TYPE", "smtp")

        logger.info(f"Creating email service backend: {backend_type}")

        if backend_type == "smtp":
            return SMTPEmailService()
        elif backend_type == "mock":
            return MockEmailService()
        else:
            raise ValueError(f"Invalid email backend: {backend_type}. Must be 'smtp' or 'mock'")
