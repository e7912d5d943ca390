"""
Email Service Abstraction Layer
================================

Provides a unified interface for email operations across different backends.
"""

from .factory import EmailFactory
from .interface import (
    EmailDeliveryException,
    EmailException,
    EmailMessage,
    EmailRejectedException,
    EmailServiceInterface,
)
from .mock_service import MockEmailService
from .smtp_service import SMTPEmailService

__all__ = [
    "EmailServiceInterface",
    "EmailMessage",
    "EmailException",
    "EmailDeliveryException",
    "EmailRejectedException",
    "SMTPEmailService",
    "MockEmailService",
    "EmailFactory",
]
