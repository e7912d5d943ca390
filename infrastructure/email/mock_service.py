"""
Mock Email Service
==================

Mock implementation of EmailServiceInterface for testing.
Stores messages in memory instead of sending them.
"""

import logging
from collections import deque
from typing import Deque, List, Optional

from .interface import EmailMessage, EmailServiceInterface

logger = logging.getLogger(__name__)


class MockEmailService(EmailServiceInterface):
    """
    Mock email service for testing and development.

    Failures can be queued with ``fail_next`` to exercise retry handling.
    """

    def __init__(self):
        self.sent_messages: List[EmailMessage] = []
        self.attempts = 0
        self._failures: Deque[Exception] = deque()

    def fail_next(self, *exceptions: Exception) -> None:
        """Queue exceptions to raise on the next sends, one per send."""
        self._failures.extend(exceptions)

    def send(self, message: EmailMessage) -> bool:
        self.attempts += 1
        if self._failures:
            error = self._failures.popleft()
            logger.info(f"[MOCK EMAIL] Simulated failure for {message.subject}: {error}")
            raise error

        logger.info(f"[MOCK EMAIL] To: {message.to}, Subject: {message.subject}")
        self.sent_messages.append(message)
        return True

    def send_bulk(self, messages: List[EmailMessage]) -> int:
        logger.info(f"[MOCK EMAIL] Bulk send: {len(messages)} emails")
        return sum(1 for message in messages if self.send(message))

    def clear_sent_messages(self):
        """Forget sent messages, attempts and queued failures."""
        self.sent_messages.clear()
        self._failures.clear()
        self.attempts = 0

    def get_last_message(self) -> Optional[EmailMessage]:
        return self.sent_messages[-1] if self.sent_messages else None
