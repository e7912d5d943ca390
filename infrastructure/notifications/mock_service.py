"""
Mock Notification Service
=========================

Records notifications in memory. Failures can be queued with ``fail_next``.
"""

import logging
from collections import deque
from typing import Any, Deque, Dict, List, Tuple

from .interface import NotificationServiceInterface

logger = logging.getLogger(__name__)


class MockNotificationService(NotificationServiceInterface):
    def __init__(self):
        self.sent: List[Tuple[str, str, Dict[str, Any]]] = []
        self.attempts = 0
        self._failures: Deque[Exception] = deque()

    def fail_next(self, *exceptions: Exception) -> None:
        """Queue exceptions to raise on the next sends, one per send."""
        self._failures.extend(exceptions)

    def send(self, to: str, template: str, data: Dict[str, Any]) -> bool:
        self.attempts += 1
        if self._failures:
            raise self._failures.popleft()

        logger.info(f"[MOCK NOTIFICATION] {template} -> {to}")
        self.sent.append((to, template, dict(data)))
        return True

    def reset(self) -> None:
        self.sent.clear()
        self._failures.clear()
        self.attempts = 0
