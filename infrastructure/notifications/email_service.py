"""
Email Notification Service
==========================

Delivers notifications as multipart emails. Each template name maps to three
Django templates under ``notifications/``:

    notifications/<template>_subject.txt
    notifications/<template>.txt
    notifications/<template>.html
"""

import logging
from typing import Any, Dict, Optional

from django.template import TemplateDoesNotExist
from django.template.loader import render_to_string

from infrastructure.email import (
    EmailDeliveryException,
    EmailMessage,
    EmailRejectedException,
    EmailServiceInterface,
)
from utils.logging_utils import mask_email

from .interface import NotificationRejectedException, NotificationServiceInterface, NotificationTransientException


logger = logging.getLogger(__name__)


class EmailNotificationService(NotificationServiceInterface):
    def __init__(self, email_service: Optional[EmailServiceInterface] = None):
        if email_service is None:
            from infrastructure.container import container

            email_service = container.email()
        self.email_service = email_service

    def render(self, template: str, data: Dict[str, Any]) -> EmailMessage:
        try:
            subject = render_to_string(f"notifications/{template}_subject.txt", data)
            body = render_to_string(f"notifications/{template}.txt", data)
            html_body = render_to_string(f"notifications/{template}.html", data)
        except TemplateDoesNotExist as e:
            raise NotificationRejectedException(f"Unknown notification template: {template}") from e

        return EmailMessage(subject=" ".join(subject.split()), body=body, to=[], html_body=html_body)

    def send(self, to: str, template: str, data: Dict[str, Any]) -> bool:
        message = self.render(template, data)
        message.to = [to]

        try:
            accepted = self.email_service.send(message)
        except EmailRejectedException as e:
            raise NotificationRejectedException(str(e)) from e
        except EmailDeliveryException as e:
            raise NotificationTransientException(str(e)) from e

        if not accepted:
            raise NotificationTransientException(f"Email backend did not accept {template} for {mask_email(to)}")

        logger.info(f"Sent {template} notification to {mask_email(to)}")
        return True
