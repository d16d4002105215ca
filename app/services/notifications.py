"""
app/services/notifications.py

Notifier adapter that records notifications in the application log.
"""

from __future__ import annotations

import logging

from app.domain.errors import DomainValidationError
from app.domain.notification import ALLOWED_NOTIFICATION_TYPES, Notification
from app.logging_utils import log_event

logger = logging.getLogger(__name__)


class LoggingNotifier:
    """
    Writes each notification as one structured log line.

    Real delivery channels (mail, SMS, chat) plug in behind the same
    ``notify`` method.
    """

    def __init__(self, *, level: int = logging.WARNING) -> None:
        self._level = level

    def notify(self, notification: Notification) -> None:
        if notification.notification_type not in ALLOWED_NOTIFICATION_TYPES:
            raise DomainValidationError(
                f"unsupported notification type: {notification.notification_type}",
                field="notification_type",
            )
        if not notification.recipients:
            raise DomainValidationError("notification has no recipients", field="recipients")

        log_event(
            logger,
            self._level,
            "notification_sent",
            notification_type=notification.notification_type,
            subject=notification.subject,
            recipients=list(notification.recipients),
            data=notification.data,
        )
