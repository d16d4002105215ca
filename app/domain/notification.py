"""
app/domain/notification.py
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


class NotificationType:
    EMAIL = "email"
    SMS = "sms"
    SLACK = "slack"


ALLOWED_NOTIFICATION_TYPES = frozenset(
    {NotificationType.EMAIL, NotificationType.SMS, NotificationType.SLACK}
)


@dataclass(frozen=True)
class Notification:
    notification_type: str
    subject: str
    message: str
    recipients: tuple[str, ...]
    data: dict[str, Any] = field(default_factory=dict)
