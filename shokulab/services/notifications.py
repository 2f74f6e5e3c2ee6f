"""Notification dispatch for contract events.

Delivery channels and user preferences belong to the external notification
system; this module only hands it an event kind, a recipient and a payload.
"""

import logging
import uuid
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Optional

from shokulab.db.base import DatabaseInterface
from shokulab.models.notification import NOTIFICATION_TITLES, NotificationType

logger = logging.getLogger(__name__)


class Notifier(ABC):
    """Receives contract event signals"""

    @abstractmethod
    def notify(self, user_id: str, kind: NotificationType, data: Optional[dict] = None) -> None:
        """Signal ``kind`` to ``user_id``."""


class LoggingNotifier(Notifier):
    """Only logs the event. Default when no notification backend is wired."""

    def notify(self, user_id: str, kind: NotificationType, data: Optional[dict] = None) -> None:
        logger.info(f"Notify {user_id}: {NotificationType(kind).value} {data or {}}")


class InAppNotifier(Notifier):
    """Writes in-app notification rows the client app polls/subscribes to."""

    def __init__(self, db: DatabaseInterface):
        self.db = db

    def notify(self, user_id: str, kind: NotificationType, data: Optional[dict] = None) -> None:
        kind = NotificationType(kind)
        data = data or {}
        self.db.insert_notification({
            "id": str(uuid.uuid4()),
            "user_id": user_id,
            "type": kind.value,
            "title": NOTIFICATION_TITLES[kind],
            "body": _body_for(kind, data),
            "data": data,
            "created_at": datetime.now(timezone.utc).isoformat(),
        })
        logger.info(f"In-app notification '{kind.value}' queued for {user_id}")


def _body_for(kind: NotificationType, data: dict) -> str:
    title = data.get("title", "契約書")
    if kind is NotificationType.CONTRACT_RECEIVED:
        return f"契約書「{title}」が届きました"
    if kind is NotificationType.CONTRACT_AGREED:
        return f"契約書「{title}」に合意されました"
    if kind is NotificationType.CONTRACT_REJECTED:
        return f"契約書「{title}」が拒否されました"
    if kind is NotificationType.PAYMENT_COMPLETED:
        return f"契約書「{title}」の決済が完了しました"
    return f"契約書「{title}」の決済に失敗しました"
