"""Notification event kinds emitted by the contract core"""

from enum import Enum


class NotificationType(str, Enum):
    """Event kinds signalled to the external notifier"""
    CONTRACT_RECEIVED = "contract_received"
    CONTRACT_AGREED = "contract_agreed"
    CONTRACT_REJECTED = "contract_rejected"
    PAYMENT_COMPLETED = "payment_completed"
    PAYMENT_FAILED = "payment_failed"


# In-app notification titles, by kind
NOTIFICATION_TITLES = {
    NotificationType.CONTRACT_RECEIVED: "契約書を受信",
    NotificationType.CONTRACT_AGREED: "契約書が合意されました",
    NotificationType.CONTRACT_REJECTED: "契約書が拒否されました",
    NotificationType.PAYMENT_COMPLETED: "決済完了",
    NotificationType.PAYMENT_FAILED: "決済失敗",
}
