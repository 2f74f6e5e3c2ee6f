"""Verification gate: maps verification levels to what a user may do"""

import logging
from typing import Mapping

from shokulab.models.verification import (
    FeaturePermission,
    PermissionCheck,
    VerificationLevel,
)

logger = logging.getLogger(__name__)

FEATURE_PERMISSIONS: Mapping[VerificationLevel, FeaturePermission] = {
    VerificationLevel.UNVERIFIED: FeaturePermission(
        can_view_stores=True,
        can_send_collab_request=False,
        can_chat=False,
        can_create_contract=False,
        max_contract_value=0,
    ),
    VerificationLevel.BASIC: FeaturePermission(
        can_view_stores=True,
        can_send_collab_request=True,
        can_chat=True,
        can_create_contract=False,
        max_contract_value=0,
    ),
    VerificationLevel.VERIFIED: FeaturePermission(
        can_view_stores=True,
        can_send_collab_request=True,
        can_chat=True,
        can_create_contract=True,
        max_contract_value=100_000,     # 10万円まで
    ),
    VerificationLevel.PREMIUM: FeaturePermission(
        can_view_stores=True,
        can_send_collab_request=True,
        can_chat=True,
        can_create_contract=True,
        max_contract_value=1_000_000,   # 100万円まで
    ),
}

REASON_PERMITTED = "permitted"
REASON_NOT_ALLOWED = "contract_not_allowed"
REASON_VALUE_EXCEEDED = "contract_value_exceeded"


class VerificationGate:
    """Single source of truth for contract creation permissions."""

    def __init__(self, permissions: Mapping[VerificationLevel, FeaturePermission] = FEATURE_PERMISSIONS):
        missing = [level.value for level in VerificationLevel if level not in permissions]
        if missing:
            raise ValueError(f"Permission table is missing levels: {missing}")
        self._permissions = dict(permissions)

    def permissions_for(self, level: VerificationLevel | str) -> FeaturePermission:
        """Permission record for a level. Accepts the enum or its string value."""
        return self._permissions[VerificationLevel(level)]

    def can_use_feature(self, level: VerificationLevel | str, feature: str) -> bool:
        """Whether ``feature`` (e.g. 'can_chat') is enabled for ``level``."""
        permissions = self.permissions_for(level)
        return bool(getattr(permissions, feature, False))

    def check_contract_permission(self, level: VerificationLevel | str, contract_value: int = 0) -> PermissionCheck:
        """Decide whether a user at ``level`` may create a contract of this value.

        The value limit is inclusive: exactly ``max_contract_value`` is allowed.
        """
        permissions = self.permissions_for(level)

        if not permissions.can_create_contract:
            return PermissionCheck(
                allowed=False,
                reason=REASON_NOT_ALLOWED,
                message="契約機能を利用するには本人確認が必要です。",
                action="プロフィール画面から本人確認を完了してください。",
            )

        if contract_value > permissions.max_contract_value:
            return PermissionCheck(
                allowed=False,
                reason=REASON_VALUE_EXCEEDED,
                message=f"{contract_value:,}円の契約には追加の認証が必要です。",
                action="より詳細な本人確認を完了してください。",
            )

        return PermissionCheck(
            allowed=True,
            reason=REASON_PERMITTED,
            message="契約を作成できます。",
        )
