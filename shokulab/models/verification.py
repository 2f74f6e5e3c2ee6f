"""User verification level models"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict

from shokulab.errors import PermissionDenied


class VerificationLevel(str, Enum):
    """Tiered trust classification of a user"""
    UNVERIFIED = "unverified"   # 未認証：基本機能のみ
    BASIC = "basic"             # 基本認証：チャット可能
    VERIFIED = "verified"       # 本人確認済み：契約機能可能
    PREMIUM = "premium"         # 詳細確認済み：高額契約可能


class FeaturePermission(BaseModel):
    """What a verification level may do"""
    model_config = ConfigDict(frozen=True)

    can_view_stores: bool
    can_send_collab_request: bool
    can_chat: bool
    can_create_contract: bool
    max_contract_value: int


class PermissionCheck(BaseModel):
    """Outcome of the contract permission check"""
    allowed: bool
    reason: str                 # 'permitted' | 'contract_not_allowed' | 'contract_value_exceeded'
    message: str
    action: Optional[str] = None

    def raise_for_denial(self) -> None:
        """Raise PermissionDenied when the check did not pass."""
        if not self.allowed:
            raise PermissionDenied(self.reason, self.message, self.action)
