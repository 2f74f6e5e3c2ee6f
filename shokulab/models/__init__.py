"""Data models"""

from shokulab.models.template import (
    FieldType,
    ContractField,
    ContractTemplate,
    MandatoryClauses,
)
from shokulab.models.payment import (
    FeeSchedule,
    FeeBreakdown,
    PaymentMethod,
)
from shokulab.models.verification import (
    VerificationLevel,
    FeaturePermission,
    PermissionCheck,
)
from shokulab.models.contract import (
    CONTRACT_VALUE_KEY,
    PAYMENT_METHOD_KEY,
    ContractStatus,
    ContractDecision,
    EscrowStatus,
    Contract,
    EscrowTransaction,
    ContractCreateInput,
    ContractTransition,
)
from shokulab.models.notification import NotificationType

__all__ = [
    "FieldType",
    "ContractField",
    "ContractTemplate",
    "MandatoryClauses",
    "FeeSchedule",
    "FeeBreakdown",
    "PaymentMethod",
    "VerificationLevel",
    "FeaturePermission",
    "PermissionCheck",
    "CONTRACT_VALUE_KEY",
    "PAYMENT_METHOD_KEY",
    "ContractStatus",
    "ContractDecision",
    "EscrowStatus",
    "Contract",
    "EscrowTransaction",
    "ContractCreateInput",
    "ContractTransition",
    "NotificationType",
]
