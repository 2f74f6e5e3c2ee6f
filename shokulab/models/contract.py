"""Contract and escrow transaction models"""

from datetime import datetime
from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, Field

# Keys the contract value and payment method are stored under in `content`
CONTRACT_VALUE_KEY = "contractValue"
PAYMENT_METHOD_KEY = "paymentMethod"


class ContractStatus(str, Enum):
    """Lifecycle of a contract. Anything but PENDING is terminal."""
    PENDING = "pending"
    AGREED = "agreed"
    REJECTED = "rejected"

    @property
    def is_terminal(self) -> bool:
        return self is not ContractStatus.PENDING


class ContractDecision(str, Enum):
    """Counterparty response to a pending contract"""
    AGREE = "agree"
    REJECT = "reject"


class EscrowStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class Contract(BaseModel):
    """A persisted contract.

    ``generated_content`` is rendered once at creation and is the legal text
    of record; it is never regenerated from the template catalogue.
    """
    id: str
    template_type: str
    title: str
    content: dict
    generated_content: str
    status: ContractStatus = ContractStatus.PENDING
    created_by: str
    agreed_by: Optional[str] = None
    created_at: datetime
    agreed_at: Optional[datetime] = None
    chat_message_id: Optional[str] = None

    @property
    def contract_value(self) -> int:
        return int(self.content.get(CONTRACT_VALUE_KEY) or 0)

    @property
    def payment_method(self) -> str:
        return self.content.get(PAYMENT_METHOD_KEY) or ""

    @property
    def field_values(self) -> dict:
        """Template field values without the value/payment entries"""
        return {
            k: v for k, v in self.content.items()
            if k not in (CONTRACT_VALUE_KEY, PAYMENT_METHOD_KEY)
        }


class EscrowTransaction(BaseModel):
    """Held-fee payment record, at most one per contract"""
    id: Optional[str] = None
    contract_id: str
    amount: int
    fee: int
    status: EscrowStatus = EscrowStatus.PENDING
    created_at: Optional[datetime] = None


class ContractCreateInput(BaseModel):
    """Everything needed to create a contract"""
    template_type: str
    fields: dict[str, str] = Field(default_factory=dict)
    contract_value: Union[int, str]
    payment_method: str
    created_by: str
    party_a: str                        # creator's display name (甲)
    party_b: str                        # counterparty's display name (乙)
    receiver_id: Optional[str] = None   # counterparty user id for the chat reference
    title: Optional[str] = None


class ContractTransition(BaseModel):
    """Result of agree/reject"""
    contract: Contract
    escrow_transaction: Optional[EscrowTransaction] = None
