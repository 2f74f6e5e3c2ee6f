"""Request/response schemas for the Contract API"""

from typing import Optional, Union

from pydantic import BaseModel, Field

from shokulab.models.contract import Contract, ContractDecision, EscrowTransaction


class ContractFieldItem(BaseModel):
    """A single field in a contract form"""
    key: str
    label: str
    type: str = "text"  # text, textarea
    required: bool = True
    placeholder: Optional[str] = None


class ContractTemplateItem(BaseModel):
    """A contract template in the templates list"""
    id: str
    title: str
    user_friendly_title: str
    description: str = ""
    field_count: int = 0


class ContractTemplatesResponse(BaseModel):
    """Response for listing contract templates"""
    templates: list[ContractTemplateItem] = []


class ContractTemplateDetail(BaseModel):
    """A template with its form fields, in fill order"""
    id: str
    title: str
    user_friendly_title: str
    description: str = ""
    fields: list[ContractFieldItem]


class ContractPreviewRequest(BaseModel):
    """Render contract text without saving it"""
    template_id: str
    field_values: dict[str, str] = {}
    party_a: str = Field(..., min_length=1, max_length=200)
    party_b: str = Field(..., min_length=1, max_length=200)


class ContractPreviewResponse(BaseModel):
    content: str


class ContractCreateRequest(BaseModel):
    """Create a pending contract"""
    template_type: str
    fields: dict[str, str] = {}
    contract_value: Union[int, str]
    payment_method: str
    created_by: str = Field(..., min_length=1)
    party_a: str = Field(..., min_length=1, max_length=200)
    party_b: str = Field(..., min_length=1, max_length=200)
    receiver_id: Optional[str] = None
    title: Optional[str] = Field(None, max_length=200)


class ContractRespondRequest(BaseModel):
    """Counterparty decision on a pending contract"""
    actor_id: str = Field(..., min_length=1)
    decision: ContractDecision
    reason: Optional[str] = Field(None, max_length=1000)


class FeeResponse(BaseModel):
    """Escrow fee breakdown for an amount"""
    amount: int
    fee: int
    percentage: float
    net_amount: int


class ContractDetailResponse(BaseModel):
    """A contract plus its escrow details when paid through escrow"""
    contract: Contract
    fee: Optional[FeeResponse] = None
    escrow_transaction: Optional[EscrowTransaction] = None


class ContractTransitionResponse(BaseModel):
    """Result of agree/reject"""
    contract: Contract
    escrow_transaction: Optional[EscrowTransaction] = None


class PaymentOutcomeRequest(BaseModel):
    """Payment provider callback"""
    succeeded: bool


class HealthResponse(BaseModel):
    """Health check response"""
    status: str  # "ok" | "error"
    db_mode: str
    version: str = "0.1.0"
