"""Payment method and fee models"""

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict


class FeeSchedule(BaseModel):
    """Percentage fee clamped into [minimum, maximum] yen"""
    model_config = ConfigDict(frozen=True)

    percentage: Decimal
    minimum: int
    maximum: int


class FeeBreakdown(BaseModel):
    """Result of a fee calculation"""
    fee: int
    percentage: float
    net_amount: int


class PaymentMethod(BaseModel):
    """A payment method a contract may record"""
    model_config = ConfigDict(frozen=True)

    id: str                         # 'shokulab_escrow', 'cash', ...
    name: str                       # '食ラボ安心決済'
    description: str
    fees: Optional[FeeSchedule] = None
