"""Escrow fee calculation and the payment method catalogue"""

from decimal import ROUND_FLOOR, Decimal

from shokulab.errors import ValidationError
from shokulab.models.payment import FeeBreakdown, FeeSchedule, PaymentMethod

ESCROW_METHOD_ID = "shokulab_escrow"

# Stripe 3.6%, minimum 100 yen, maximum 10,000 yen
ESCROW_FEE_SCHEDULE = FeeSchedule(percentage=Decimal("3.6"), minimum=100, maximum=10000)

PAYMENT_METHODS: dict[str, PaymentMethod] = {
    m.id: m
    for m in (
        PaymentMethod(
            id=ESCROW_METHOD_ID,
            name="食ラボ安心決済",
            description="クレジットカードで支払い、銀行振込で受け取り",
            fees=ESCROW_FEE_SCHEDULE,
        ),
        PaymentMethod(id="cash", name="現金決済", description="商品受け渡し時に現金で支払い"),
        PaymentMethod(id="direct_bank_transfer", name="直接銀行振込", description="当事者間で直接銀行振込"),
        PaymentMethod(id="monthly_settlement", name="月末締め翌月払い", description="1ヶ月分をまとめて翌月に決済"),
        PaymentMethod(id="cod", name="代金引換", description="商品配送時に配送業者経由で決済"),
        PaymentMethod(id="digital_payment", name="デジタル決済", description="PayPay、LINE Pay等のデジタル決済"),
        PaymentMethod(id="barter", name="物々交換", description="商品やサービスの直接交換"),
    )
}


def calculate_fee(amount: int, schedule: FeeSchedule = ESCROW_FEE_SCHEDULE) -> FeeBreakdown:
    """Compute the escrow service fee and the payout left after it.

    fee = floor(amount * percentage / 100), clamped into
    [schedule.minimum, schedule.maximum]. The net amount may be negative
    for very small contracts.
    """
    if amount < 0:
        raise ValidationError(f"Amount must be non-negative: {amount}")

    raw = (Decimal(amount) * schedule.percentage / 100).to_integral_value(rounding=ROUND_FLOOR)
    fee = max(schedule.minimum, min(schedule.maximum, int(raw)))

    return FeeBreakdown(
        fee=fee,
        percentage=float(schedule.percentage),
        net_amount=amount - fee,
    )


def get_payment_method(method_id: str) -> PaymentMethod:
    """Look up a payment method, ValidationError if unknown."""
    method = PAYMENT_METHODS.get(method_id)
    if method is None:
        raise ValidationError(
            f"Unknown payment method: {method_id}",
            fields=["paymentMethod"],
        )
    return method


def recommend_payment_methods(contract_value: int) -> list[PaymentMethod]:
    """Payment methods suggested for a contract of this size, escrow first."""
    recommendations = [PAYMENT_METHODS[ESCROW_METHOD_ID]]

    if contract_value <= 10000:
        extra = ("cash", "digital_payment")
    elif contract_value <= 100000:
        extra = ("cod", "direct_bank_transfer")
    else:
        extra = ("direct_bank_transfer", "monthly_settlement")

    recommendations.extend(PAYMENT_METHODS[m] for m in extra)
    return recommendations
