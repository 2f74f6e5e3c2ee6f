"""Tests for escrow fee calculation and payment method recommendations."""

from decimal import Decimal

import pytest

from shokulab.errors import ValidationError
from shokulab.models.payment import FeeSchedule
from shokulab.services.fees import (
    ESCROW_METHOD_ID,
    PAYMENT_METHODS,
    calculate_fee,
    get_payment_method,
    recommend_payment_methods,
)


class TestCalculateFee:

    @pytest.mark.parametrize("amount, fee, net", [
        (0, 100, -100),
        (1000, 100, 900),
        (2777, 100, 2677),
        (2778, 100, 2678),
        (5000, 180, 4820),
        (50000, 1800, 48200),
        (100000, 3600, 96400),
        (277777, 9999, 267778),
        (277778, 10000, 267778),
        (500000, 10000, 490000),
    ])
    def test_known_amounts(self, amount, fee, net):
        breakdown = calculate_fee(amount)
        assert breakdown.fee == fee
        assert breakdown.net_amount == net
        assert breakdown.percentage == 3.6

    def test_fee_is_exact_floor_within_bounds(self):
        for amount in range(0, 1_000_000, 997):
            expected = max(100, min(10000, amount * 36 // 1000))
            breakdown = calculate_fee(amount)
            assert breakdown.fee == expected
            assert 100 <= breakdown.fee <= 10000
            assert breakdown.fee + breakdown.net_amount == amount

    def test_negative_amount_rejected(self):
        with pytest.raises(ValidationError):
            calculate_fee(-1)

    def test_custom_schedule(self):
        schedule = FeeSchedule(percentage=Decimal("5"), minimum=0, maximum=1000)
        assert calculate_fee(999, schedule).fee == 49
        assert calculate_fee(100000, schedule).fee == 1000


class TestPaymentMethods:

    def test_escrow_method_carries_fee_schedule(self):
        escrow = PAYMENT_METHODS[ESCROW_METHOD_ID]
        assert escrow.fees is not None
        assert escrow.fees.percentage == Decimal("3.6")
        assert PAYMENT_METHODS["cash"].fees is None

    def test_unknown_method(self):
        with pytest.raises(ValidationError) as exc:
            get_payment_method("bitcoin")
        assert exc.value.fields == ["paymentMethod"]

    @pytest.mark.parametrize("value, expected", [
        (10000, ["shokulab_escrow", "cash", "digital_payment"]),
        (10001, ["shokulab_escrow", "cod", "direct_bank_transfer"]),
        (100000, ["shokulab_escrow", "cod", "direct_bank_transfer"]),
        (100001, ["shokulab_escrow", "direct_bank_transfer", "monthly_settlement"]),
    ])
    def test_recommendations(self, value, expected):
        assert [m.id for m in recommend_payment_methods(value)] == expected
