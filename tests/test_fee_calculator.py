import pytest

from booking_core.domain.fees.calculator import (
    FEE_SCHEDULE,
    booking_fee_for,
    calculate,
    platform_fee_for,
)
from booking_core.models import FeeType
from booking_core.shared.errors import ValidationError


@pytest.mark.parametrize(
    "fee_type, platform_fee, payout, booking_fee, total",
    [
        (FeeType.MARKETPLACE, 1500, 8500, 300, 10300),
        (FeeType.EXISTING, 0, 10000, 100, 10100),
        (FeeType.REPEAT, 500, 9500, 100, 10100),
    ],
)
def test_breakdown_for_each_tier(fee_type, platform_fee, payout, booking_fee, total):
    fees = calculate(10000, fee_type)

    assert fees.session_price_cents == 10000
    assert fees.fee_type == fee_type
    assert fees.platform_fee_amount_cents == platform_fee
    assert fees.trainer_payout_cents == payout
    assert fees.player_booking_fee_cents == booking_fee
    assert fees.total_charge_cents == total


def test_platform_fee_rounds_half_up():
    # 15% of 10¢ = 1.5¢ and 5% of 10¢ = 0.5¢
    assert platform_fee_for(10, 15) == 2
    assert platform_fee_for(10, 5) == 1
    # 15% of 3¢ = 0.45¢
    assert platform_fee_for(3, 15) == 0


@pytest.mark.parametrize("price", [1, 3, 7, 99, 1001, 4999, 123457])
@pytest.mark.parametrize("fee_type", list(FeeType))
def test_amounts_always_balance(price, fee_type):
    fees = calculate(price, fee_type)

    assert fees.trainer_payout_cents + fees.platform_fee_amount_cents == price
    assert fees.total_charge_cents == price + fees.player_booking_fee_cents
    assert fees.trainer_payout_cents >= 0


def test_accepts_tier_string_value():
    assert calculate(2000, "repeat").fee_type == FeeType.REPEAT


@pytest.mark.parametrize("price", [0, -100, 10.5, "1000", True, None])
def test_rejects_invalid_price(price):
    with pytest.raises(ValidationError):
        calculate(price, FeeType.MARKETPLACE)


def test_rejects_unknown_tier():
    with pytest.raises(ValidationError, match="Unknown fee type"):
        calculate(1000, "vip")


def test_fee_calculation_is_frozen():
    fees = calculate(1000, FeeType.MARKETPLACE)
    with pytest.raises(Exception):
        fees.trainer_payout_cents = 1000


def test_format_breakdown():
    display = calculate(10000, FeeType.MARKETPLACE).format_breakdown()

    assert display == {
        "session_price": "$100.00",
        "booking_fee": "$3.00",
        "total": "$103.00",
        "platform_fee": "15% ($15.00)",
        "trainer_payout": "$85.00",
    }


def test_schedule_covers_every_tier():
    assert set(FEE_SCHEDULE) == set(FeeType)
    assert booking_fee_for(FeeType.MARKETPLACE) == 300
    assert booking_fee_for(FeeType.EXISTING) == 100
