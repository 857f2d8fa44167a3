"""Payout calculator - turns a session price and fee tier into a full breakdown"""

from decimal import ROUND_HALF_UP, Decimal

from pydantic import BaseModel, ConfigDict

from ...models import FeeType
from ...shared.errors import ValidationError
from ...shared.validators import validate_price_cents


class TierRates(BaseModel):
    model_config = ConfigDict(frozen=True)

    platform_fee_percent: int
    booking_fee_cents: int


FEE_SCHEDULE: dict[FeeType, TierRates] = {
    FeeType.EXISTING: TierRates(platform_fee_percent=0, booking_fee_cents=100),
    FeeType.REPEAT: TierRates(platform_fee_percent=5, booking_fee_cents=100),
    FeeType.MARKETPLACE: TierRates(platform_fee_percent=15, booking_fee_cents=300),
}


def format_cents(cents: int) -> str:
    return f"${Decimal(cents) / 100:,.2f}"


class FeeCalculation(BaseModel):
    """Monetary breakdown for one session, all amounts in cents"""

    model_config = ConfigDict(frozen=True)

    session_price_cents: int
    fee_type: FeeType
    platform_fee_percent: int
    platform_fee_amount_cents: int
    player_booking_fee_cents: int
    total_charge_cents: int
    trainer_payout_cents: int

    def format_breakdown(self) -> dict[str, str]:
        """Display strings for the checkout screen"""
        return {
            "session_price": format_cents(self.session_price_cents),
            "booking_fee": format_cents(self.player_booking_fee_cents),
            "total": format_cents(self.total_charge_cents),
            "platform_fee": f"{self.platform_fee_percent}% ({format_cents(self.platform_fee_amount_cents)})",
            "trainer_payout": format_cents(self.trainer_payout_cents),
        }


def platform_fee_for(price_cents: int, percent: int) -> int:
    """price × percent / 100 rounded half-up to a whole cent"""
    amount = Decimal(price_cents) * Decimal(percent) / Decimal(100)
    return int(amount.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def calculate(price_cents: int, fee_type: FeeType) -> FeeCalculation:
    """
    Calculate the fee breakdown for a session.

    Args:
        price_cents: Session price set by the trainer/facility
        fee_type: Tier returned by resolve_tier

    Returns:
        FeeCalculation where payout + platform fee == price exactly

    Raises:
        ValidationError: If the price is not a positive integer or the tier is unknown
    """
    validate_price_cents(price_cents)
    try:
        rates = FEE_SCHEDULE[FeeType(fee_type)]
    except ValueError as e:
        raise ValidationError(f"Unknown fee type: {fee_type}", {"field": "fee_type"}) from e

    platform_fee = platform_fee_for(price_cents, rates.platform_fee_percent)

    return FeeCalculation(
        session_price_cents=price_cents,
        fee_type=FeeType(fee_type),
        platform_fee_percent=rates.platform_fee_percent,
        platform_fee_amount_cents=platform_fee,
        player_booking_fee_cents=rates.booking_fee_cents,
        total_charge_cents=price_cents + rates.booking_fee_cents,
        trainer_payout_cents=price_cents - platform_fee,
    )


def booking_fee_for(fee_type: FeeType) -> int:
    return FEE_SCHEDULE[fee_type].booking_fee_cents
