"""Payment collaborator - Stripe Connect payouts and refunds for resolved bookings"""

import logging
from abc import ABC, abstractmethod
from typing import Optional

import stripe

from ..config import PAYOUT_CURRENCY, STRIPE_SECRET_KEY
from ..models import PendingBooking
from ..shared.errors import PaymentFailed

logger = logging.getLogger(__name__)


class PaymentGateway(ABC):
    """
    Payment instructions issued by the booking lifecycle.

    Both methods return a short status string stored on the booking
    ("payout_released", "refunded", "skipped") and raise PaymentFailed
    when the provider rejects the instruction.
    """

    @abstractmethod
    def release_payout(self, booking: PendingBooking) -> str:
        ...

    @abstractmethod
    def refund(self, booking: PendingBooking, reason: str) -> str:
        ...


class StripePaymentGateway(PaymentGateway):
    """Stripe Connect implementation: transfers the trainer payout, refunds the player"""

    def __init__(self, api_key: Optional[str] = None, currency: str = PAYOUT_CURRENCY):
        self.api_key = api_key or STRIPE_SECRET_KEY
        self.currency = currency
        if not self.api_key:
            logger.warning("STRIPE_SECRET_KEY not set; payouts and refunds will be skipped")

    def is_available(self) -> bool:
        return bool(self.api_key)

    def release_payout(self, booking: PendingBooking) -> str:
        if not self.is_available() or not booking.payee_account_id:
            logger.info(f"⏭️ Payout skipped for booking {booking.id} (no Stripe account)")
            return "skipped"

        try:
            transfer = stripe.Transfer.create(
                api_key=self.api_key,
                amount=booking.payout_cents,
                currency=self.currency,
                destination=booking.payee_account_id,
                transfer_group=booking.id,
                metadata={
                    "pending_booking_id": booking.id,
                    "fee_type": booking.fee_type.value,
                    "platform_fee_cents": booking.platform_fee_cents,
                },
                idempotency_key=f"payout-{booking.id}",
            )
        except stripe.StripeError as e:
            logger.error(f"❌ Stripe payout failed for booking {booking.id}: {e}")
            raise PaymentFailed(f"Payout failed: {e.user_message or str(e)}") from e

        logger.info(f"💸 Payout {transfer.id} of {booking.payout_cents}¢ for booking {booking.id}")
        return "payout_released"

    def refund(self, booking: PendingBooking, reason: str) -> str:
        if not self.is_available() or not booking.payment_intent_id:
            logger.info(f"⏭️ Refund skipped for booking {booking.id} (no payment intent)")
            return "skipped"

        try:
            refund = stripe.Refund.create(
                api_key=self.api_key,
                payment_intent=booking.payment_intent_id,
                amount=booking.total_charge_cents,
                metadata={"pending_booking_id": booking.id, "reason": reason[:500]},
                idempotency_key=f"refund-{booking.id}",
            )
        except stripe.StripeError as e:
            logger.error(f"❌ Stripe refund failed for booking {booking.id}: {e}")
            raise PaymentFailed(f"Refund failed: {e.user_message or str(e)}") from e

        logger.info(f"↩️ Refund {refund.id} of {booking.total_charge_cents}¢ for booking {booking.id}")
        return "refunded"
