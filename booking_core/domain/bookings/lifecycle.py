"""
Booking lifecycle - state machine for a single pending booking

pending → confirmed          (facility owner accepts)
pending → declined           (facility owner rejects, player refunded)
pending → expired_confirmed  (response window elapsed, sweep auto-confirms)

All three targets are terminal. Transitions return a TransitionResult instead
of raising, so the router and the sweep can branch on "already responded".
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Callable, Optional

from sqlalchemy.orm import Session

from ...config import DEFAULT_DECLINE_REASON
from ...models import BookingStatus, FeeType, PendingBooking, ResolvedBy
from ...services.notification_service import Notifier
from ...services.payment_service import PaymentGateway
from ...shared.clock import utcnow
from ...shared.errors import NotFound, PaymentFailed, ValidationError
from ..fees.calculator import FeeCalculation
from ..relationships.service import RelationshipService
from .repository import BookingRepository
from .schemas import BookingDetails

logger = logging.getLogger(__name__)


class TransitionError(str, Enum):
    NOT_FOUND = "not_found"
    INVALID_TRANSITION = "invalid_transition"
    CONCURRENCY_CONFLICT = "concurrency_conflict"
    FORBIDDEN = "forbidden"


@dataclass(frozen=True)
class TransitionResult:
    booking_id: str
    ok: bool
    status: Optional[BookingStatus] = None
    error: Optional[TransitionError] = None
    message: Optional[str] = None
    payment_status: Optional[str] = None

    @property
    def already_responded(self) -> bool:
        return self.error is TransitionError.INVALID_TRANSITION


class BookingLifecycle:
    """Owns every status write on a PendingBooking"""

    def __init__(
        self,
        db: Session,
        relationships: RelationshipService,
        notifier: Notifier,
        payments: PaymentGateway,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.db = db
        self.repo = BookingRepository()
        self.relationships = relationships
        self.notifier = notifier
        self.payments = payments
        self.clock = clock

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    def create(
        self,
        details: BookingDetails,
        fee_calc: FeeCalculation,
        expires_at: datetime,
        created_at: Optional[datetime] = None,
        commit: bool = True,
    ) -> PendingBooking:
        """
        Persist a booking in pending with a frozen fee breakdown.

        The fee columns are copied from ``fee_calc`` once; later relationship
        changes never alter an already-created booking's charge.
        """
        created_at = created_at or self.clock()
        if expires_at <= created_at:
            raise ValidationError("expires_at must be after created_at", {"field": "expires_at"})
        if fee_calc.session_price_cents != details.price:
            raise ValidationError(
                "Fee calculation does not match booking price", {"field": "price"}
            )

        booking = self.repo.create(
            self.db,
            player_id=details.player_id,
            player_name=details.player_name or "Guest",
            player_email=details.player_email,
            facility_id=details.facility_id,
            facility_owner_id=details.facility_owner_id,
            court_id=details.court_id,
            court_name=details.court_name,
            date=details.date,
            start_time=details.start_time,
            end_time=details.end_time,
            price=details.price,
            status=BookingStatus.PENDING,
            created_at=created_at,
            expires_at=expires_at,
            fee_type=fee_calc.fee_type,
            platform_fee_percent=fee_calc.platform_fee_percent,
            platform_fee_cents=fee_calc.platform_fee_amount_cents,
            booking_fee_cents=fee_calc.player_booking_fee_cents,
            total_charge_cents=fee_calc.total_charge_cents,
            payout_cents=fee_calc.trainer_payout_cents,
            payment_intent_id=details.payment_intent_id,
            payee_account_id=details.payee_account_id,
        )
        if commit:
            self.db.commit()

        logger.info(
            f"📝 Pending booking {booking.id} created ({fee_calc.fee_type.value} tier, "
            f"expires {expires_at.isoformat()})"
        )
        return booking

    def notify_owner(self, booking: PendingBooking) -> bool:
        """Tell the facility owner a request is waiting; records owner_notified"""
        try:
            self.notifier.booking_requested(booking)
        except Exception as e:
            logger.error(f"❌ Failed to notify owner of booking {booking.id}: {e}")
            return False

        self.repo.update_audit(self.db, booking.id, owner_notified=True)
        self.db.commit()
        return True

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def confirm(self, booking_id: str, actor_id: Optional[str] = None) -> TransitionResult:
        """Facility owner accepts a pending booking"""
        return self._resolve(
            booking_id,
            BookingStatus.CONFIRMED,
            actor_id=actor_id,
            resolved_by=ResolvedBy.OWNER,
        )

    def decline(
        self, booking_id: str, reason: Optional[str] = None, actor_id: Optional[str] = None
    ) -> TransitionResult:
        """Facility owner rejects a pending booking; the player is refunded"""
        return self._resolve(
            booking_id,
            BookingStatus.DECLINED,
            actor_id=actor_id,
            resolved_by=ResolvedBy.OWNER,
            reason=(reason or "").strip() or DEFAULT_DECLINE_REASON,
        )

    def sweep_expire(self, booking_id: str, now: Optional[datetime] = None) -> TransitionResult:
        """System auto-confirms a booking whose response window has elapsed"""
        return self._resolve(
            booking_id,
            BookingStatus.EXPIRED_CONFIRMED,
            resolved_by=ResolvedBy.SYSTEM,
            now=now,
        )

    def _resolve(
        self,
        booking_id: str,
        target: BookingStatus,
        resolved_by: ResolvedBy,
        actor_id: Optional[str] = None,
        reason: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> TransitionResult:
        now = now or self.clock()

        booking = self.repo.get(self.db, booking_id)
        if booking is None:
            return TransitionResult(
                booking_id, ok=False, error=TransitionError.NOT_FOUND, message="Booking not found"
            )

        if actor_id is not None and booking.facility_owner_id != actor_id:
            return TransitionResult(
                booking_id,
                ok=False,
                status=booking.status,
                error=TransitionError.FORBIDDEN,
                message="Not authorized",
            )

        if booking.status.is_terminal:
            return self._already_resolved(booking_id, booking.status)

        expiring = target == BookingStatus.EXPIRED_CONFIRMED
        if expiring and now < booking.expires_at:
            return TransitionResult(
                booking_id,
                ok=False,
                status=booking.status,
                error=TransitionError.INVALID_TRANSITION,
                message="Response window is still open",
            )

        audit = {"resolved_at": now, "resolved_by": resolved_by}
        if target == BookingStatus.DECLINED:
            audit["decline_reason"] = reason

        try:
            won = self.repo.transition(
                self.db, booking_id, target, expired_by=now if expiring else None, **audit
            )
            if not won:
                self.db.rollback()
                current = self.repo.current_status(self.db, booking_id)
                if current is not None and current.is_terminal:
                    logger.info(f"🏁 Booking {booking_id} lost the race: already {current.value}")
                    return self._already_resolved(booking_id, current)
                return TransitionResult(
                    booking_id,
                    ok=False,
                    status=current,
                    error=TransitionError.CONCURRENCY_CONFLICT,
                    message="Booking changed while responding. Please retry.",
                )

            if target != BookingStatus.DECLINED:
                self.repo.create_confirmed(self.db, booking, auto_confirmed=expiring, now=now)
                self._advance_relationship(booking)

            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        booking = self.repo.get(self.db, booking_id)
        logger.info(f"✅ Booking {booking_id} transitioned: pending → {target.value} ({resolved_by.value})")

        if target == BookingStatus.DECLINED:
            payment_status = self._refund(booking, reason)
            self._notify(self.notifier.booking_declined, booking, reason)
        else:
            payment_status = self._release_payout(booking)
            if expiring:
                self._notify(self.notifier.booking_auto_confirmed, booking)
            else:
                self._notify(self.notifier.booking_confirmed, booking)

        return TransitionResult(
            booking_id, ok=True, status=target, payment_status=payment_status
        )

    # ------------------------------------------------------------------
    # Side effects
    # ------------------------------------------------------------------

    @staticmethod
    def _already_resolved(booking_id: str, status: BookingStatus) -> TransitionResult:
        return TransitionResult(
            booking_id,
            ok=False,
            status=status,
            error=TransitionError.INVALID_TRANSITION,
            message=f"Booking already {status.value}",
        )

    def _advance_relationship(self, booking: PendingBooking) -> None:
        """First confirmed marketplace booking converts the client to repeat"""
        if booking.fee_type != FeeType.MARKETPLACE:
            return
        try:
            self.relationships.mark_as_repeat_client(
                booking.facility_owner_id, booking.player_id, commit=False
            )
        except NotFound:
            logger.warning(
                f"⚠️ No relationship for {booking.facility_owner_id}_{booking.player_id}; "
                f"booking {booking.id} confirmed without repeat conversion"
            )

    def _release_payout(self, booking: PendingBooking) -> str:
        try:
            payment_status = self.payments.release_payout(booking)
        except PaymentFailed as e:
            logger.error(f"❌ Payout instruction failed for booking {booking.id}: {e.message}")
            payment_status = "failed"
        self._record_payment_status(booking.id, payment_status)
        return payment_status

    def _refund(self, booking: PendingBooking, reason: str) -> str:
        try:
            payment_status = self.payments.refund(booking, reason)
        except PaymentFailed as e:
            logger.error(f"❌ Refund instruction failed for booking {booking.id}: {e.message}")
            payment_status = "failed"
        self._record_payment_status(booking.id, payment_status)
        return payment_status

    def _record_payment_status(self, booking_id: str, payment_status: str) -> None:
        self.repo.update_audit(self.db, booking_id, payment_status=payment_status)
        self.db.commit()

    @staticmethod
    def _notify(send, booking: PendingBooking, *args) -> None:
        try:
            send(booking, *args)
        except Exception as e:
            # Push delivery never undoes a resolved booking
            logger.error(f"❌ Failed to send {send.__name__} for booking {booking.id}: {e}")
