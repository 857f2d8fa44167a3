"""Booking service - Business logic for requesting, responding to and blocking court slots"""

import logging
from datetime import datetime, timedelta
from typing import Callable, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...config import BLOCKED_SLOT_DECLINE_REASON, BOOKING_CONFIRMATION_WINDOW_MINUTES
from ...models import FeeType, PendingBooking
from ...services.notification_service import Notifier
from ...services.payment_service import PaymentGateway
from ...shared.clock import utcnow
from ...shared.errors import SlotUnavailable, ValidationError
from ...shared.validators import validate_id
from ..fees.service import FeeService
from ..relationships.service import RelationshipService
from .lifecycle import BookingLifecycle, TransitionResult
from .repository import BookingRepository
from .schemas import BlockSlotRequest, BookingDetails

logger = logging.getLogger(__name__)


class BookingService:
    """Service layer for the booking confirmation workflow"""

    def __init__(
        self,
        db: Session,
        notifier: Notifier,
        payments: PaymentGateway,
        clock: Callable[[], datetime] = utcnow,
        window_minutes: int = BOOKING_CONFIRMATION_WINDOW_MINUTES,
    ):
        self.db = db
        self.repo = BookingRepository()
        self.clock = clock
        self.window = timedelta(minutes=window_minutes)
        self.relationships = RelationshipService(db, clock=clock)
        self.fees = FeeService(self.relationships)
        self.lifecycle = BookingLifecycle(db, self.relationships, notifier, payments, clock=clock)

    def create_pending_booking(
        self, details: BookingDetails, window: Optional[timedelta] = None
    ) -> PendingBooking:
        """
        Create a pending booking and start the owner's response window.

        Resolves the fee tier from the relationship store, freezes the fee
        breakdown on the booking, and records the marketplace booking against
        the relationship in the same transaction.
        """
        window = window or self.window
        if window <= timedelta(0):
            raise ValidationError("Confirmation window must be positive", {"field": "window"})

        logger.info(
            f"📥 Booking request from {details.player_id} for court {details.court_id} "
            f"on {details.date} {details.start_time}"
        )

        conflict = self.repo.slot_conflict(
            self.db,
            details.facility_owner_id,
            details.facility_id,
            details.court_id,
            details.date,
            details.start_time,
        )
        if conflict:
            logger.warning(f"⚠️ Slot {details.court_id} {details.date} {details.start_time} is {conflict}")
            raise SlotUnavailable(
                "This time slot is no longer available", {"reason": conflict}
            )

        fee_calc = self.fees.calculate_fees(
            details.facility_owner_id, details.player_id, details.price
        )
        now = self.clock()

        try:
            booking = self.lifecycle.create(
                details, fee_calc, expires_at=now + window, created_at=now, commit=False
            )
            if fee_calc.fee_type != FeeType.EXISTING:
                self.relationships.record_marketplace_booking(
                    details.facility_owner_id,
                    details.player_id,
                    booking.id,
                    client_email=details.player_email,
                    client_name=details.player_name,
                    commit=False,
                )
            self.db.commit()
        except IntegrityError as e:
            # Another request took the slot between the check and the insert
            self.db.rollback()
            logger.warning(
                f"⚠️ Slot {details.court_id} {details.date} {details.start_time} taken concurrently"
            )
            raise SlotUnavailable(
                "This time slot is no longer available", {"reason": "pending"}
            ) from e
        except Exception:
            self.db.rollback()
            raise

        self._release_if_blocked(booking)
        self.lifecycle.notify_owner(booking)
        return booking

    def _release_if_blocked(self, booking: PendingBooking) -> None:
        """
        Decline a just-created booking whose slot was blocked meanwhile.

        block_slot commits the block before reading pending rows, and this
        runs after the booking is committed, so one of the two always sees
        the other.
        """
        if not self.repo.is_slot_blocked(
            self.db,
            booking.facility_owner_id,
            booking.facility_id,
            booking.court_id,
            booking.date,
            booking.start_time,
        ):
            return

        booking_id = booking.id
        result = self.lifecycle.decline(booking_id, reason=BLOCKED_SLOT_DECLINE_REASON)
        if not result.ok:
            logger.info(f"⏭️ Booking {booking_id} already handled by block: {result.message}")
        raise SlotUnavailable("This time slot is no longer available", {"reason": "blocked"})

    def confirm_booking(self, booking_id: str, owner_id: str) -> TransitionResult:
        """Facility owner confirms a pending booking"""
        return self.lifecycle.confirm(booking_id, actor_id=owner_id)

    def decline_booking(
        self, booking_id: str, owner_id: str, reason: Optional[str] = None
    ) -> TransitionResult:
        """Facility owner declines a pending booking"""
        return self.lifecycle.decline(booking_id, reason=reason, actor_id=owner_id)

    def list_pending_for_owner(
        self, owner_id: str, facility_id: Optional[str] = None
    ) -> list[PendingBooking]:
        """Pending requests still waiting on this owner, newest first"""
        validate_id(owner_id, "owner_id")
        return self.repo.get_pending_for_owner(self.db, owner_id, facility_id)

    def block_slot(self, data: BlockSlotRequest, owner_id: str) -> int:
        """
        Block a court slot and decline any pending requests for it.

        Returns:
            Number of pending bookings declined because of the block
        """
        validate_id(owner_id, "owner_id")

        try:
            self.repo.create_blocked_slot(
                self.db,
                facility_id=data.facility_id,
                facility_owner_id=owner_id,
                court_id=data.court_id,
                court_name=data.court_name,
                date=data.date,
                start_time=data.start_time,
                end_time=data.end_time,
                reason=data.reason,
                blocked_at=self.clock(),
            )
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise SlotUnavailable("This slot is already blocked") from e

        logger.info(f"🚫 Blocked {data.court_id} on {data.date} at {data.start_time} for {owner_id}")

        pending = self.repo.get_pending_for_slot(
            self.db, owner_id, data.facility_id, data.court_id, data.date, data.start_time
        )
        declined = 0
        for booking in pending:
            result = self.lifecycle.decline(
                booking.id, reason=BLOCKED_SLOT_DECLINE_REASON, actor_id=owner_id
            )
            if result.ok:
                declined += 1
            else:
                logger.info(f"⏭️ Booking {booking.id} not declined by block: {result.message}")

        return declined
