"""Booking repository - Database operations for pending and confirmed bookings"""

from datetime import datetime
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from ...database import store_operation
from ...models import BlockedSlot, BookingStatus, ConfirmedBooking, PendingBooking


class BookingRepository:
    """Repository for booking database operations"""

    @staticmethod
    @store_operation
    def create(db: Session, **booking_data) -> PendingBooking:
        """Add a pending booking to the session (flushed, not committed)"""
        booking = PendingBooking(**booking_data)
        db.add(booking)
        db.flush()
        return booking

    @staticmethod
    @store_operation
    def get(db: Session, booking_id: str) -> Optional[PendingBooking]:
        """Get a pending booking by ID, always re-reading the row"""
        return db.get(PendingBooking, booking_id, populate_existing=True)

    @staticmethod
    @store_operation
    def current_status(db: Session, booking_id: str) -> Optional[BookingStatus]:
        return db.execute(
            select(PendingBooking.status).where(PendingBooking.id == booking_id)
        ).scalar_one_or_none()

    @staticmethod
    @store_operation
    def transition(
        db: Session,
        booking_id: str,
        to_status: BookingStatus,
        expired_by: Optional[datetime] = None,
        **audit_values,
    ) -> bool:
        """
        Conditionally move a booking out of pending.

        The UPDATE only matches while status is still pending (and, for the
        sweep, while the deadline has passed), so of two concurrent callers
        exactly one sees rowcount == 1.
        """
        conditions = [
            PendingBooking.id == booking_id,
            PendingBooking.status == BookingStatus.PENDING,
        ]
        if expired_by is not None:
            conditions.append(PendingBooking.expires_at <= expired_by)

        result = db.execute(
            update(PendingBooking)
            .where(*conditions)
            .values(status=to_status, **audit_values)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    @staticmethod
    @store_operation
    def update_audit(db: Session, booking_id: str, **audit_values) -> None:
        """Write audit metadata; never touches status"""
        db.execute(
            update(PendingBooking)
            .where(PendingBooking.id == booking_id)
            .values(**audit_values)
            .execution_options(synchronize_session=False)
        )

    @staticmethod
    @store_operation
    def create_confirmed(
        db: Session, booking: PendingBooking, auto_confirmed: bool, now: datetime
    ) -> ConfirmedBooking:
        """Write the confirmed court booking for an accepted pending booking"""
        confirmed = ConfirmedBooking(
            pending_booking_id=booking.id,
            player_id=booking.player_id,
            player_name=booking.player_name,
            facility_id=booking.facility_id,
            facility_owner_id=booking.facility_owner_id,
            court_id=booking.court_id,
            court_name=booking.court_name,
            date=booking.date,
            start_time=booking.start_time,
            end_time=booking.end_time,
            price=booking.price,
            fee_type=booking.fee_type,
            total_charge_cents=booking.total_charge_cents,
            payout_cents=booking.payout_cents,
            auto_confirmed=auto_confirmed,
            confirmed_at=now,
        )
        db.add(confirmed)
        db.flush()
        return confirmed

    @staticmethod
    @store_operation
    def find_expired_ids(db: Session, now: datetime, limit: int = 500) -> list[str]:
        """IDs of pending bookings whose response window has elapsed, oldest first"""
        rows = db.execute(
            select(PendingBooking.id)
            .where(
                PendingBooking.status == BookingStatus.PENDING,
                PendingBooking.expires_at <= now,
            )
            .order_by(PendingBooking.expires_at.asc())
            .limit(limit)
        )
        return list(rows.scalars())

    @staticmethod
    @store_operation
    def get_pending_for_owner(
        db: Session, owner_id: str, facility_id: Optional[str] = None
    ) -> list[PendingBooking]:
        """Get pending bookings awaiting a facility owner's response, newest first"""
        query = db.query(PendingBooking).filter(
            PendingBooking.facility_owner_id == owner_id,
            PendingBooking.status == BookingStatus.PENDING,
        )
        if facility_id:
            query = query.filter(PendingBooking.facility_id == facility_id)
        return query.order_by(PendingBooking.created_at.desc()).all()

    @staticmethod
    @store_operation
    def get_pending_for_slot(
        db: Session, owner_id: str, facility_id: str, court_id: str, date: str, start_time: str
    ) -> list[PendingBooking]:
        return (
            db.query(PendingBooking)
            .filter(
                PendingBooking.facility_owner_id == owner_id,
                PendingBooking.facility_id == facility_id,
                PendingBooking.court_id == court_id,
                PendingBooking.date == date,
                PendingBooking.start_time == start_time,
                PendingBooking.status == BookingStatus.PENDING,
            )
            .all()
        )

    @staticmethod
    @store_operation
    def is_slot_blocked(
        db: Session, owner_id: str, facility_id: str, court_id: str, date: str, start_time: str
    ) -> bool:
        blocked = (
            db.query(BlockedSlot.id)
            .filter(
                BlockedSlot.facility_owner_id == owner_id,
                BlockedSlot.facility_id == facility_id,
                BlockedSlot.court_id == court_id,
                BlockedSlot.date == date,
                BlockedSlot.start_time == start_time,
            )
            .first()
        )
        return blocked is not None

    @staticmethod
    @store_operation
    def slot_conflict(
        db: Session, owner_id: str, facility_id: str, court_id: str, date: str, start_time: str
    ) -> Optional[str]:
        """
        Check whether a court slot can still be requested.

        Returns:
            "blocked", "pending" or "confirmed" when taken, otherwise None
        """
        if BookingRepository.is_slot_blocked(db, owner_id, facility_id, court_id, date, start_time):
            return "blocked"

        pending = (
            db.query(PendingBooking.id)
            .filter(
                PendingBooking.facility_id == facility_id,
                PendingBooking.court_id == court_id,
                PendingBooking.date == date,
                PendingBooking.start_time == start_time,
                PendingBooking.status == BookingStatus.PENDING,
            )
            .first()
        )
        if pending:
            return "pending"

        confirmed = (
            db.query(ConfirmedBooking.id)
            .filter(
                ConfirmedBooking.facility_id == facility_id,
                ConfirmedBooking.court_id == court_id,
                ConfirmedBooking.date == date,
                ConfirmedBooking.start_time == start_time,
            )
            .first()
        )
        if confirmed:
            return "confirmed"

        return None

    @staticmethod
    @store_operation
    def create_blocked_slot(db: Session, **slot_data) -> BlockedSlot:
        blocked = BlockedSlot(**slot_data)
        db.add(blocked)
        db.flush()
        return blocked
