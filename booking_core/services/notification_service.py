"""
Booking Notification Service
Push notifications for the booking confirmation workflow (facility owner + player)
"""

import logging
from abc import ABC, abstractmethod

from firebase_admin import messaging
from sqlalchemy.orm import Session

from ..auth import get_firebase_app
from ..models import DeviceToken, PendingBooking

logger = logging.getLogger(__name__)


class Notifier(ABC):
    """Notification collaborator used by the booking lifecycle"""

    @abstractmethod
    def booking_requested(self, booking: PendingBooking) -> None:
        ...

    @abstractmethod
    def booking_confirmed(self, booking: PendingBooking) -> None:
        ...

    @abstractmethod
    def booking_declined(self, booking: PendingBooking, reason: str) -> None:
        ...

    @abstractmethod
    def booking_auto_confirmed(self, booking: PendingBooking) -> None:
        ...


class FirebaseNotifier(Notifier):
    """Sends Firebase Cloud Messaging multicasts to every registered device of a user"""

    def __init__(self, db: Session):
        self.db = db

    def _tokens_for(self, user_id: str) -> list[str]:
        rows = (
            self.db.query(DeviceToken.token)
            .filter(DeviceToken.user_id == user_id)
            .order_by(DeviceToken.id.asc())
            .all()
        )
        return [row.token for row in rows if row.token]

    def _send(self, user_id: str, title: str, body: str, data: dict) -> int:
        tokens = self._tokens_for(user_id)
        if not tokens:
            logger.warning(f"⚠️ No device tokens for user {user_id}")
            return 0

        message = messaging.MulticastMessage(
            notification=messaging.Notification(title=title, body=body),
            data={key: str(value) for key, value in data.items()},
            tokens=tokens,
        )
        response = messaging.send_each_for_multicast(message, app=get_firebase_app())
        logger.info(
            f"📱 {data.get('type')} push to {user_id}: "
            f"{response.success_count} sent, {response.failure_count} failed"
        )
        return response.success_count

    def booking_requested(self, booking: PendingBooking) -> None:
        self._send(
            booking.facility_owner_id,
            title="🎾 New Booking Request!",
            body=(
                f"{booking.player_name or 'Guest'} wants {booking.court_name or 'a court'} "
                f"on {booking.date} at {booking.start_time}"
            ),
            data={"type": "pending_booking", "bookingId": booking.id, "action": "confirm_decline"},
        )

    def booking_confirmed(self, booking: PendingBooking) -> None:
        self._send(
            booking.player_id,
            title="Booking Confirmed!",
            body=(
                f"Your {booking.court_name or 'court'} booking for {booking.date} "
                f"at {booking.start_time} is confirmed!"
            ),
            data={"type": "booking_confirmed", "bookingId": booking.id},
        )

    def booking_declined(self, booking: PendingBooking, reason: str) -> None:
        self._send(
            booking.player_id,
            title="Booking Unavailable",
            body=(
                f"Sorry, {booking.court_name or 'your court'} at {booking.start_time} "
                f"is no longer available. {reason}"
            ),
            data={"type": "booking_declined", "bookingId": booking.id},
        )

    def booking_auto_confirmed(self, booking: PendingBooking) -> None:
        # Player sees a normal confirmation; the owner learns it was system-initiated
        self.booking_confirmed(booking)
        self._send(
            booking.facility_owner_id,
            title="Auto-confirmed",
            body=(
                f"{booking.player_name or 'Guest'}'s booking for {booking.court_name or 'a court'} "
                f"on {booking.date} at {booking.start_time} was auto-confirmed"
            ),
            data={"type": "booking_auto_confirmed", "bookingId": booking.id},
        )
