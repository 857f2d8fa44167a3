"""
Expiry sweep for pending bookings
Auto-confirms bookings whose facility owner did not respond within the window
(pending → expired_confirmed). Run periodically by the ARQ worker.
"""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from ..domain.bookings.lifecycle import BookingLifecycle
from ..domain.bookings.repository import BookingRepository
from ..domain.relationships.service import RelationshipService
from ..shared.clock import utcnow
from .notification_service import FirebaseNotifier
from .payment_service import StripePaymentGateway

logger = logging.getLogger(__name__)


def sweep_expired_bookings(
    db: Session,
    now: Optional[datetime] = None,
    lifecycle: Optional[BookingLifecycle] = None,
    batch_size: int = 500,
) -> dict:
    """
    Auto-confirm every pending booking whose response window has elapsed.

    Each booking is resolved independently: a booking the owner answered in
    the meantime is skipped, and a failure on one booking never stops the rest.

    Returns:
        dict: Summary of the sweep run
    """
    now = now or utcnow()
    if lifecycle is None:
        lifecycle = BookingLifecycle(
            db, RelationshipService(db), FirebaseNotifier(db), StripePaymentGateway()
        )

    summary = {"found": 0, "auto_confirmed": 0, "skipped": 0, "failed": 0}

    expired_ids = BookingRepository.find_expired_ids(db, now, limit=batch_size)
    summary["found"] = len(expired_ids)
    if not expired_ids:
        return summary

    logger.info(f"⏰ Found {len(expired_ids)} expired pending bookings")

    for booking_id in expired_ids:
        try:
            result = lifecycle.sweep_expire(booking_id, now=now)
        except Exception as e:
            db.rollback()
            summary["failed"] += 1
            logger.error(f"❌ Failed to auto-confirm booking {booking_id}: {str(e)}")
            continue

        if result.ok:
            summary["auto_confirmed"] += 1
            logger.info(f"✅ Booking {booking_id} auto-confirmed after window elapsed")
        else:
            summary["skipped"] += 1
            logger.info(f"⏭️ Booking {booking_id} skipped: {result.message}")

    logger.info(
        f"Expiry sweep complete: {summary['auto_confirmed']} auto-confirmed, "
        f"{summary['skipped']} skipped, {summary['failed']} failed"
    )
    return summary
