"""Booking router - FastAPI endpoints for the booking confirmation workflow"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_uid
from ...database import get_db
from ...services.notification_service import FirebaseNotifier, Notifier
from ...services.payment_service import PaymentGateway, StripePaymentGateway
from ...shared.errors import ConcurrencyConflict, Forbidden, InvalidTransition, NotFound
from .lifecycle import TransitionError, TransitionResult
from .schemas import (
    BlockSlotRequest,
    BlockSlotResponse,
    BookingCreate,
    BookingDetails,
    BookingResponse,
    DeclineRequest,
    TransitionResponse,
)
from .service import BookingService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/bookings", tags=["Bookings"])


def get_notifier(db: Session = Depends(get_db)) -> Notifier:
    return FirebaseNotifier(db)


def get_payment_gateway() -> PaymentGateway:
    return StripePaymentGateway()


def get_booking_service(
    db: Session = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
    payments: PaymentGateway = Depends(get_payment_gateway),
) -> BookingService:
    """Dependency injection for BookingService"""
    return BookingService(db, notifier, payments)


def _transition_response(result: TransitionResult) -> TransitionResponse:
    """Map a lifecycle result onto the HTTP contract"""
    if result.ok:
        return TransitionResponse(
            success=True,
            booking_id=result.booking_id,
            status=result.status,
            payment_status=result.payment_status,
        )

    details = {"booking_id": result.booking_id}
    if result.status is not None:
        details["status"] = result.status.value

    if result.error is TransitionError.NOT_FOUND:
        raise NotFound("Booking not found", details)
    if result.error is TransitionError.FORBIDDEN:
        raise Forbidden("Not authorized to respond to this booking", details)
    if result.error is TransitionError.CONCURRENCY_CONFLICT:
        raise ConcurrencyConflict(result.message or "Booking changed, please retry", details)
    raise InvalidTransition("This booking has already been responded to", details)


# ============================================================================
# PLAYER
# ============================================================================


@router.post("", response_model=BookingResponse, status_code=201)
async def create_booking(
    data: BookingCreate,
    uid: str = Depends(get_current_uid),
    service: BookingService = Depends(get_booking_service),
):
    """Request a court slot; the facility owner has a short window to respond"""
    details = BookingDetails(player_id=uid, **data.model_dump())
    booking = service.create_pending_booking(details)
    return BookingResponse.from_booking(booking, service.clock())


# ============================================================================
# FACILITY OWNER
# ============================================================================


@router.get("/pending", response_model=list[BookingResponse])
async def list_pending_bookings(
    facility_id: Optional[str] = Query(None),
    uid: str = Depends(get_current_uid),
    service: BookingService = Depends(get_booking_service),
):
    """Pending requests awaiting the current owner's response"""
    now = service.clock()
    return [
        BookingResponse.from_booking(b, now)
        for b in service.list_pending_for_owner(uid, facility_id)
    ]


@router.post("/{booking_id}/confirm", response_model=TransitionResponse)
async def confirm_booking(
    booking_id: str,
    uid: str = Depends(get_current_uid),
    service: BookingService = Depends(get_booking_service),
):
    """Confirm a pending booking"""
    result = service.confirm_booking(booking_id, uid)
    return _transition_response(result)


@router.post("/{booking_id}/decline", response_model=TransitionResponse)
async def decline_booking(
    booking_id: str,
    data: Optional[DeclineRequest] = None,
    uid: str = Depends(get_current_uid),
    service: BookingService = Depends(get_booking_service),
):
    """Decline a pending booking; the player is refunded"""
    reason = data.reason if data else None
    result = service.decline_booking(booking_id, uid, reason)
    return _transition_response(result)


@router.post("/block-slot", response_model=BlockSlotResponse)
async def block_slot(
    data: BlockSlotRequest,
    uid: str = Depends(get_current_uid),
    service: BookingService = Depends(get_booking_service),
):
    """Block a court slot and decline any pending requests for it"""
    declined = service.block_slot(data, uid)
    return BlockSlotResponse(success=True, declined_bookings=declined)
