"""Booking domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from ...models import BookingStatus, FeeType, PendingBooking, ResolvedBy
from ...shared.validators import validate_email, validate_id, validate_price_cents, validate_slot


class BookingCreate(BaseModel):
    """Schema for a player requesting a facility booking"""

    facility_id: str
    facility_owner_id: str
    court_id: str
    court_name: Optional[str] = None
    date: str  # YYYY-MM-DD
    start_time: str  # HH:MM
    end_time: str  # HH:MM
    price: int  # cents
    player_name: Optional[str] = None
    player_email: Optional[str] = None
    payment_intent_id: Optional[str] = None
    payee_account_id: Optional[str] = None

    @field_validator("facility_id", "facility_owner_id", "court_id")
    @classmethod
    def validate_ids(cls, v, info):
        return validate_id(v, info.field_name)

    @field_validator("price", mode="before")
    @classmethod
    def validate_price(cls, v):
        return validate_price_cents(v)

    @field_validator("player_email")
    @classmethod
    def validate_player_email(cls, v):
        return validate_email(v)

    @model_validator(mode="after")
    def validate_time_slot(self):
        validate_slot(self.date, self.start_time, self.end_time)
        return self


class BookingDetails(BookingCreate):
    """Booking request bound to the authenticated player"""

    player_id: str

    @field_validator("player_id")
    @classmethod
    def validate_player_id(cls, v):
        return validate_id(v, "player_id")


class DeclineRequest(BaseModel):
    reason: Optional[str] = None


class BlockSlotRequest(BaseModel):
    """Schema for a facility owner blocking a court slot"""

    facility_id: str
    court_id: str
    court_name: Optional[str] = None
    date: str
    start_time: str
    end_time: str
    reason: Optional[str] = None

    @field_validator("facility_id", "court_id")
    @classmethod
    def validate_ids(cls, v, info):
        return validate_id(v, info.field_name)

    @model_validator(mode="after")
    def validate_time_slot(self):
        validate_slot(self.date, self.start_time, self.end_time)
        return self


class FeeBreakdown(BaseModel):
    fee_type: FeeType
    platform_fee_percent: int
    platform_fee_cents: int
    booking_fee_cents: int
    total_charge_cents: int
    payout_cents: int


class BookingResponse(BaseModel):
    """Schema for pending booking response"""

    model_config = ConfigDict(from_attributes=True)

    id: str
    status: BookingStatus
    player_id: str
    player_name: Optional[str] = None
    facility_id: str
    facility_owner_id: str
    court_id: str
    court_name: Optional[str] = None
    date: str
    start_time: str
    end_time: str
    price: int
    fees: FeeBreakdown
    created_at: datetime
    expires_at: datetime
    seconds_remaining: int  # Countdown for display only; the sweep is authoritative
    resolved_at: Optional[datetime] = None
    resolved_by: Optional[ResolvedBy] = None
    decline_reason: Optional[str] = None

    @classmethod
    def from_booking(cls, booking: PendingBooking, now: datetime) -> "BookingResponse":
        remaining = 0
        if booking.status == BookingStatus.PENDING:
            remaining = max(0, int((booking.expires_at - now).total_seconds()))

        return cls(
            id=booking.id,
            status=booking.status,
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
            fees=FeeBreakdown(
                fee_type=booking.fee_type,
                platform_fee_percent=booking.platform_fee_percent,
                platform_fee_cents=booking.platform_fee_cents,
                booking_fee_cents=booking.booking_fee_cents,
                total_charge_cents=booking.total_charge_cents,
                payout_cents=booking.payout_cents,
            ),
            created_at=booking.created_at,
            expires_at=booking.expires_at,
            seconds_remaining=remaining,
            resolved_at=booking.resolved_at,
            resolved_by=booking.resolved_by,
            decline_reason=booking.decline_reason,
        )


class TransitionResponse(BaseModel):
    success: bool
    booking_id: str
    status: Optional[BookingStatus] = None
    payment_status: Optional[str] = None
    message: Optional[str] = None


class BlockSlotResponse(BaseModel):
    success: bool
    declined_bookings: int
