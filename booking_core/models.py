import enum
import uuid

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Enum,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    text,
)
from sqlalchemy.sql import func

from .database import Base
from .shared.clock import utcnow


def generate_public_id():
    """Generate a unique public ID for secure public access"""
    return str(uuid.uuid4())


def enum_column(enum_cls, **kwargs):
    """Store an Enum by value in a plain VARCHAR so every dialect accepts it"""
    return Column(
        Enum(
            enum_cls,
            native_enum=False,
            length=32,
            values_callable=lambda members: [m.value for m in members],
            validate_strings=True,
        ),
        **kwargs,
    )


class ClientSource(str, enum.Enum):
    """How a trainer/facility and a client originally met"""

    EXISTING = "existing"
    MARKETPLACE = "marketplace"


class FeeType(str, enum.Enum):
    """Commission tier applied to a booking"""

    EXISTING = "existing"
    REPEAT = "repeat"
    MARKETPLACE = "marketplace"


class BookingStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    DECLINED = "declined"
    EXPIRED_CONFIRMED = "expired_confirmed"

    @property
    def is_terminal(self) -> bool:
        return self is not BookingStatus.PENDING


class ResolvedBy(str, enum.Enum):
    OWNER = "owner"
    SYSTEM = "system"


class ClientRelationship(Base):
    __tablename__ = "client_relationships"

    # Deterministic identity: one row per (trainer, client) pair
    trainer_id = Column(String(128), primary_key=True)
    client_id = Column(String(128), primary_key=True)
    client_email = Column(String(255), nullable=True, index=True)  # Stored lower-cased
    client_name = Column(String(255), nullable=True)
    source = enum_column(ClientSource, nullable=False)  # Set once at creation
    is_repeat = Column(Boolean, default=False, nullable=False)  # false -> true only
    first_marketplace_booking_id = Column(String(64), nullable=True)
    first_marketplace_booking_date = Column(DateTime, nullable=True)
    total_bookings = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    __table_args__ = (
        CheckConstraint("total_bookings >= 0", name="ck_client_relationships_total_bookings"),
        CheckConstraint(
            "NOT (source = 'existing' AND is_repeat)",
            name="ck_client_relationships_existing_not_repeat",
        ),
        Index("ix_client_relationships_trainer_updated", "trainer_id", "updated_at"),
    )

    @property
    def relationship_id(self) -> str:
        """Legacy document id used by the mobile app"""
        return f"{self.trainer_id}_{self.client_id}"

    def __repr__(self) -> str:
        return (
            f"<ClientRelationship {self.relationship_id} source={self.source.value} "
            f"repeat={self.is_repeat} bookings={self.total_bookings}>"
        )


class PendingBooking(Base):
    __tablename__ = "pending_bookings"

    id = Column(String(36), primary_key=True, default=generate_public_id)
    player_id = Column(String(128), nullable=False, index=True)
    player_name = Column(String(255), nullable=True)
    player_email = Column(String(255), nullable=True)
    facility_id = Column(String(128), nullable=False)
    facility_owner_id = Column(String(128), nullable=False, index=True)  # Trainer / owner
    court_id = Column(String(128), nullable=False)
    court_name = Column(String(255), nullable=True)
    date = Column(String(10), nullable=False)  # YYYY-MM-DD
    start_time = Column(String(5), nullable=False)  # HH:MM
    end_time = Column(String(5), nullable=False)  # HH:MM
    price = Column(Integer, nullable=False)  # Session price in cents
    status = enum_column(BookingStatus, default=BookingStatus.PENDING, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    expires_at = Column(DateTime, nullable=False)

    # Fee breakdown frozen at creation time
    fee_type = enum_column(FeeType, nullable=False)
    platform_fee_percent = Column(Integer, nullable=False)
    platform_fee_cents = Column(Integer, nullable=False)
    booking_fee_cents = Column(Integer, nullable=False)
    total_charge_cents = Column(Integer, nullable=False)
    payout_cents = Column(Integer, nullable=False)

    # Payment references supplied by whoever authorised the charge
    payment_intent_id = Column(String(255), nullable=True)
    payee_account_id = Column(String(255), nullable=True)  # Stripe Connect account

    # Audit metadata (the only fields written after the terminal transition)
    resolved_at = Column(DateTime, nullable=True)
    resolved_by = enum_column(ResolvedBy, nullable=True)
    decline_reason = Column(Text, nullable=True)
    payment_status = Column(String(50), nullable=True)  # payout_released, refunded, failed, skipped
    owner_notified = Column(Boolean, default=False, nullable=False)

    __table_args__ = (
        CheckConstraint("expires_at > created_at", name="ck_pending_bookings_expiry_window"),
        CheckConstraint("price > 0", name="ck_pending_bookings_price"),
        CheckConstraint(
            "payout_cents + platform_fee_cents = price", name="ck_pending_bookings_split"
        ),
        Index("ix_pending_bookings_status_expires", "status", "expires_at"),
        # At most one open request per court slot; resolved rows drop out of the index
        Index(
            "uq_pending_bookings_open_slot",
            "facility_id",
            "court_id",
            "date",
            "start_time",
            unique=True,
            postgresql_where=text("status = 'pending'"),
            sqlite_where=text("status = 'pending'"),
        ),
    )

    def __repr__(self) -> str:
        return f"<PendingBooking {self.id} status={self.status.value} expires={self.expires_at}>"


class ConfirmedBooking(Base):
    """Confirmed court booking written when a pending booking is accepted"""

    __tablename__ = "court_bookings"

    id = Column(String(36), primary_key=True, default=generate_public_id)
    pending_booking_id = Column(String(36), unique=True, nullable=False)
    player_id = Column(String(128), nullable=False, index=True)
    player_name = Column(String(255), nullable=True)
    facility_id = Column(String(128), nullable=False)
    facility_owner_id = Column(String(128), nullable=False)
    court_id = Column(String(128), nullable=False)
    court_name = Column(String(255), nullable=True)
    date = Column(String(10), nullable=False)
    start_time = Column(String(5), nullable=False)
    end_time = Column(String(5), nullable=False)
    price = Column(Integer, nullable=False)
    fee_type = enum_column(FeeType, nullable=False)
    total_charge_cents = Column(Integer, nullable=False)
    payout_cents = Column(Integer, nullable=False)
    auto_confirmed = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    confirmed_at = Column(DateTime, default=utcnow, nullable=False)

    __table_args__ = (
        Index("ix_court_bookings_slot", "facility_id", "court_id", "date", "start_time"),
    )


class BlockedSlot(Base):
    __tablename__ = "blocked_slots"

    id = Column(Integer, primary_key=True, index=True)
    facility_id = Column(String(128), nullable=False)
    facility_owner_id = Column(String(128), nullable=False)
    court_id = Column(String(128), nullable=False)
    court_name = Column(String(255), nullable=True)
    date = Column(String(10), nullable=False)
    start_time = Column(String(5), nullable=False)
    end_time = Column(String(5), nullable=False)
    reason = Column(Text, nullable=True)
    blocked_at = Column(DateTime, default=utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint(
            "facility_id", "court_id", "date", "start_time", name="uq_blocked_slots_slot"
        ),
    )


class DeviceToken(Base):
    """Push token registered by the mobile app for a user"""

    __tablename__ = "device_tokens"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(128), nullable=False, index=True)
    token = Column(String(512), nullable=False)
    platform = Column(String(20), nullable=True)  # ios, android, web
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    __table_args__ = (UniqueConstraint("user_id", "token", name="uq_device_tokens_user_token"),)
