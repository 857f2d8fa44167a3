import os
from datetime import datetime, timedelta

import pytest

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("DB_LOG_SLOW_QUERIES", "false")

from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from booking_core import models  # noqa: E402,F401
from booking_core.database import Base  # noqa: E402
from booking_core.domain.bookings.lifecycle import BookingLifecycle  # noqa: E402
from booking_core.domain.bookings.schemas import BookingDetails  # noqa: E402
from booking_core.domain.bookings.service import BookingService  # noqa: E402
from booking_core.domain.relationships.service import RelationshipService  # noqa: E402
from booking_core.services.notification_service import Notifier  # noqa: E402
from booking_core.services.payment_service import PaymentGateway  # noqa: E402
from booking_core.shared.errors import PaymentFailed  # noqa: E402

TRAINER_ID = "owner-1"
PLAYER_ID = "player-1"
START = datetime(2025, 3, 1, 12, 0, 0)


class FakeClock:
    """Controllable replacement for shared.clock.utcnow"""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


class FakeNotifier(Notifier):
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.sent = []

    def _record(self, event, booking, *args):
        if self.fail:
            raise RuntimeError("push service down")
        self.sent.append((event, booking.id, *args))

    def booking_requested(self, booking):
        self._record("requested", booking)

    def booking_confirmed(self, booking):
        self._record("confirmed", booking)

    def booking_declined(self, booking, reason):
        self._record("declined", booking, reason)

    def booking_auto_confirmed(self, booking):
        self._record("auto_confirmed", booking)

    def events(self):
        return [event for event, *_ in self.sent]


class FakePayments(PaymentGateway):
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.payouts = []
        self.refunds = []

    def release_payout(self, booking):
        if self.fail:
            raise PaymentFailed("Payout failed: card_declined")
        self.payouts.append((booking.id, booking.payout_cents))
        return "payout_released"

    def refund(self, booking, reason):
        if self.fail:
            raise PaymentFailed("Refund failed: charge_expired")
        self.refunds.append((booking.id, booking.total_charge_cents, reason))
        return "refunded"


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    yield session
    session.close()


@pytest.fixture
def clock():
    return FakeClock(START)


@pytest.fixture
def notifier():
    return FakeNotifier()


@pytest.fixture
def payments():
    return FakePayments()


@pytest.fixture
def relationships(db, clock):
    return RelationshipService(db, clock=clock)


@pytest.fixture
def lifecycle(db, relationships, notifier, payments, clock):
    return BookingLifecycle(db, relationships, notifier, payments, clock=clock)


@pytest.fixture
def booking_service(db, notifier, payments, clock):
    return BookingService(db, notifier, payments, clock=clock, window_minutes=15)


@pytest.fixture
def make_details():
    """Factory for a valid booking request, overridable per field"""

    def _make(**overrides) -> BookingDetails:
        data = {
            "player_id": PLAYER_ID,
            "player_name": "Sam Player",
            "player_email": "Sam@Example.com",
            "facility_id": "facility-1",
            "facility_owner_id": TRAINER_ID,
            "court_id": "court-1",
            "court_name": "Court 1",
            "date": "2025-03-02",
            "start_time": "10:00",
            "end_time": "11:00",
            "price": 10000,
            "payment_intent_id": "pi_123",
            "payee_account_id": "acct_123",
        }
        data.update(overrides)
        return BookingDetails(**data)

    return _make
