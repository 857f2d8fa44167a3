from datetime import timedelta

import pytest

from booking_core.domain.bookings.schemas import BlockSlotRequest
from booking_core.domain.bookings.service import BookingService
from booking_core.models import (
    BookingStatus,
    ClientRelationship,
    ClientSource,
    FeeType,
    PendingBooking,
)
from booking_core.shared.errors import SlotUnavailable, ValidationError


def test_new_client_books_at_marketplace_tier(booking_service, relationships, notifier, clock, make_details):
    booking = booking_service.create_pending_booking(make_details())

    assert booking.status == BookingStatus.PENDING
    assert booking.fee_type == FeeType.MARKETPLACE
    assert booking.total_charge_cents == 10300
    assert booking.expires_at == clock.now + timedelta(minutes=15)
    assert booking.owner_notified is True
    assert notifier.sent == [("requested", booking.id)]

    relationship = relationships.get("owner-1", "player-1")
    assert relationship.source == ClientSource.MARKETPLACE
    assert relationship.total_bookings == 1
    assert relationship.first_marketplace_booking_id == booking.id
    assert relationship.client_email == "sam@example.com"


def test_existing_client_books_at_existing_tier(booking_service, relationships, make_details):
    relationships.mark_as_existing_client("owner-1", "player-1")

    booking = booking_service.create_pending_booking(make_details())

    assert booking.fee_type == FeeType.EXISTING
    assert booking.platform_fee_cents == 0
    assert booking.payout_cents == 10000
    assert booking.total_charge_cents == 10100
    assert relationships.get("owner-1", "player-1").total_bookings == 0


def test_confirmed_marketplace_client_becomes_repeat(booking_service, relationships, make_details):
    first = booking_service.create_pending_booking(make_details())
    assert first.fee_type == FeeType.MARKETPLACE

    assert booking_service.confirm_booking(first.id, "owner-1").ok
    assert relationships.get("owner-1", "player-1").is_repeat is True

    second = booking_service.create_pending_booking(make_details(date="2025-03-09"))
    assert second.fee_type == FeeType.REPEAT
    assert second.platform_fee_cents == 500
    assert second.total_charge_cents == 10100
    assert relationships.get("owner-1", "player-1").total_bookings == 2


def test_second_booking_before_first_confirms_is_still_marketplace(booking_service, make_details):
    booking_service.create_pending_booking(make_details())

    second = booking_service.create_pending_booking(make_details(date="2025-03-09"))

    assert second.fee_type == FeeType.MARKETPLACE


def test_pending_slot_is_unavailable(booking_service, make_details):
    booking_service.create_pending_booking(make_details())

    with pytest.raises(SlotUnavailable) as exc_info:
        booking_service.create_pending_booking(make_details(player_id="player-2"))
    assert exc_info.value.details == {"reason": "pending"}


def test_confirmed_slot_is_unavailable(booking_service, make_details):
    booking = booking_service.create_pending_booking(make_details())
    booking_service.confirm_booking(booking.id, "owner-1")

    with pytest.raises(SlotUnavailable):
        booking_service.create_pending_booking(make_details(player_id="player-2"))


def test_declined_slot_can_be_requested_again(booking_service, make_details):
    booking = booking_service.create_pending_booking(make_details())
    booking_service.decline_booking(booking.id, "owner-1", "Rain")

    retry = booking_service.create_pending_booking(make_details(player_id="player-2"))

    assert retry.status == BookingStatus.PENDING


def test_failed_notification_still_creates_booking(db, booking_service, notifier, make_details):
    notifier.fail = True

    booking = booking_service.create_pending_booking(make_details())

    stored = db.get(PendingBooking, booking.id, populate_existing=True)
    assert stored.status == BookingStatus.PENDING
    assert stored.owner_notified is False


def test_window_must_be_positive(booking_service, make_details):
    with pytest.raises(ValidationError):
        booking_service.create_pending_booking(make_details(), window=timedelta(seconds=-1))


def test_list_pending_for_owner(booking_service, make_details, clock):
    first = booking_service.create_pending_booking(make_details(court_id="court-1"))
    clock.advance(minutes=1)
    second = booking_service.create_pending_booking(make_details(court_id="court-2"))
    booking_service.create_pending_booking(
        make_details(facility_owner_id="owner-2", facility_id="facility-2")
    )
    first_id, second_id = first.id, second.id
    booking_service.decline_booking(first_id, "owner-1")

    pending = booking_service.list_pending_for_owner("owner-1")

    assert [b.id for b in pending] == [second_id]
    assert booking_service.list_pending_for_owner("owner-1", facility_id="other") == []


def test_block_slot_declines_pending_requests(db, booking_service, payments, make_details):
    booking = booking_service.create_pending_booking(make_details())
    booking_id = booking.id

    declined = booking_service.block_slot(
        BlockSlotRequest(
            facility_id="facility-1",
            court_id="court-1",
            date="2025-03-02",
            start_time="10:00",
            end_time="11:00",
        ),
        owner_id="owner-1",
    )

    assert declined == 1
    stored = db.get(PendingBooking, booking_id, populate_existing=True)
    assert stored.status == BookingStatus.DECLINED
    assert stored.decline_reason == "Slot blocked by facility"
    assert payments.refunds == [(booking_id, 10300, "Slot blocked by facility")]

    with pytest.raises(SlotUnavailable) as exc_info:
        booking_service.create_pending_booking(make_details(player_id="player-2"))
    assert exc_info.value.details == {"reason": "blocked"}


def test_block_slot_twice(booking_service):
    request = BlockSlotRequest(
        facility_id="facility-1",
        court_id="court-1",
        date="2025-03-02",
        start_time="10:00",
        end_time="11:00",
    )
    assert booking_service.block_slot(request, owner_id="owner-1") == 0

    with pytest.raises(SlotUnavailable):
        booking_service.block_slot(request, owner_id="owner-1")


def _run_first(service, monkeypatch, interleaved):
    """Run ``interleaved`` after ``service`` has passed its slot check but before it inserts"""
    calculate_fees = service.fees.calculate_fees

    def calculate_then_interleave(*args, **kwargs):
        interleaved()
        return calculate_fees(*args, **kwargs)

    monkeypatch.setattr(service.fees, "calculate_fees", calculate_then_interleave)


def test_concurrent_requests_for_one_slot_leave_one_pending(
    db, booking_service, notifier, payments, clock, make_details, monkeypatch
):
    other_service = BookingService(db, notifier, payments, clock=clock, window_minutes=15)
    _run_first(
        booking_service,
        monkeypatch,
        lambda: other_service.create_pending_booking(make_details(player_id="player-2")),
    )

    with pytest.raises(SlotUnavailable) as exc_info:
        booking_service.create_pending_booking(make_details())
    assert exc_info.value.details == {"reason": "pending"}

    pending = db.query(PendingBooking).filter(PendingBooking.status == BookingStatus.PENDING).all()
    assert [b.player_id for b in pending] == ["player-2"]
    assert db.query(ClientRelationship).filter_by(client_id="player-1").count() == 0


def test_request_racing_a_block_is_declined(
    db, booking_service, notifier, payments, clock, make_details, monkeypatch
):
    other_service = BookingService(db, notifier, payments, clock=clock, window_minutes=15)
    request = BlockSlotRequest(
        facility_id="facility-1",
        court_id="court-1",
        date="2025-03-02",
        start_time="10:00",
        end_time="11:00",
    )
    blocked = []
    _run_first(
        booking_service,
        monkeypatch,
        lambda: blocked.append(other_service.block_slot(request, owner_id="owner-1")),
    )

    with pytest.raises(SlotUnavailable) as exc_info:
        booking_service.create_pending_booking(make_details())
    assert exc_info.value.details == {"reason": "blocked"}

    # The block committed before the request inserted, so it declined nothing itself
    assert blocked == [0]
    stored = db.query(PendingBooking).filter(PendingBooking.player_id == "player-1").one()
    assert stored.status == BookingStatus.DECLINED
    assert stored.decline_reason == "Slot blocked by facility"
    assert payments.refunds == [(stored.id, 10300, "Slot blocked by facility")]
    assert notifier.events() == ["declined"]
