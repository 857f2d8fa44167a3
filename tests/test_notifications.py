from types import SimpleNamespace

import pytest

from booking_core.domain.bookings.service import BookingService
from booking_core.domain.devices.service import DeviceService
from booking_core.services import notification_service
from booking_core.services.notification_service import FirebaseNotifier, Notifier
from booking_core.services.payment_service import PaymentGateway
from booking_core.shared.errors import NotFound


@pytest.fixture
def devices(db, clock):
    return DeviceService(db, clock=clock)


@pytest.fixture
def sent_messages(monkeypatch):
    """Capture FCM multicasts instead of calling Firebase"""
    sent = []
    firebase_app = object()

    def send_each_for_multicast(message, app=None):
        assert app is firebase_app
        sent.append(message)
        return SimpleNamespace(success_count=len(message.tokens), failure_count=0)

    monkeypatch.setattr(notification_service, "get_firebase_app", lambda: firebase_app)
    monkeypatch.setattr(
        notification_service.messaging, "send_each_for_multicast", send_each_for_multicast
    )
    return sent


def test_registered_token_receives_push(db, devices, sent_messages):
    devices.register("owner-1", "fcm-token-1", "ios")

    delivered = FirebaseNotifier(db)._send(
        "owner-1", title="Hello", body="World", data={"type": "test", "count": 2}
    )

    assert delivered == 1
    [message] = sent_messages
    assert message.tokens == ["fcm-token-1"]
    assert message.notification.title == "Hello"
    assert message.notification.body == "World"
    assert message.data == {"type": "test", "count": "2"}


def test_no_registered_token_sends_nothing(db, sent_messages):
    assert FirebaseNotifier(db)._send("owner-1", title="Hello", body="World", data={}) == 0
    assert sent_messages == []


def test_owner_devices_hear_about_new_request(
    db, devices, payments, clock, make_details, sent_messages
):
    devices.register("owner-1", "owner-phone")
    devices.register("owner-1", "owner-tablet")
    devices.register("player-1", "player-phone")
    service = BookingService(db, FirebaseNotifier(db), payments, clock=clock)

    booking = service.create_pending_booking(make_details())

    [message] = sent_messages
    assert message.tokens == ["owner-phone", "owner-tablet"]
    assert message.notification.title == "🎾 New Booking Request!"
    assert message.data["bookingId"] == booking.id
    assert booking.owner_notified is True


def test_registering_same_token_twice_keeps_one_row(devices, clock):
    devices.register("owner-1", "fcm-token-1", "android")
    clock.advance(minutes=5)
    device = devices.register("owner-1", "fcm-token-1", "ios")

    assert [d.token for d in devices.list_for_user("owner-1")] == ["fcm-token-1"]
    assert device.platform == "ios"
    assert device.updated_at == clock.now


def test_unregister_device(devices):
    devices.register("owner-1", "fcm-token-1")

    devices.unregister("owner-1", "fcm-token-1")

    assert devices.list_for_user("owner-1") == []
    with pytest.raises(NotFound):
        devices.unregister("owner-1", "fcm-token-1")


def test_incomplete_collaborators_cannot_be_built():
    class HalfNotifier(Notifier):
        def booking_requested(self, booking):
            pass

    class PayoutsOnly(PaymentGateway):
        def release_payout(self, booking):
            return "payout_released"

    with pytest.raises(TypeError):
        HalfNotifier()
    with pytest.raises(TypeError):
        PayoutsOnly()
