from booking_core.domain.fees.service import FeeService
from booking_core.domain.fees.tiers import resolve_tier
from booking_core.models import ClientRelationship, ClientSource, FeeType


def test_no_relationship_is_marketplace():
    assert resolve_tier(None) == FeeType.MARKETPLACE


def test_existing_client():
    relationship = ClientRelationship(source=ClientSource.EXISTING, is_repeat=False)
    assert resolve_tier(relationship) == FeeType.EXISTING


def test_repeat_marketplace_client():
    relationship = ClientRelationship(source=ClientSource.MARKETPLACE, is_repeat=True)
    assert resolve_tier(relationship) == FeeType.REPEAT


def test_first_time_marketplace_client():
    relationship = ClientRelationship(source=ClientSource.MARKETPLACE, is_repeat=False)
    assert resolve_tier(relationship) == FeeType.MARKETPLACE


def test_existing_source_wins_over_repeat_flag():
    relationship = ClientRelationship(source=ClientSource.EXISTING, is_repeat=True)
    assert resolve_tier(relationship) == FeeType.EXISTING


def test_fee_service_reads_relationship_store(relationships):
    fees = FeeService(relationships)
    assert fees.resolve_tier("owner-1", "player-1") == FeeType.MARKETPLACE

    relationships.mark_as_existing_client("owner-1", "player-1")

    assert fees.resolve_tier("owner-1", "player-1") == FeeType.EXISTING
    quote = fees.calculate_fees("owner-1", "player-1", 10000)
    assert quote.platform_fee_amount_cents == 0
    assert quote.total_charge_cents == 10100


def test_booking_count_does_not_make_a_repeat_client():
    relationship = ClientRelationship(
        source=ClientSource.MARKETPLACE, is_repeat=False, total_bookings=3
    )
    assert resolve_tier(relationship) == FeeType.MARKETPLACE
