"""Fee tier resolution - maps relationship state to a commission tier"""

from typing import Optional

from ...models import ClientRelationship, ClientSource, FeeType


def resolve_tier(relationship: Optional[ClientRelationship]) -> FeeType:
    """
    Determine the fee tier for a booking.

    Priority:
    - No relationship → marketplace (15%)
    - Trainer's pre-existing client → existing (0%)
    - Completed a marketplace booking before → repeat (5%)
    - Relationship exists but first booking not completed → marketplace (15%)

    Repeat status comes from ``is_repeat`` only. ``total_bookings`` is not
    consulted: a second booking created before the first one
    completes is still charged at the marketplace tier.
    """
    if relationship is None:
        return FeeType.MARKETPLACE

    if relationship.source == ClientSource.EXISTING:
        return FeeType.EXISTING

    if relationship.is_repeat:
        return FeeType.REPEAT

    return FeeType.MARKETPLACE
