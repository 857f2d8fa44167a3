"""Fee service - resolves tiers and fee breakdowns for a trainer/client pair"""

import logging

from ...models import FeeType
from ..relationships.service import RelationshipService
from .calculator import FeeCalculation, calculate
from .tiers import resolve_tier

logger = logging.getLogger(__name__)


class FeeService:
    """Service layer combining the relationship store with the pure fee functions"""

    def __init__(self, relationships: RelationshipService):
        self.relationships = relationships

    def resolve_tier(self, trainer_id: str, client_id: str) -> FeeType:
        """Determine the fee tier for a booking between trainer and client"""
        return resolve_tier(self.relationships.find(trainer_id, client_id))

    def calculate_fees(self, trainer_id: str, client_id: str, price_cents: int) -> FeeCalculation:
        """Calculate the full fee breakdown for a prospective booking"""
        fee_type = self.resolve_tier(trainer_id, client_id)
        fees = calculate(price_cents, fee_type)
        logger.debug(
            f"💰 {trainer_id}_{client_id}: {fee_type.value} tier, "
            f"total={fees.total_charge_cents} payout={fees.trainer_payout_cents}"
        )
        return fees
