"""
Fees Domain

Commission tiers and payout math:
- tiers.py: resolve_tier (relationship state → fee tier)
- calculator.py: calculate (price + tier → FeeCalculation)
- service.py: FeeService (store-backed lookups)
- router.py: quote endpoints
"""

from .calculator import FEE_SCHEDULE, FeeCalculation, calculate
from .tiers import resolve_tier

__all__ = ["FEE_SCHEDULE", "FeeCalculation", "calculate", "resolve_tier"]
