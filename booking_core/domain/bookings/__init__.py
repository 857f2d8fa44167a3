"""
Bookings Domain

Pending booking requests and their confirmation window:
- lifecycle.py: BookingLifecycle state machine (pending → terminal)
- service.py: BookingService (creation, owner responses, slot blocking)
- router.py: player and facility owner endpoints
"""

from .lifecycle import BookingLifecycle, TransitionError, TransitionResult
from .service import BookingService

__all__ = ["BookingLifecycle", "BookingService", "TransitionError", "TransitionResult"]
