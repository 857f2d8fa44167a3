"""
Relationships Domain

Durable trainer/client relationship records:
- repository.py: atomic upserts and conditional updates
- service.py: RelationshipService
- router.py: trainer-facing endpoints
"""

from .service import RelationshipService

__all__ = ["RelationshipService"]
