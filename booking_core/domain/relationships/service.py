"""Relationship service - Business logic for trainer/client relationships"""

import logging
from typing import Callable, Optional

from sqlalchemy.orm import Session

from ...models import ClientRelationship, ClientSource
from ...shared.clock import utcnow
from ...shared.errors import NotFound
from ...shared.validators import validate_email, validate_id
from .repository import RelationshipRepository

logger = logging.getLogger(__name__)


class RelationshipService:
    """
    Durable record of how each client was acquired by a trainer/facility.

    - "existing" = trainer's pre-existing client (0% platform fee)
    - "marketplace" = found the trainer through the marketplace (15%)
    - after the first confirmed marketplace booking the relationship is
      flagged repeat (5%)

    Methods that write take ``commit``; booking creation passes False so the
    relationship update lands in the same transaction as the booking.
    """

    def __init__(self, db: Session, clock: Callable = utcnow):
        self.db = db
        self.repo = RelationshipRepository()
        self.clock = clock

    def find(self, trainer_id: str, client_id: str) -> Optional[ClientRelationship]:
        """Get the relationship between a trainer and client, or None"""
        validate_id(trainer_id, "trainer_id")
        validate_id(client_id, "client_id")
        return self.repo.get(self.db, trainer_id, client_id)

    def get(self, trainer_id: str, client_id: str) -> ClientRelationship:
        """Get the relationship between a trainer and client"""
        relationship = self.find(trainer_id, client_id)
        if relationship is None:
            raise NotFound(
                "Client relationship not found",
                {"trainer_id": trainer_id, "client_id": client_id},
            )
        return relationship

    def record_marketplace_booking(
        self,
        trainer_id: str,
        client_id: str,
        booking_id: str,
        client_email: Optional[str] = None,
        client_name: Optional[str] = None,
        commit: bool = True,
    ) -> None:
        """
        Record a booking created through the marketplace.
        Creates the relationship on the first booking, otherwise bumps the counter.
        Never touches is_repeat.
        """
        validate_id(trainer_id, "trainer_id")
        validate_id(client_id, "client_id")
        validate_id(booking_id, "booking_id")

        self.repo.upsert_marketplace_booking(
            self.db,
            trainer_id,
            client_id,
            booking_id,
            validate_email(client_email),
            client_name,
            self.clock(),
        )
        if commit:
            self.db.commit()
        logger.info(f"📈 Recorded marketplace booking {booking_id} for {trainer_id}_{client_id}")

    def mark_as_repeat_client(self, trainer_id: str, client_id: str, commit: bool = True) -> bool:
        """
        Mark relationship as repeat after the first completed marketplace booking.

        Returns:
            True if this call flipped the flag, False if it was already repeat
            or the client is an existing client

        Raises:
            NotFound: If no relationship exists for the pair
        """
        flipped = self.repo.flag_repeat(self.db, trainer_id, client_id, self.clock())
        if not flipped and self.repo.get(self.db, trainer_id, client_id) is None:
            raise NotFound(
                "Client relationship not found",
                {"trainer_id": trainer_id, "client_id": client_id},
            )
        if commit:
            self.db.commit()

        if flipped:
            logger.info(f"⭐ Marked as repeat: {trainer_id}_{client_id}")
        return flipped

    def mark_as_existing_client(
        self,
        trainer_id: str,
        client_id: str,
        client_email: Optional[str] = None,
        client_name: Optional[str] = None,
    ) -> ClientRelationship:
        """
        Mark a client as the trainer's pre-existing client.
        Safe to call repeatedly, e.g. when re-importing a client list.
        """
        validate_id(trainer_id, "trainer_id")
        validate_id(client_id, "client_id")

        self.repo.upsert_existing_client(
            self.db, trainer_id, client_id, validate_email(client_email), client_name, self.clock()
        )
        self.db.commit()

        relationship = self.repo.get(self.db, trainer_id, client_id)
        if relationship.source != ClientSource.EXISTING:
            logger.warning(
                f"⚠️ {trainer_id}_{client_id} already came through the marketplace; "
                f"source stays {relationship.source.value}"
            )
        else:
            logger.info(f"✅ Marked as existing client: {trainer_id}_{client_id}")
        return relationship

    def find_existing_by_contact(self, trainer_id: str, email: str) -> bool:
        """Check if an email belongs to an existing client of this trainer"""
        validate_id(trainer_id, "trainer_id")
        email = validate_email(email)
        if not email:
            return False
        return self.repo.exists_existing_by_email(self.db, trainer_id, email)

    def list_for_trainer(self, trainer_id: str) -> list[ClientRelationship]:
        """Get all relationships for a trainer dashboard"""
        validate_id(trainer_id, "trainer_id")
        return self.repo.list_for_trainer(self.db, trainer_id)
