"""Relationship repository - Database operations for client relationships"""

from datetime import datetime
from typing import Optional

from sqlalchemy import func, update
from sqlalchemy.orm import Session

from ...database import dialect_insert, store_operation
from ...models import ClientRelationship, ClientSource


class RelationshipRepository:
    """Repository for client relationship database operations"""

    @staticmethod
    @store_operation
    def get(db: Session, trainer_id: str, client_id: str) -> Optional[ClientRelationship]:
        """Get the relationship for a trainer/client pair"""
        return db.get(ClientRelationship, (trainer_id, client_id), populate_existing=True)

    @staticmethod
    @store_operation
    def upsert_marketplace_booking(
        db: Session,
        trainer_id: str,
        client_id: str,
        booking_id: str,
        client_email: Optional[str],
        client_name: Optional[str],
        now: datetime,
    ) -> None:
        """
        Create a marketplace relationship or bump its booking counter, atomically.
        Does not commit; callers own the transaction.
        """
        insert = dialect_insert(db)
        stmt = insert(ClientRelationship).values(
            trainer_id=trainer_id,
            client_id=client_id,
            client_email=client_email,
            client_name=client_name,
            source=ClientSource.MARKETPLACE,
            is_repeat=False,
            first_marketplace_booking_id=booking_id,
            first_marketplace_booking_date=now,
            total_bookings=1,
            created_at=now,
            updated_at=now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[ClientRelationship.trainer_id, ClientRelationship.client_id],
            set_={
                "total_bookings": ClientRelationship.total_bookings + 1,
                "client_email": func.coalesce(stmt.excluded.client_email, ClientRelationship.client_email),
                "client_name": func.coalesce(stmt.excluded.client_name, ClientRelationship.client_name),
                "updated_at": stmt.excluded.updated_at,
            },
        )
        db.execute(stmt)

    @staticmethod
    @store_operation
    def upsert_existing_client(
        db: Session,
        trainer_id: str,
        client_id: str,
        client_email: Optional[str],
        client_name: Optional[str],
        now: datetime,
    ) -> None:
        """
        Create an existing-client relationship, or refresh contact info on one.
        Marketplace-sourced rows are left untouched.
        """
        insert = dialect_insert(db)
        stmt = insert(ClientRelationship).values(
            trainer_id=trainer_id,
            client_id=client_id,
            client_email=client_email,
            client_name=client_name,
            source=ClientSource.EXISTING,
            is_repeat=False,
            first_marketplace_booking_id=None,
            first_marketplace_booking_date=None,
            total_bookings=0,
            created_at=now,
            updated_at=now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[ClientRelationship.trainer_id, ClientRelationship.client_id],
            set_={
                "client_email": func.coalesce(stmt.excluded.client_email, ClientRelationship.client_email),
                "client_name": func.coalesce(stmt.excluded.client_name, ClientRelationship.client_name),
                "updated_at": stmt.excluded.updated_at,
            },
            where=ClientRelationship.source == ClientSource.EXISTING,
        )
        db.execute(stmt)

    @staticmethod
    @store_operation
    def flag_repeat(db: Session, trainer_id: str, client_id: str, now: datetime) -> bool:
        """
        Set is_repeat on a marketplace relationship that is not yet repeat.
        Returns True only for the call that actually flipped the flag.
        """
        result = db.execute(
            update(ClientRelationship)
            .where(
                ClientRelationship.trainer_id == trainer_id,
                ClientRelationship.client_id == client_id,
                ClientRelationship.source == ClientSource.MARKETPLACE,
                ClientRelationship.is_repeat.is_(False),
            )
            .values(is_repeat=True, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    @staticmethod
    @store_operation
    def exists_existing_by_email(db: Session, trainer_id: str, email: str) -> bool:
        """Check whether an existing-client relationship carries this email"""
        return (
            db.query(ClientRelationship.client_id)
            .filter(
                ClientRelationship.trainer_id == trainer_id,
                func.lower(ClientRelationship.client_email) == email.lower(),
                ClientRelationship.source == ClientSource.EXISTING,
            )
            .first()
            is not None
        )

    @staticmethod
    @store_operation
    def list_for_trainer(db: Session, trainer_id: str) -> list[ClientRelationship]:
        """Get all relationships for a trainer, most recently updated first"""
        return (
            db.query(ClientRelationship)
            .filter(ClientRelationship.trainer_id == trainer_id)
            .order_by(ClientRelationship.updated_at.desc())
            .all()
        )
