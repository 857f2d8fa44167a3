"""Device repository - Database operations for push tokens"""

from datetime import datetime
from typing import Optional

from sqlalchemy import delete
from sqlalchemy.orm import Session

from ...database import dialect_insert, store_operation
from ...models import DeviceToken


class DeviceRepository:
    """Repository for device token database operations"""

    @staticmethod
    @store_operation
    def upsert(
        db: Session, user_id: str, token: str, platform: Optional[str], now: datetime
    ) -> None:
        """Register a token for a user, refreshing platform and timestamp if already known"""
        insert = dialect_insert(db)
        stmt = insert(DeviceToken).values(
            user_id=user_id, token=token, platform=platform, created_at=now, updated_at=now
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[DeviceToken.user_id, DeviceToken.token],
            set_={
                "platform": stmt.excluded.platform,
                "updated_at": stmt.excluded.updated_at,
            },
        )
        db.execute(stmt)

    @staticmethod
    @store_operation
    def get(db: Session, user_id: str, token: str) -> Optional[DeviceToken]:
        return (
            db.query(DeviceToken)
            .filter(DeviceToken.user_id == user_id, DeviceToken.token == token)
            .populate_existing()
            .first()
        )

    @staticmethod
    @store_operation
    def list_for_user(db: Session, user_id: str) -> list[DeviceToken]:
        return (
            db.query(DeviceToken)
            .filter(DeviceToken.user_id == user_id)
            .order_by(DeviceToken.id.asc())
            .all()
        )

    @staticmethod
    @store_operation
    def delete(db: Session, user_id: str, token: str) -> int:
        result = db.execute(
            delete(DeviceToken).where(DeviceToken.user_id == user_id, DeviceToken.token == token)
        )
        return result.rowcount
