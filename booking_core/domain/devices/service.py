"""Device service - Business logic for push token registration"""

import logging
from typing import Callable, Optional

from sqlalchemy.orm import Session

from ...models import DeviceToken
from ...shared.clock import utcnow
from ...shared.errors import NotFound
from ...shared.validators import validate_id
from .repository import DeviceRepository

logger = logging.getLogger(__name__)


class DeviceService:
    """Keeps the device_tokens table FirebaseNotifier delivers to"""

    def __init__(self, db: Session, clock: Callable = utcnow):
        self.db = db
        self.repo = DeviceRepository()
        self.clock = clock

    def register(self, user_id: str, token: str, platform: Optional[str] = None) -> DeviceToken:
        """Register a push token; registering the same token again is a no-op refresh"""
        validate_id(user_id, "user_id")
        try:
            self.repo.upsert(self.db, user_id, token, platform, self.clock())
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(f"📱 Registered {platform or 'unknown'} device for {user_id}")
        return self.repo.get(self.db, user_id, token)

    def list_for_user(self, user_id: str) -> list[DeviceToken]:
        validate_id(user_id, "user_id")
        return self.repo.list_for_user(self.db, user_id)

    def unregister(self, user_id: str, token: str) -> None:
        """Forget a token, e.g. on sign-out"""
        validate_id(user_id, "user_id")
        removed = self.repo.delete(self.db, user_id, token)
        self.db.commit()
        if not removed:
            raise NotFound("Device not registered", {"field": "token"})
        logger.info(f"🗑️ Unregistered device for {user_id}")
