"""Device domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, field_validator

from ...shared.errors import ValidationError


class DeviceRegister(BaseModel):
    """Schema for the mobile app registering its FCM token"""

    token: str
    platform: Optional[Literal["ios", "android", "web"]] = None

    @field_validator("token")
    @classmethod
    def validate_token(cls, v):
        v = v.strip()
        if not v or len(v) > 512:
            raise ValidationError("Device token must be 1-512 characters", {"field": "token"})
        return v


class DeviceResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    token: str
    platform: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
