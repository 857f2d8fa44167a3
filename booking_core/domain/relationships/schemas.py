"""Relationship domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator

from ...models import ClientRelationship, ClientSource
from ...shared.validators import validate_email, validate_id


class ExistingClientCreate(BaseModel):
    """Schema for a trainer importing one of their own clients"""

    client_id: str
    client_email: Optional[str] = None
    client_name: Optional[str] = None

    @field_validator("client_id")
    @classmethod
    def validate_client_id(cls, v):
        return validate_id(v, "client_id")

    @field_validator("client_email")
    @classmethod
    def validate_client_email(cls, v):
        return validate_email(v)


class RelationshipResponse(BaseModel):
    """Schema for client relationship response"""

    model_config = ConfigDict(from_attributes=True)

    relationship_id: str
    trainer_id: str
    client_id: str
    client_email: Optional[str] = None
    client_name: Optional[str] = None
    source: ClientSource
    is_repeat: bool
    first_marketplace_booking_id: Optional[str] = None
    first_marketplace_booking_date: Optional[datetime] = None
    total_bookings: int
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_relationship(cls, relationship: ClientRelationship) -> "RelationshipResponse":
        return cls.model_validate(relationship)


class ExistingClientCheckResponse(BaseModel):
    email: str
    is_existing_client: bool


class ExistingClientResponse(RelationshipResponse):
    """Relationship after an import; ``imported`` is False when the client came through the marketplace"""

    imported: bool
    message: Optional[str] = None

    @classmethod
    def from_import(cls, relationship: ClientRelationship) -> "ExistingClientResponse":
        response = RelationshipResponse.from_relationship(relationship).model_dump()
        if relationship.source == ClientSource.EXISTING:
            return cls(**response, imported=True)
        return cls(
            **response,
            imported=False,
            message=(
                "Client first booked through the marketplace and keeps marketplace pricing"
            ),
        )
