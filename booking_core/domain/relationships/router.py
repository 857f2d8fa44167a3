"""Relationship router - FastAPI endpoints for a trainer's client relationships"""

import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_uid
from ...database import get_db
from .schemas import (
    ExistingClientCheckResponse,
    ExistingClientCreate,
    ExistingClientResponse,
    RelationshipResponse,
)
from .service import RelationshipService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/relationships", tags=["Relationships"])


def get_relationship_service(db: Session = Depends(get_db)) -> RelationshipService:
    """Dependency injection for RelationshipService"""
    return RelationshipService(db)


@router.get("", response_model=list[RelationshipResponse])
async def list_relationships(
    uid: str = Depends(get_current_uid),
    service: RelationshipService = Depends(get_relationship_service),
):
    """All client relationships of the current trainer"""
    return [RelationshipResponse.from_relationship(r) for r in service.list_for_trainer(uid)]


@router.post("/existing", response_model=ExistingClientResponse)
async def mark_existing_client(
    data: ExistingClientCreate,
    uid: str = Depends(get_current_uid),
    service: RelationshipService = Depends(get_relationship_service),
):
    """Mark a client as the current trainer's own (0% platform fee)"""
    logger.info(f"📥 Importing existing client {data.client_id} for trainer {uid}")
    relationship = service.mark_as_existing_client(
        uid, data.client_id, client_email=data.client_email, client_name=data.client_name
    )
    return ExistingClientResponse.from_import(relationship)


@router.get("/existing/check", response_model=ExistingClientCheckResponse)
async def check_existing_client(
    email: str = Query(...),
    uid: str = Depends(get_current_uid),
    service: RelationshipService = Depends(get_relationship_service),
):
    """Whether an email already belongs to one of the current trainer's existing clients"""
    return ExistingClientCheckResponse(
        email=email, is_existing_client=service.find_existing_by_contact(uid, email)
    )
