"""Fee router - tier lookups and price quotes for the booking screen"""

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ...auth import get_current_uid
from ...database import get_db
from ...models import FeeType
from ..relationships.service import RelationshipService
from .calculator import FeeCalculation
from .service import FeeService

router = APIRouter(prefix="/fees", tags=["Fees"])


class FeeTierResponse(BaseModel):
    trainer_id: str
    client_id: str
    fee_type: FeeType


class FeeQuoteResponse(FeeCalculation):
    display: dict[str, str]


def get_fee_service(db: Session = Depends(get_db)) -> FeeService:
    """Dependency injection for FeeService"""
    return FeeService(RelationshipService(db))


@router.get("/tier", response_model=FeeTierResponse)
async def get_fee_tier(
    trainer_id: str = Query(...),
    client_id: str = Query(None),
    uid: str = Depends(get_current_uid),
    service: FeeService = Depends(get_fee_service),
):
    """Fee tier for a trainer/client pair (client defaults to the caller)"""
    client_id = client_id or uid
    return FeeTierResponse(
        trainer_id=trainer_id,
        client_id=client_id,
        fee_type=service.resolve_tier(trainer_id, client_id),
    )


@router.get("/quote", response_model=FeeQuoteResponse)
async def get_fee_quote(
    trainer_id: str = Query(...),
    price: int = Query(..., description="Session price in cents"),
    client_id: str = Query(None),
    uid: str = Depends(get_current_uid),
    service: FeeService = Depends(get_fee_service),
):
    """Full fee breakdown the caller would be charged for a session"""
    fees = service.calculate_fees(trainer_id, client_id or uid, price)
    return FeeQuoteResponse(**fees.model_dump(), display=fees.format_breakdown())
