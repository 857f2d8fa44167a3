"""Device router - FastAPI endpoints for push token registration"""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ...auth import get_current_uid
from ...database import get_db
from .schemas import DeviceRegister, DeviceResponse
from .service import DeviceService

router = APIRouter(prefix="/devices", tags=["Devices"])


def get_device_service(db: Session = Depends(get_db)) -> DeviceService:
    """Dependency injection for DeviceService"""
    return DeviceService(db)


@router.post("", response_model=DeviceResponse)
async def register_device(
    data: DeviceRegister,
    uid: str = Depends(get_current_uid),
    service: DeviceService = Depends(get_device_service),
):
    """Register the calling device for booking push notifications"""
    return service.register(uid, data.token, data.platform)


@router.get("", response_model=list[DeviceResponse])
async def list_devices(
    uid: str = Depends(get_current_uid),
    service: DeviceService = Depends(get_device_service),
):
    return service.list_for_user(uid)


@router.delete("", status_code=status.HTTP_204_NO_CONTENT)
async def unregister_device(
    token: str = Query(...),
    uid: str = Depends(get_current_uid),
    service: DeviceService = Depends(get_device_service),
):
    """Stop sending pushes to a device"""
    service.unregister(uid, token)
