"""
Devices Domain

Push tokens registered by the mobile app, read by FirebaseNotifier:
- repository.py: idempotent token upsert and removal
- service.py: DeviceService
- router.py: endpoints for the signed-in user's devices
"""

from .service import DeviceService

__all__ = ["DeviceService"]
