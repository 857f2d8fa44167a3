import logging

import firebase_admin
from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from firebase_admin import auth as firebase_auth
from firebase_admin import credentials
from firebase_admin import exceptions as firebase_exceptions

from .config import FIREBASE_CREDENTIALS_PATH, FIREBASE_PROJECT_ID

logger = logging.getLogger(__name__)

security = HTTPBearer()


def get_firebase_app() -> firebase_admin.App:
    """Initialize Firebase Admin SDK (only once) and return the default app"""
    try:
        return firebase_admin.get_app()
    except ValueError:
        pass

    try:
        if FIREBASE_CREDENTIALS_PATH:
            cred = credentials.Certificate(FIREBASE_CREDENTIALS_PATH)
        else:
            cred = credentials.ApplicationDefault()
        app = firebase_admin.initialize_app(cred, {"projectId": FIREBASE_PROJECT_ID})
        logger.info("Firebase Admin initialized with credentials")
    except Exception:
        # Initialize without credentials (limited functionality)
        app = firebase_admin.initialize_app(options={"projectId": FIREBASE_PROJECT_ID})
        logger.info("Firebase Admin initialized with project ID only")
    return app


def verify_firebase_token(token: str) -> dict:
    """Verify a Firebase ID token and return its decoded claims"""
    if not FIREBASE_PROJECT_ID:
        logger.error("❌ FIREBASE_PROJECT_ID not configured")
        raise HTTPException(status_code=500, detail="Firebase not configured")

    try:
        return firebase_auth.verify_id_token(token, app=get_firebase_app())
    except (firebase_auth.InvalidIdTokenError, firebase_auth.ExpiredIdTokenError) as e:
        logger.warning(f"⚠️ Rejected Firebase token: {e}")
        raise HTTPException(status_code=401, detail="Invalid token") from e
    except firebase_exceptions.FirebaseError as e:
        logger.error(f"❌ Firebase token verification failed: {e}")
        raise HTTPException(status_code=401, detail="Token verification failed") from e


async def get_current_uid(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> str:
    """Authenticated caller's Firebase UID (player, trainer or facility owner)"""
    claims = verify_firebase_token(credentials.credentials)
    uid = claims.get("uid")
    if not uid:
        raise HTTPException(status_code=401, detail="Invalid token claims")
    return uid
