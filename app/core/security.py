import json
import logging
from dataclasses import dataclass
from typing import Optional

import firebase_admin
from firebase_admin import auth, credentials, exceptions as firebase_exceptions
from fastapi import HTTPException, Security
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from app.config import get_settings

logger = logging.getLogger(__name__)

settings = get_settings()

_firebase_app = None

bearer_scheme = HTTPBearer()


def _load_credentials() -> credentials.Certificate:
    """Build Firebase credentials from a file path or an inline JSON string."""
    if settings.GOOGLE_APPLICATION_CREDENTIALS:
        return credentials.Certificate(settings.GOOGLE_APPLICATION_CREDENTIALS)
    if settings.FIREBASE_SERVICE_ACCOUNT:
        return credentials.Certificate(json.loads(settings.FIREBASE_SERVICE_ACCOUNT))
    raise ValueError(
        "Firebase credentials not configured. "
        "Set FIREBASE_SERVICE_ACCOUNT or GOOGLE_APPLICATION_CREDENTIALS"
    )


def init_firebase():
    """Initialize the Firebase Admin SDK once per process."""
    global _firebase_app
    if _firebase_app is None:
        _firebase_app = firebase_admin.initialize_app(_load_credentials())
    return _firebase_app


# Initialize on module load; the API still starts without credentials
# (local development and tests override the auth dependency).
try:
    init_firebase()
except (ValueError, OSError) as e:
    logger.warning(f"Firebase not initialized: {e}")


@dataclass
class FirebaseUser:
    """Identity extracted from a verified Firebase ID token."""

    uid: str
    email: Optional[str] = None
    name: Optional[str] = None


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=401,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Security(bearer_scheme),
) -> FirebaseUser:
    """
    Verify the bearer ID token and return the caller's identity.

    Token issuance and refresh happen upstream; this service only
    consumes the verified identity.
    """
    try:
        decoded_token = auth.verify_id_token(credentials.credentials)
    except auth.ExpiredIdTokenError:
        raise _unauthorized("Token has expired")
    except auth.InvalidIdTokenError:
        raise _unauthorized("Invalid authentication token")
    except (ValueError, firebase_exceptions.FirebaseError) as e:
        logger.warning(f"Token verification failed: {e}")
        raise _unauthorized(f"Authentication failed: {str(e)}")

    return FirebaseUser(
        uid=decoded_token["uid"],
        email=decoded_token.get("email"),
        name=decoded_token.get("name"),
    )
