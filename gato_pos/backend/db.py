import logging
import os
from contextlib import contextmanager

import firebase_admin
from firebase_admin import credentials, firestore
from google.api_core.exceptions import GoogleAPIError
from google.auth.exceptions import GoogleAuthError

from .config import Settings, get_settings
from .errors import PersistenceError

logger = logging.getLogger(__name__)

_db = None


def get_db(settings: Settings | None = None):
    """Firestore client, initialising the default firebase app on first use."""
    global _db
    if _db is not None:
        return _db

    settings = settings or get_settings()
    if not settings.firestore_enabled:
        raise PersistenceError(
            "Firestore is not configured. Set FIREBASE_CREDENTIALS_PATH or FIREBASE_PROJECT_ID."
        )

    try:
        if not firebase_admin._apps:
            options = {"projectId": settings.firebase_project_id} if settings.firebase_project_id else None
            if settings.firebase_credentials_path:
                if not os.path.exists(settings.firebase_credentials_path):
                    raise PersistenceError(
                        f"Firebase credentials not found: {settings.firebase_credentials_path}"
                    )
                cred = credentials.Certificate(settings.firebase_credentials_path)
            else:
                cred = credentials.ApplicationDefault()
            firebase_admin.initialize_app(cred, options)
        _db = firestore.client()
    except PersistenceError:
        raise
    except (ValueError, IOError, GoogleAuthError) as e:
        logger.exception("Error initializing Firebase")
        raise PersistenceError(f"Firebase connection error: {e}") from e

    logger.info("Connected to Firestore")
    return _db


@contextmanager
def backend_errors(action: str):
    """Turn Firestore client failures into PersistenceError."""
    try:
        yield
    except (GoogleAPIError, GoogleAuthError) as e:
        logger.exception("Firestore error while trying to %s", action)
        raise PersistenceError(f"Failed to {action}") from e
