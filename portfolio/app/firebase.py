"""
Firebase Admin SDK initialization.

The Firebase app is process-wide state: it is initialized at most once per
process and shared by the identity provider, the Firestore content store and
the Cloud Storage media store.
"""

import logging
import threading
from typing import Optional

import firebase_admin
from firebase_admin import credentials

from .config import Settings

logger = logging.getLogger("portfolio.firebase")

_init_lock = threading.Lock()


def init_firebase_app(settings: Settings) -> firebase_admin.App:
    """
    Return the default Firebase app, initializing it on first use.

    Safe to call repeatedly and from several threads; only the first call
    creates the app.

    Args:
        settings: Application settings

    Returns:
        The default firebase_admin.App

    Raises:
        ValueError: If the credentials file is invalid
        IOError: If the credentials file cannot be read
    """
    with _init_lock:
        try:
            return firebase_admin.get_app()
        except ValueError:
            pass

        credential: Optional[credentials.Base] = None
        if settings.FIREBASE_CREDENTIALS_FILE:
            credential = credentials.Certificate(settings.FIREBASE_CREDENTIALS_FILE)

        options = {}
        if settings.FIREBASE_PROJECT_ID:
            options["projectId"] = settings.FIREBASE_PROJECT_ID
        if settings.FIREBASE_STORAGE_BUCKET:
            options["storageBucket"] = settings.FIREBASE_STORAGE_BUCKET

        app = firebase_admin.initialize_app(credential, options=options or None)

        logger.info(
            "Firebase Admin SDK initialized",
            extra={
                "project_id": settings.FIREBASE_PROJECT_ID,
                "storage_bucket": settings.FIREBASE_STORAGE_BUCKET,
            },
        )
        return app
