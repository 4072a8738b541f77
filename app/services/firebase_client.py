"""
Firebase initialization helpers for cloud mode
"""

from __future__ import annotations

import base64
import json
import os
from typing import Any

import firebase_admin
from firebase_admin import credentials, firestore

from app.core.config import Settings, settings


def load_credentials_info(config: Settings = settings) -> dict[str, Any] | None:
    """Resolve the service-account info from whichever FIREBASE_CREDENTIALS_* is set."""
    if config.FIREBASE_CREDENTIALS_JSON:
        return json.loads(config.FIREBASE_CREDENTIALS_JSON)
    if config.FIREBASE_CREDENTIALS_B64:
        decoded = base64.b64decode(config.FIREBASE_CREDENTIALS_B64).decode("utf-8")
        return json.loads(decoded)
    if config.FIREBASE_CREDENTIALS_FILE and os.path.exists(config.FIREBASE_CREDENTIALS_FILE):
        with open(config.FIREBASE_CREDENTIALS_FILE, "r", encoding="utf-8") as f:
            return json.load(f)
    return None


def firebase_configured(config: Settings = settings) -> bool:
    """Cloud mode needs the flag and some form of credentials."""
    if not config.USE_FIREBASE:
        return False
    return bool(
        config.FIREBASE_CREDENTIALS_JSON
        or config.FIREBASE_CREDENTIALS_B64
        or (config.FIREBASE_CREDENTIALS_FILE and os.path.exists(config.FIREBASE_CREDENTIALS_FILE))
    )


def get_firestore_client(config: Settings = settings):
    """Initialize the default Firebase app once and return a Firestore client."""
    if not config.USE_FIREBASE:
        return None

    if not firebase_admin._apps:
        info = load_credentials_info(config)
        if not info:
            raise RuntimeError("Firebase credentials not provided. Set FIREBASE_CREDENTIALS_FILE, FIREBASE_CREDENTIALS_JSON, or FIREBASE_CREDENTIALS_B64")

        cred = credentials.Certificate(info)
        firebase_admin.initialize_app(cred)

    return firestore.client()
