"""Firestore client construction."""

from __future__ import annotations

import os

from google.cloud import firestore
from google.oauth2 import service_account

from ..config.loader import FirestoreConfig
from .logging import get_logger

logger = get_logger(__name__)

_SCOPES = ["https://www.googleapis.com/auth/cloud-platform"]


def _build_credentials(config: FirestoreConfig):
    key_path = config.credentials_path or os.environ.get(
        "GOOGLE_APPLICATION_CREDENTIALS"
    )
    if key_path and os.path.exists(key_path):
        return service_account.Credentials.from_service_account_file(
            key_path, scopes=_SCOPES
        )
    # Application default credentials are resolved by the client itself.
    return None


def build_firestore_client(config: FirestoreConfig) -> firestore.Client:
    """Create a Firestore client for the configured project."""

    credentials = _build_credentials(config)
    logger.info(
        "firestore_client_init",
        extra={
            "project_id": config.project_id,
            "service_account": credentials is not None,
        },
    )
    return firestore.Client(project=config.project_id, credentials=credentials)
