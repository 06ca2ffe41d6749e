"""Authentication helpers for the Cloud SQL Admin API.

This module centralizes loading Google Application Default Credentials and
building the discovery-based `sqladmin` service object, so the rest of the
code never deals with credential lookup directly.
"""

from __future__ import annotations

from typing import Any

import google.auth
from google.auth.exceptions import DefaultCredentialsError
from googleapiclient import discovery

SQLADMIN_API = "sqladmin"
SQLADMIN_VERSION = "v1beta4"
_SCOPES = ("https://www.googleapis.com/auth/cloud-platform",)


class AuthError(RuntimeError):
    """Raised when Google credentials cannot be loaded."""


def _format_auth_error(message: str) -> str:
    """Return a user-friendly auth error message."""
    return (
        "Google authentication failed: no Application Default Credentials found.\n"
        "Authenticate with:\n  $ gcloud auth application-default login\n"
        f"({message})"
    )


def get_credentials() -> Any:
    """Load Application Default Credentials with the cloud-platform scope."""
    try:
        credentials, _ = google.auth.default(scopes=list(_SCOPES))
    except DefaultCredentialsError as exc:
        raise AuthError(_format_auth_error(str(exc))) from exc
    return credentials


def get_service(credentials: Any | None = None) -> Any:
    """
    Build and return a Cloud SQL Admin API service object.

    The discovery document bundled with google-api-python-client is used,
    so building the service does not hit the network.
    """
    creds = credentials if credentials is not None else get_credentials()
    return discovery.build(
        SQLADMIN_API,
        SQLADMIN_VERSION,
        credentials=creds,
        cache_discovery=False,
    )
