"""
Shared FastAPI dependencies.
"""

from __future__ import annotations

import secrets

from fastapi import HTTPException, Security, status
from fastapi.security import APIKeyHeader

from ..settings import settings

_api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)


def require_api_key(api_key: str | None = Security(_api_key_header)) -> str | None:
    """
    Guard the provisioning and listing routes with ``REPODOCK_API_KEY``.

    Without a configured key every caller is accepted.
    """
    expected = settings.api_key
    if not expected:
        return None
    if api_key is None or not secrets.compare_digest(api_key, expected):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid API key.",
        )
    return api_key


def telemetry_enabled() -> bool:
    return settings.telemetry_enabled
