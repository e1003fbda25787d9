from __future__ import annotations

import os
import secrets
from typing import Annotated

from fastapi import Security
from fastapi.security import APIKeyHeader

from app.core.errors import APIError


api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)


def configured_api_keys() -> list[str]:
    # comma separated; any listed key is accepted
    raw = os.getenv("KVCONSOLE_API_KEY", "")
    return [key.strip() for key in raw.split(",") if key.strip()]


async def require_api_key(
    x_api_key: Annotated[str | None, Security(api_key_header)],
) -> None:
    expected = configured_api_keys()
    if not expected:
        return
    if not x_api_key or not any(secrets.compare_digest(x_api_key, key) for key in expected):
        raise APIError(status_code=401, code="unauthorized", message="Invalid API key")
