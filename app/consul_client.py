import asyncio
import logging
import os
from dataclasses import dataclass
from urllib.parse import quote

import httpx

logger = logging.getLogger(__name__)

MAX_ATTEMPTS = 4


class ConsulError(Exception):
    def __init__(self, status: int, message: str):
        super().__init__(message)
        self.status = status
        self.message = message


@dataclass
class ConsulClient:
    base_url: str
    token: str = ""
    datacenter: str = ""
    timeout_s: int = 10

    @classmethod
    def from_env(cls):
        base = os.getenv("CONSUL_HTTP_ADDR", "").rstrip("/")
        if not base:
            raise ConsulError(503, "Consul env not configured")
        return cls(
            base,
            token=os.getenv("CONSUL_HTTP_TOKEN", ""),
            datacenter=os.getenv("CONSUL_DATACENTER", ""),
        )

    def kv_url(self, prefix: str = "") -> str:
        return f"{self.base_url}/v1/kv/{quote(prefix.lstrip('/'), safe='/')}"

    def _headers(self, token: str | None) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        tok = token or self.token
        if tok:
            headers["X-Consul-Token"] = tok
        return headers

    async def _get(self, url: str, params: dict, token: str | None = None) -> httpx.Response:
        if self.datacenter:
            params = {**params, "dc": self.datacenter}

        # retry network errors with backoff; HTTP statuses are returned as-is
        for attempt in range(MAX_ATTEMPTS):
            try:
                async with httpx.AsyncClient(timeout=self.timeout_s) as client:
                    return await client.get(url, params=params, headers=self._headers(token))
            except httpx.RequestError as e:
                if attempt == MAX_ATTEMPTS - 1:
                    raise ConsulError(504, f"Network error talking to Consul: {e}") from e
                logger.warning("consul request failed (attempt %d): %s", attempt + 1, e)
                await asyncio.sleep(0.5 * (2 ** attempt))
        raise ConsulError(502, "Consul upstream unavailable after retries")

    async def list_keys(self, prefix: str = "", token: str | None = None) -> list[str]:
        resp = await self._get(self.kv_url(prefix), {"keys": ""}, token=token)
        # Consul answers 404 when nothing lives under the prefix
        if resp.status_code == 404:
            return []
        if resp.status_code == 403:
            raise ConsulError(403, "Permission denied listing keys")
        if resp.status_code >= 400:
            raise ConsulError(502, f"Consul returned {resp.status_code}: {resp.text}")
        data = resp.json()
        if not isinstance(data, list):
            raise ConsulError(502, "Unexpected key listing payload from Consul")
        return [str(key) for key in data]
