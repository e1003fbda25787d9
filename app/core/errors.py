from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from app.core.consul_client import UpstreamError


class APIError(Exception):
    def __init__(
        self,
        status_code: int,
        code: str,
        message: str,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.code = code
        self.message = message
        self.details = details

    @classmethod
    def bad_request(cls, message: str, **details: Any) -> APIError:
        return cls(400, "bad_request", message, details or None)

    @classmethod
    def from_upstream(cls, upstream: UpstreamError) -> APIError:
        return cls(upstream.status_code, upstream.code, upstream.message)
