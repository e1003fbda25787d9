from __future__ import annotations

from dataclasses import dataclass

from app.consul_client import ConsulClient, ConsulError


@dataclass
class UpstreamError(Exception):
    status_code: int
    message: str
    code: str = "upstream_error"


class UpstreamForbiddenError(UpstreamError):
    pass


class UpstreamNetworkError(UpstreamError):
    pass


class UpstreamHTTPError(UpstreamError):
    pass


def map_consul_error(err: ConsulError) -> UpstreamError:
    message = err.message or "Consul upstream error"
    if err.status == 403:
        return UpstreamForbiddenError(status_code=403, message=message, code="forbidden")
    if err.status == 504:
        return UpstreamNetworkError(status_code=504, message=message, code="upstream_timeout")
    if err.status == 503:
        return UpstreamHTTPError(status_code=503, message=message, code="not_configured")
    return UpstreamHTTPError(status_code=502, message=message)


__all__ = [
    "ConsulClient",
    "ConsulError",
    "UpstreamError",
    "UpstreamForbiddenError",
    "UpstreamHTTPError",
    "UpstreamNetworkError",
    "map_consul_error",
]
