from os import getenv

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from app.models import HealthResponse, ReadyResponse

router = APIRouter(tags=["health"])


def ready_problems() -> list[str]:
    addr = getenv("CONSUL_HTTP_ADDR", "")
    if not addr:
        return ["CONSUL_HTTP_ADDR missing"]
    if not addr.startswith(("http://", "https://")):
        return ["CONSUL_HTTP_ADDR must start with http:// or https://"]
    return []


@router.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    return HealthResponse(ok=True)


@router.get(
    "/ready",
    response_model=ReadyResponse,
    responses={503: {"model": ReadyResponse, "description": "Consul address missing or invalid"}},
)
async def ready():
    problems = ready_problems()
    if problems:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content=ReadyResponse(ready=False, reason="; ".join(problems)).model_dump(),
        )
    return ReadyResponse(ready=True)
