import json
import logging
import os
import time
import uuid
from starlette.requests import Request
from starlette.responses import Response

ACCESS_LOGGER = "kvconsole"

def setup_logging():
    level = os.getenv("KVCONSOLE_LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )

async def inject_request_id(request: Request, call_next):
    req_id = request.headers.get("X-Request-Id") or str(uuid.uuid4())
    request.state.req_id = req_id
    started = time.perf_counter()
    response: Response = await call_next(request)
    response.headers["X-Request-Id"] = req_id
    # one JSON line per request
    logging.getLogger(ACCESS_LOGGER).info(json.dumps({
        "msg": "request",
        "req_id": req_id,
        "method": request.method,
        "path": request.url.path,
        "status": response.status_code,
        "duration_ms": round((time.perf_counter() - started) * 1000, 2),
    }))
    return response
