"""Request logging middleware.

One line per HTTP request: method, path, status and latency, tagged with a
request ID. A well-formed inbound X-Request-ID is kept so a caller can trace
its own id through the logs; otherwise a fresh one is minted. Either way it
is echoed back in the X-Request-ID header. 5xx responses log at WARNING.

    INFO [POST] /api/v1/games/3/join → 200 (12ms) req_a1b2c3d4e5f6
"""

import logging
import re
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from src.bg_common.response import new_request_id

logger = logging.getLogger("bg.request")

REQUEST_ID_HEADER = "X-Request-ID"
_REQUEST_ID_RE = re.compile(r"^[A-Za-z0-9_.-]{1,64}$")


def _inbound_request_id(request: Request) -> str | None:
    value = request.headers.get(REQUEST_ID_HEADER)
    return value if value and _REQUEST_ID_RE.match(value) else None


class RequestLogMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = _inbound_request_id(request) or new_request_id()
        request.state.request_id = request_id

        start = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - start) * 1000

        response.headers[REQUEST_ID_HEADER] = request_id
        level = logging.WARNING if response.status_code >= 500 else logging.INFO
        logger.log(
            level,
            "[%s] %s → %d (%.0fms) %s",
            request.method,
            request.url.path,
            response.status_code,
            elapsed_ms,
            request_id,
        )
        return response
