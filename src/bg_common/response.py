"""ApiResponse envelope for every REST route and the AppError handler.

Shape: code (0 or an AppError code), message, data (null on error),
timestamp and request_id. request_id is the one RequestLogMiddleware put on
request.state, so the body and the X-Request-ID header always agree.
"""

import uuid
from typing import Any

from pydantic import BaseModel, Field
from starlette.requests import Request

from src.bg_common.datetime_utils import to_iso, utc_now


def new_request_id() -> str:
    return f"req_{uuid.uuid4().hex[:12]}"


def request_id_of(request: Request | None) -> str:
    if request is None:
        return new_request_id()
    return getattr(request.state, "request_id", None) or new_request_id()


class ApiResponse(BaseModel):
    code: int = 0
    message: str = "success"
    data: Any = None
    timestamp: str = Field(default_factory=lambda: to_iso(utc_now()))
    request_id: str = Field(default_factory=new_request_id)


def success_response(data: Any = None, request: Request | None = None) -> ApiResponse:
    return ApiResponse(data=data, request_id=request_id_of(request))


def error_response(code: int, message: str, request: Request | None = None) -> ApiResponse:
    return ApiResponse(code=code, message=message, request_id=request_id_of(request))
