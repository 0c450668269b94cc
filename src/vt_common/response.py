"""API response envelope shared by the control-surface routers.

    {"code": 0, "message": "success", "data": {...}, "timestamp": "...", "request_id": "..."}

code is 0 on success, otherwise the AppError code; data is null on error.
"""

import uuid
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field
from starlette.requests import Request


def _new_request_id() -> str:
    return f"req_{uuid.uuid4().hex[:12]}"


class ApiResponse(BaseModel):
    code: int = 0
    message: str = "success"
    data: Any = None
    timestamp: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    request_id: str = Field(default_factory=_new_request_id)


def success_response(data: Any = None, request: Request | None = None) -> ApiResponse:
    """Wrap data; reuse the request id set by RequestLogMiddleware when available."""
    resp = ApiResponse(data=data)
    if request is not None:
        resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


def error_response(code: int, message: str) -> ApiResponse:
    return ApiResponse(code=code, message=message, data=None)
