"""
middleware/request_id.py

Guarantees an X-Request-ID for every request and makes it available in
request.state.request_id and in the logging context.
"""

from __future__ import annotations

import uuid
from typing import Optional

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from ..core.logging import request_id_var


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Accept or generate a request id, and echo it on the response."""

    header_name: str = "X-Request-ID"

    async def dispatch(self, request: Request, call_next):
        incoming: Optional[str] = request.headers.get(self.header_name)
        rid = incoming.strip() if incoming and incoming.strip() else uuid.uuid4().hex

        request.state.request_id = rid
        token = request_id_var.set(rid)
        try:
            response: Response = await call_next(request)
        finally:
            request_id_var.reset(token)

        response.headers[self.header_name] = rid
        return response
