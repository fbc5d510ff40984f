"""
Postbox Backend — Request Logging Middleware
==============================================

What:  One access log line per request, tagged with the resource it touched
       (`messages`, `users`) and, for writes, the action taken. Listings also
       record how many messages were returned (`X-Total-Count`).
When:  Runs inside RequestIDMiddleware, so the request ID is already set.

Example:
    POST /messages 201 4.2ms [1f0c9a2b] messages.create from 127.0.0.1
    GET /messages 200 1.3ms [77ab01cd] messages.list total=3 from 127.0.0.1

Privacy:
    Request bodies are never logged; POST /users carries a password.
"""

import logging
import time
from typing import Optional, Tuple

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from postbox.middleware.request_id import request_id_var

logger = logging.getLogger("postbox.access")

_ACTIONS = {
    ("GET", False): "list",
    ("GET", True): "read",
    ("POST", False): "create",
    ("PUT", True): "update",
    ("DELETE", True): "delete",
}


def describe_request(method: str, path: str) -> Tuple[str, Optional[str]]:
    """
    Maps a request onto (resource, action).

    >>> describe_request("DELETE", "/messages/5f1c")
    ('messages', 'delete')
    >>> describe_request("GET", "/docs")
    ('docs', None)
    """
    parts = [part for part in path.split("/") if part]
    if not parts:
        return "-", None
    resource = parts[0]
    if resource not in ("messages", "users"):
        return resource, None
    return resource, _ACTIONS.get((method, len(parts) > 1))


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Logs each request at a level chosen by status class:
    5xx → ERROR, 4xx → WARNING, everything else → INFO.
    Health checks are skipped.
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path
        if path == "/health":
            return await call_next(request)

        started = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - started) * 1000

        method = request.method
        resource, action = describe_request(method, path)
        tag = f"{resource}.{action}" if action else resource
        total = response.headers.get("X-Total-Count")
        client_ip = request.client.host if request.client else "unknown"
        rid = request_id_var.get("")

        status = response.status_code
        if status >= 500:
            level = logging.ERROR
        elif status >= 400:
            level = logging.WARNING
        else:
            level = logging.INFO

        logger.log(
            level,
            "%s %s %d %.1fms [%s] %s%s from %s",
            method,
            path,
            status,
            duration_ms,
            rid,
            tag,
            f" total={total}" if total is not None else "",
            client_ip,
            extra={
                "request_id": rid,
                "method": method,
                "path": path,
                "status": status,
                "duration_ms": round(duration_ms, 2),
                "resource": resource,
                "action": action,
                "total_count": int(total) if total is not None else None,
                "client_ip": client_ip,
            },
        )
        return response
