# Copyright 2026 The OpenChoreo Authors
# SPDX-License-Identifier: Apache-2.0

import logging
import sys
import uuid
from collections.abc import Awaitable, Callable
from contextvars import ContextVar

from fastapi import Request, Response

from authz_gateway.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s %(request_id)s%(message)s"

# Request id of the inbound request being authorized, for log correlation
request_id_context: ContextVar[str | None] = ContextVar("request_id", default=None)


class RequestIdFilter(logging.Filter):
    """Stamps every record with the bound request id (empty outside a request)."""

    def filter(self, record: logging.LogRecord) -> bool:
        request_id = request_id_context.get()
        record.request_id = f"rid={request_id} " if request_id else ""
        return True


def _not_healthcheck(record: logging.LogRecord) -> bool:
    # uvicorn.access args: (client, method, path, http_version, status)
    args = record.args
    if isinstance(args, tuple) and len(args) >= 3:
        return not str(args[2]).startswith("/health")
    return True


async def request_id_middleware(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    """Bind the inbound request id (or a fresh one) to the logging context."""
    request_id = request.headers.get(settings.request_id_header) or uuid.uuid4().hex
    token = request_id_context.set(request_id)
    try:
        return await call_next(request)
    finally:
        request_id_context.reset(token)


def setup_logging():
    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(RequestIdFilter())
    handler.setFormatter(logging.Formatter(LOG_FORMAT))

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(getattr(logging, settings.log_level.upper(), logging.INFO))

    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").addFilter(_not_healthcheck)
