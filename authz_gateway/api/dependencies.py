# Copyright 2026 The OpenChoreo Authors
# SPDX-License-Identifier: Apache-2.0

import json
import logging
from typing import Annotated, Any

from fastapi import Depends, HTTPException, Request

from authz_gateway.authz import GatewayAuthorizer, Principal, RequestInfo
from authz_gateway.clients import UpstreamClient
from authz_gateway.config import settings

logger = logging.getLogger(__name__)


def get_gateway(request: Request) -> GatewayAuthorizer:
    return request.app.state.gateway


def get_upstream(request: Request) -> UpstreamClient | None:
    return request.app.state.upstream


def get_principal(request: Request) -> Principal:
    """Read the already-authenticated principal from the identity headers.

    Verifying who the caller is happens in front of the gateway; missing
    headers yield an anonymous principal.
    """
    return Principal(
        user_id=request.headers.get(settings.principal_user_id_header, ""),
        username=request.headers.get(settings.principal_username_header, ""),
        email=request.headers.get(settings.principal_email_header, ""),
    )


def get_request_info(request: Request) -> RequestInfo:
    return RequestInfo(
        method=request.method,
        path=request.url.path,
        full_url=str(request.url),
        headers=dict(request.headers.items()),
    )


async def extract_request_body(request: Request) -> Any:
    if hasattr(request.state, "_parsed_body"):
        return request.state._parsed_body

    raw = await request.body()
    try:
        body = json.loads(raw) if raw else {}
    except (UnicodeDecodeError, json.JSONDecodeError):
        logger.debug("Request body is not JSON, using empty body for extraction")
        body = {}
    request.state._parsed_body = body
    return body


async def require_authz(
    request: Request,
    gateway: Annotated[GatewayAuthorizer, Depends(get_gateway)],
    principal: Annotated[Principal, Depends(get_principal)],
) -> Principal:
    request_info = get_request_info(request)
    body = await extract_request_body(request)

    decision = await gateway.authorize(request_info, principal, body)
    if not decision.allow:
        raise HTTPException(
            status_code=403,
            detail={"error": "FORBIDDEN", "message": decision.message or "Access denied"},
        )

    return principal
