# Copyright 2026 The OpenChoreo Authors
# SPDX-License-Identifier: Apache-2.0

import logging
from typing import Annotated

import httpx
from fastapi import APIRouter, Depends, HTTPException, Request, Response

from authz_gateway.api.dependencies import get_upstream, require_authz
from authz_gateway.authz import Principal
from authz_gateway.clients import UpstreamClient, strip_hop_by_hop

logger = logging.getLogger(__name__)

router = APIRouter()

PROXY_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"]


@router.get("/health")
async def health():
    return {"status": "healthy"}


@router.api_route("/{path:path}", methods=PROXY_METHODS)
async def proxy(
    request: Request,
    _principal: Annotated[Principal, Depends(require_authz)],
    upstream: Annotated[UpstreamClient | None, Depends(get_upstream)],
):
    if upstream is None:
        raise HTTPException(
            status_code=503,
            detail={"error": "SERVICE_UNAVAILABLE", "message": "No upstream configured"},
        )

    try:
        response = await upstream.forward(
            request.method,
            request.url.path,
            request.url.query,
            request.headers,
            await request.body(),
        )
    except httpx.RequestError as e:
        logger.error("Upstream request failed: %s", e)
        raise HTTPException(
            status_code=502,
            detail={"error": "BAD_GATEWAY", "message": "Upstream service unavailable"},
        ) from e

    # httpx has already decoded the body
    headers = strip_hop_by_hop(response.headers)
    headers.pop("content-encoding", None)

    return Response(content=response.content, status_code=response.status_code, headers=headers)
