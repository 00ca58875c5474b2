# Copyright 2026 The OpenChoreo Authors
# SPDX-License-Identifier: Apache-2.0

import logging
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI

from authz_gateway.api import router
from authz_gateway.authz import (
    AuthorizationConfig,
    ConfigurationError,
    GatewayAuthorizer,
    PDPClient,
    load_authorization_config,
)
from authz_gateway.clients import UpstreamClient
from authz_gateway.config import settings
from authz_gateway.logging_config import request_id_middleware, setup_logging

load_dotenv()
setup_logging()

logger = logging.getLogger(__name__)


def _load_config() -> AuthorizationConfig | None:
    try:
        return load_authorization_config(settings.authz_config_path)
    except ConfigurationError as e:
        # Not fatal: checks are skipped when no rules are loaded (local development)
        logger.error("Authorization config not loaded, checks will be skipped: %s", e)
        return None


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting up: loading authorization rules from %s", settings.authz_config_path)
    verify_ssl = not settings.tls_insecure_skip_verify

    pdp_client = PDPClient(timeout=settings.pdp_timeout_seconds, verify_ssl=verify_ssl)
    app.state.gateway = GatewayAuthorizer(
        _load_config(), pdp_client, request_id_header=settings.request_id_header
    )

    upstream = None
    if settings.upstream_url:
        upstream = UpstreamClient(
            settings.upstream_url,
            timeout=settings.upstream_timeout_seconds,
            verify_ssl=verify_ssl,
        )
    else:
        logger.warning("UPSTREAM_URL not configured, authorized requests will get 503")
    app.state.upstream = upstream

    yield

    logger.info("Shutting down...")
    await pdp_client.close()
    if upstream is not None:
        await upstream.close()


app = FastAPI(lifespan=lifespan, docs_url=None, redoc_url=None, openapi_url=None)

app.middleware("http")(request_id_middleware)
app.include_router(router)
