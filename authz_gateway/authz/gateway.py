# Copyright 2026 The OpenChoreo Authors
# SPDX-License-Identifier: Apache-2.0

import asyncio
import logging
from typing import Any, NamedTuple

from authz_gateway.authz.coarse import CoarseAuthorizer
from authz_gateway.authz.config import AuthorizationConfig
from authz_gateway.authz.decision_request import REQUEST_ID_HEADER
from authz_gateway.authz.fine_grain import FineGrainAuthorizer
from authz_gateway.authz.models import CheckResult, Principal, RequestInfo
from authz_gateway.authz.pdp_client import PDPClient

logger = logging.getLogger(__name__)


class GatewayDecision(NamedTuple):
    allow: bool
    message: str
    coarse: CheckResult
    fine_grain: CheckResult


class _Authorizers(NamedTuple):
    coarse: CoarseAuthorizer
    fine_grain: FineGrainAuthorizer


def _verdict(name: str, result: CheckResult) -> str | None:
    """Return the rejection message for a failed check, or None if it passed."""
    if result.error is not None:
        return f"{name} authorization error: {result.error}"
    if not result.allow:
        return result.reason or f"{name} authorization denied"
    return None


class GatewayAuthorizer:
    """Runs the coarse and fine-grained checks for one inbound request.

    Rule tables are never modified in place: ``reload`` builds a new pair of
    authorizers and replaces the single reference that ``authorize`` reads.
    """

    def __init__(
        self,
        config: AuthorizationConfig | None,
        client: PDPClient,
        request_id_header: str = REQUEST_ID_HEADER,
    ):
        self.client = client
        self.request_id_header = request_id_header
        self._authorizers = self._build(config)

    def _build(self, config: AuthorizationConfig | None) -> _Authorizers:
        return _Authorizers(
            coarse=CoarseAuthorizer(config.coarse if config else None, self.client),
            fine_grain=FineGrainAuthorizer(
                config.fine_grain if config else None, self.client, self.request_id_header
            ),
        )

    def reload(self, config: AuthorizationConfig | None) -> None:
        self._authorizers = self._build(config)
        logger.info("Authorization rules reloaded")

    async def authorize(
        self, request: RequestInfo, principal: Principal, body_data: Any
    ) -> GatewayDecision:
        authorizers = self._authorizers

        coarse, fine_grain = await asyncio.gather(
            authorizers.coarse.check(request, principal),
            authorizers.fine_grain.check(request, principal, body_data),
        )

        message = _verdict("coarse", coarse) or _verdict("fine-grain", fine_grain)
        if message is not None:
            logger.warning(
                "Access denied: %s %s: %s",
                request.method,
                request.path,
                message,
            )
            return GatewayDecision(False, message, coarse, fine_grain)

        logger.debug(
            "Access granted: %s %s (coarse=%r, fine-grain=%r)",
            request.method,
            request.path,
            coarse.reason,
            fine_grain.reason,
        )
        return GatewayDecision(True, "", coarse, fine_grain)
