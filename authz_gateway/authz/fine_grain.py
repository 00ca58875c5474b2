# Copyright 2026 The OpenChoreo Authors
# SPDX-License-Identifier: Apache-2.0

import logging
from collections.abc import Awaitable, Callable
from typing import Any

from pydantic import BaseModel, ValidationError

from authz_gateway.authz.config import FineGrainConfig, FineRule
from authz_gateway.authz.decision_request import REQUEST_ID_HEADER, build_decision_request
from authz_gateway.authz.errors import AuthorizationError, ProtocolError
from authz_gateway.authz.models import (
    CheckResult,
    DecisionResponse,
    GenericFinePayload,
    Principal,
    RequestInfo,
    ValidationResponse,
)
from authz_gateway.authz.pdp_client import PDPClient, client_auth

logger = logging.getLogger(__name__)

SKIPPED_NO_CONFIG = "fine-grain check skipped (no config)"
SKIPPED_NO_RULE = "fine-grain check skipped (no matching rule)"
GENERIC_NON_2XX_REASON = "non-2xx from validation service"
DECISION_NON_2XX_REASON = "non-2xx from PDP"


class FineGrainAuthorizer:
    """Method and path authorization that forwards selected body fields to the PDP.

    Two wire dialects are offered as separate entry points:

    * ``check``: the structured decision request (method, headers, decomposed
      URI, extracted body) answered with permit / deny / allow.
    * ``check_generic``: principal, request and matched rule, answered with
      allow / reason.
    """

    def __init__(
        self,
        config: FineGrainConfig | None,
        client: PDPClient,
        request_id_header: str = REQUEST_ID_HEADER,
    ):
        self.config = config
        self.client = client
        self.request_id_header = request_id_header

    async def check(
        self, request: RequestInfo, principal: Principal, body_data: Any
    ) -> CheckResult:
        async def _decide(conf: FineGrainConfig, rule: FineRule) -> CheckResult:
            decision_request = build_decision_request(
                request, rule, body_data, self.request_id_header
            )
            logger.debug(
                "Fine-grain decision: %s %s ruleset=%s user=%s",
                request.method,
                request.path,
                rule.ruleset_name,
                principal.user_id,
            )
            data = await self._post(conf, decision_request.to_wire(), DECISION_NON_2XX_REASON)
            response = self._decode(data, DecisionResponse)
            return CheckResult(*response.outcome())

        return await self._run(request, _decide)

    async def check_generic(self, request: RequestInfo, principal: Principal) -> CheckResult:
        async def _decide(conf: FineGrainConfig, rule: FineRule) -> CheckResult:
            payload = GenericFinePayload(principal=principal, request=request, rule=rule)
            data = await self._post(
                conf, payload.model_dump(exclude_none=True), GENERIC_NON_2XX_REASON
            )
            response = self._decode(data, ValidationResponse)
            return CheckResult(response.allow, response.reason or "")

        return await self._run(request, _decide)

    async def _run(
        self,
        request: RequestInfo,
        decide: Callable[[FineGrainConfig, FineRule], Awaitable[CheckResult]],
    ) -> CheckResult:
        conf = self.config
        if conf is None or not conf.active:
            return CheckResult(True, SKIPPED_NO_CONFIG)

        try:
            rule = conf.match_rule(request.method, request.path)
            if rule is None:
                return CheckResult(True, SKIPPED_NO_RULE)
            return await decide(conf, rule)
        except ProtocolError as e:
            return CheckResult(False, e.reason, e)
        except AuthorizationError as e:
            return CheckResult(False, "", e)

    async def _post(
        self, conf: FineGrainConfig, body: dict[str, Any], non_2xx_reason: str
    ) -> Any:
        auth = client_auth(conf.client_auth_method, conf.client_id, conf.client_secret)
        return await self.client.post(
            conf.validation_url, body, auth=auth, non_2xx_reason=non_2xx_reason
        )

    @staticmethod
    def _decode(data: Any, model: type[BaseModel]) -> Any:
        try:
            return model.model_validate(data)
        except ValidationError as e:
            raise ProtocolError(f"invalid PDP response: {e}") from e
