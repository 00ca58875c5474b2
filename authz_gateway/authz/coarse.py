# Copyright 2026 The OpenChoreo Authors
# SPDX-License-Identifier: Apache-2.0

import logging

from pydantic import ValidationError

from authz_gateway.authz.config import CoarseConfig
from authz_gateway.authz.errors import AuthorizationError, ProtocolError
from authz_gateway.authz.models import (
    CheckResult,
    CoarsePayload,
    Principal,
    RequestInfo,
    ValidationResponse,
)
from authz_gateway.authz.pdp_client import PDPClient, client_auth

logger = logging.getLogger(__name__)

SKIPPED_NO_CONFIG = "coarse check skipped (no config)"
ALLOWED_ANONYMOUS = "coarse check allowed (no matching resource; anonymous-access=true)"
DENIED_NO_RESOURCE = "coarse check denied (no matching resource)"
NON_2XX_REASON = "non-2xx from validation service"


class CoarseAuthorizer:
    """Checks whether the resource behind a request path is reachable at all."""

    def __init__(self, config: CoarseConfig | None, client: PDPClient):
        self.config = config
        self.client = client

    async def check(self, request: RequestInfo, principal: Principal) -> CheckResult:
        conf = self.config
        if conf is None or not conf.active:
            return CheckResult(True, SKIPPED_NO_CONFIG)

        try:
            resource = conf.match_resource(request.path)
            if resource is None:
                if conf.anonymous_access:
                    return CheckResult(True, ALLOWED_ANONYMOUS)
                return CheckResult(False, DENIED_NO_RESOURCE)

            logger.debug(
                "Coarse check: path=%s resource=%s user=%s",
                request.path,
                resource,
                principal.user_id,
            )
            payload = CoarsePayload(
                principal=principal,
                request=request,
                resource=resource,
                anonymous_access=conf.anonymous_access,
            )
            return await self._post(conf, payload)
        except ProtocolError as e:
            return CheckResult(False, e.reason, e)
        except AuthorizationError as e:
            return CheckResult(False, "", e)

    async def _post(self, conf: CoarseConfig, payload: CoarsePayload) -> CheckResult:
        auth = client_auth(conf.client_auth_method, conf.client_id, conf.client_secret)
        data = await self.client.post(
            conf.validation_url,
            payload.model_dump(exclude_none=True),
            auth=auth,
            non_2xx_reason=NON_2XX_REASON,
        )
        try:
            response = ValidationResponse.model_validate(data)
        except ValidationError as e:
            raise ProtocolError(f"invalid validation response: {e}") from e
        return CheckResult(response.allow, response.reason or "")
