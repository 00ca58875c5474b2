# Copyright 2026 The OpenChoreo Authors
# SPDX-License-Identifier: Apache-2.0

import asyncio
import json

import httpx
import pytest

from authz_gateway.authz import (
    AuthorizationConfig,
    GatewayAuthorizer,
    PDPClient,
    RequestInfo,
)

COARSE_URL = "http://pdp.test/coarse"
DECISION_URL = "http://pdp.test/decision"


def _config(**coarse_overrides) -> AuthorizationConfig:
    coarse = {
        "enabled": True,
        "validation_url": COARSE_URL,
        "resource_map": {"[/api/**]": "/api"},
    }
    coarse.update(coarse_overrides)
    return AuthorizationConfig.model_validate(
        {
            "coarse": coarse,
            "fine_grain": {
                "enabled": True,
                "validation_url": DECISION_URL,
                "resource_map": {"[/api/orders:POST]": {"body": {"ids": "$.items[*].id"}}},
            },
        }
    )


class RoutingPDP:
    def __init__(self, coarse: dict, decision: dict):
        self.responses = {COARSE_URL: coarse, DECISION_URL: decision}
        self.seen: dict[str, dict] = {}

    def transport(self) -> httpx.MockTransport:
        def handler(request: httpx.Request) -> httpx.Response:
            url = str(request.url)
            self.seen[url] = json.loads(request.content)
            return httpx.Response(200, json=self.responses[url])

        return httpx.MockTransport(handler)


def _orders_request() -> RequestInfo:
    return RequestInfo(
        method="POST",
        path="/api/orders",
        full_url="http://gw.local/api/orders",
        headers={"X-Request-Id": "rid-9"},
    )


ORDER_BODY = {"items": [{"id": "a"}, {"id": "b"}]}


@pytest.mark.asyncio
async def test_both_checks_allow(principal):
    pdp = RoutingPDP({"allow": True}, {"permit": "PERMIT"})
    gateway = GatewayAuthorizer(_config(), PDPClient(timeout=5.0, transport=pdp.transport()))

    decision = await gateway.authorize(_orders_request(), principal, ORDER_BODY)

    assert decision.allow
    assert decision.coarse == (True, "", None)
    assert decision.fine_grain == (True, "PERMIT", None)
    assert pdp.seen[COARSE_URL]["resource"] == "/api"
    assert pdp.seen[DECISION_URL]["body"] == {"ids": ["a", "b"]}


@pytest.mark.asyncio
async def test_coarse_denial_rejects(principal):
    pdp = RoutingPDP({"allow": False, "reason": "no access to /api"}, {"permit": "PERMIT"})
    gateway = GatewayAuthorizer(_config(), PDPClient(timeout=5.0, transport=pdp.transport()))

    decision = await gateway.authorize(_orders_request(), principal, ORDER_BODY)

    assert not decision.allow
    assert decision.message == "no access to /api"
    # both checks always complete
    assert decision.fine_grain.allow


@pytest.mark.asyncio
async def test_fine_grain_denial_without_reason_gets_generic_message(principal):
    pdp = RoutingPDP({"allow": True}, {"allow": False})
    gateway = GatewayAuthorizer(_config(), PDPClient(timeout=5.0, transport=pdp.transport()))

    decision = await gateway.authorize(_orders_request(), principal, ORDER_BODY)

    assert not decision.allow
    assert decision.message == "fine-grain authorization denied"


@pytest.mark.asyncio
async def test_error_rejects_with_error_message(principal):
    pdp = RoutingPDP({"allow": True}, {"permit": "PERMIT"})
    gateway = GatewayAuthorizer(_config(), PDPClient(timeout=5.0, transport=pdp.transport()))

    decision = await gateway.authorize(_orders_request(), principal, {"items": "not-a-list"})

    assert not decision.allow
    assert decision.message.startswith("fine-grain authorization error: ")
    assert DECISION_URL not in pdp.seen


@pytest.mark.asyncio
async def test_no_config_allows(principal):
    gateway = GatewayAuthorizer(None, PDPClient(timeout=5.0))

    decision = await gateway.authorize(_orders_request(), principal, {})

    assert decision.allow
    assert decision.coarse.reason == "coarse check skipped (no config)"
    assert decision.fine_grain.reason == "fine-grain check skipped (no config)"


@pytest.mark.asyncio
async def test_checks_run_concurrently(principal):
    in_flight = 0
    peak = 0

    async def handler(request: httpx.Request) -> httpx.Response:
        nonlocal in_flight, peak
        in_flight += 1
        peak = max(peak, in_flight)
        await asyncio.sleep(0.05)
        in_flight -= 1
        return httpx.Response(200, json={"allow": True})

    client = PDPClient(timeout=5.0, transport=httpx.MockTransport(handler))
    gateway = GatewayAuthorizer(_config(), client)

    decision = await gateway.authorize(_orders_request(), principal, ORDER_BODY)

    assert decision.allow
    assert peak == 2


@pytest.mark.asyncio
async def test_reload_swaps_rules(principal):
    pdp = RoutingPDP({"allow": True}, {"permit": "PERMIT"})
    gateway = GatewayAuthorizer(_config(), PDPClient(timeout=5.0, transport=pdp.transport()))
    request = RequestInfo(method="GET", path="/public", full_url="http://gw.local/public")

    before = await gateway.authorize(request, principal, {})
    gateway.reload(_config(anonymous_access=True))
    after = await gateway.authorize(request, principal, {})

    assert before.message == "coarse check denied (no matching resource)"
    assert after.allow


@pytest.mark.asyncio
async def test_request_id_header_is_configurable(principal):
    pdp = RoutingPDP({"allow": True}, {"permit": "PERMIT"})
    gateway = GatewayAuthorizer(
        _config(),
        PDPClient(timeout=5.0, transport=pdp.transport()),
        request_id_header="X-Correlation-Id",
    )
    request = RequestInfo(
        method="POST",
        path="/api/orders",
        full_url="http://gw.local/api/orders",
        headers={"x-correlation-id": "rid-7"},
    )

    await gateway.authorize(request, principal, ORDER_BODY)
    gateway.reload(_config())
    await gateway.authorize(request, principal, ORDER_BODY)

    assert pdp.seen[DECISION_URL]["headers"] == {"x-request-id": "rid-7"}
