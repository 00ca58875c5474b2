# Copyright 2026 The OpenChoreo Authors
# SPDX-License-Identifier: Apache-2.0

import json
from typing import Any

import httpx
import pytest

from authz_gateway.authz import PDPClient, Principal, RequestInfo


class MockPDP:
    """Policy decision point stub that records every request it receives."""

    def __init__(self, response: Any = None, status_code: int = 200):
        self.response = {"allow": True, "reason": "mock allow"} if response is None else response
        self.status_code = status_code
        self.requests: list[httpx.Request] = []
        self.transport = httpx.MockTransport(self._handle)

    def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if isinstance(self.response, (bytes, str)):
            return httpx.Response(self.status_code, content=self.response)
        return httpx.Response(self.status_code, json=self.response)

    def respond(self, response: Any, status_code: int = 200) -> None:
        self.response = response
        self.status_code = status_code

    @property
    def last_request(self) -> httpx.Request:
        assert self.requests, "expected the PDP to be called"
        return self.requests[-1]

    @property
    def last_body(self) -> dict[str, Any]:
        return json.loads(self.last_request.content)


@pytest.fixture
def mock_pdp() -> MockPDP:
    return MockPDP()


@pytest.fixture
def pdp_client(mock_pdp: MockPDP) -> PDPClient:
    return PDPClient(timeout=5.0, transport=mock_pdp.transport)


@pytest.fixture
def principal() -> Principal:
    return Principal(user_id="u1", username="alice", email="a@example.com")


@pytest.fixture
def transaction_request() -> RequestInfo:
    return RequestInfo(
        method="POST",
        path="/mm/web/v1/transaction",
        full_url="https://localhost:8080/mm/web/v1/transaction?details=true",
        headers={
            "X-Request-Id": "8CDAC3e6r4D252ABE60EFD7A31AFEEBA",
            "Authorization": "Bearer eyJhbG...lXvZQ",
            "X-Custom-Header": "custom-value",
        },
    )


@pytest.fixture
def transaction_body() -> dict[str, Any]:
    return {
        "transactionName": "Test",
        "transactionAmount": 100,
        "tranTemplateID": "TestTemplate",
        "fromAccount": [
            {"accountId": "1234567890", "accountValue": 10},
            {"accountId": "1234567891", "accountValue": 80},
        ],
        "toAccount": [{"accountId": "1234567893", "accountValue": 10}],
    }
