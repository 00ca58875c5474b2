# Copyright 2026 The OpenChoreo Authors
# SPDX-License-Identifier: Apache-2.0

import logging
from typing import Any

import httpx

from authz_gateway.authz.errors import (
    ConfigurationError,
    ProtocolError,
    TransportError,
    UnsupportedClientAuthMethodError,
)

logger = logging.getLogger(__name__)

CLIENT_SECRET_BASIC = "client_secret_basic"


def client_auth(method: str, client_id: str, client_secret: str) -> httpx.Auth | None:
    """Resolve the configured client authentication for PDP calls.

    Only ``client_secret_basic`` is supported. An empty method means no auth.
    """
    if method and method != CLIENT_SECRET_BASIC:
        raise UnsupportedClientAuthMethodError(method)
    if method == CLIENT_SECRET_BASIC and client_id:
        return httpx.BasicAuth(client_id, client_secret)
    return None


class PDPClient:
    def __init__(
        self,
        timeout: float,
        verify_ssl: bool = True,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.timeout = timeout
        self.verify_ssl = verify_ssl
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

        logger.info("PDP client initialized", extra={"timeout": timeout})

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout),
                verify=self.verify_ssl,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def post(
        self,
        url: str,
        body: dict[str, Any],
        auth: httpx.Auth | None = None,
        non_2xx_reason: str = "non-2xx from validation service",
    ) -> Any:
        """POST ``body`` as JSON and return the decoded JSON response.

        Raises ConfigurationError for an unusable ``url``, TransportError when
        the PDP cannot be reached and ProtocolError for a non-2xx status or an
        undecodable body.
        """
        try:
            target = httpx.URL(url)
        except (httpx.InvalidURL, ValueError) as e:
            raise ConfigurationError(f"invalid PDP URL {url!r}: {e}") from e

        headers = {"Content-Type": "application/json"}

        logger.debug("PDP request", extra={"url": url, "authenticated": auth is not None})

        client = await self._get_client()

        try:
            response = await client.post(target, json=body, headers=headers, auth=auth)
        except httpx.RequestError as e:
            raise TransportError(f"PDP request to {url} failed: {e!r}") from e

        if not response.is_success:
            logger.debug(
                "PDP returned non-2xx",
                extra={"url": url, "status": response.status_code, "response_body": response.text},
            )
            raise ProtocolError(
                f"{response.status_code} {response.reason_phrase}", reason=non_2xx_reason
            )

        try:
            return response.json()
        except ValueError as e:
            raise ProtocolError(f"invalid JSON from PDP at {url}: {e}") from e
