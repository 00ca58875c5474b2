# Copyright 2026 The OpenChoreo Authors
# SPDX-License-Identifier: Apache-2.0

from typing import Any
from urllib.parse import SplitResult, parse_qs, urlsplit

from authz_gateway.authz.config import FineRule
from authz_gateway.authz.errors import ExtractionError, InvalidRequestError
from authz_gateway.authz.extractor import extract
from authz_gateway.authz.models import DecisionRequest, DecisionURI, RequestInfo

REQUEST_ID_HEADER = "X-Request-Id"
AUTHORIZATION_HEADER = "Authorization"


def _authority(url: SplitResult) -> dict[str, str]:
    if not url.hostname:
        return {}
    authority = {"host": url.hostname}
    if url.port is not None:
        authority["port"] = str(url.port)
    return authority


def _path_list(path: str) -> list[str]:
    return [path, *path.removeprefix("/").split("/")]


def _query(raw_query: str) -> dict[str, str | list[str]]:
    params: dict[str, str | list[str]] = {}
    for key, values in parse_qs(raw_query, keep_blank_values=True).items():
        params[key] = values[0] if len(values) == 1 else values
    return params


def _headers(request: RequestInfo, request_id_header: str) -> dict[str, str]:
    headers = {"x-request-id": request.get_header(request_id_header)}
    authorization = request.get_header(AUTHORIZATION_HEADER)
    if authorization:
        headers[AUTHORIZATION_HEADER] = authorization
    return headers


def extract_body(body_data: Any, rule: FineRule) -> dict[str, Any]:
    extracted: dict[str, Any] = {}
    for field_name, json_path in rule.body.items():
        try:
            extracted[field_name] = extract(body_data, json_path)
        except ExtractionError as e:
            e.add_note(f"while extracting body field {field_name!r}")
            raise
    return extracted


def build_decision_request(
    request: RequestInfo,
    rule: FineRule,
    body_data: Any,
    request_id_header: str = REQUEST_ID_HEADER,
) -> DecisionRequest:
    """Build the PDP decision request for a matched fine-grained rule.

    Raises ExtractionError when any field declared in ``rule.body`` does not
    resolve against ``body_data``. The inbound ``request_id_header`` is sent
    to the PDP as ``x-request-id``.
    """
    try:
        url = urlsplit(request.full_url)
        authority = _authority(url)
    except ValueError as e:
        raise InvalidRequestError(f"failed to parse URL {request.full_url!r}: {e}") from e

    return DecisionRequest(
        method=request.method,
        headers=_headers(request, request_id_header),
        uri=DecisionURI(
            schema=url.scheme or "http",
            authority=authority,
            path=_path_list(request.path),
            query=_query(url.query),
        ),
        body=extract_body(body_data, rule),
    )
