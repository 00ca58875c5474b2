# Copyright 2026 The OpenChoreo Authors
# SPDX-License-Identifier: Apache-2.0

from authz_gateway.authz.coarse import CoarseAuthorizer
from authz_gateway.authz.config import (
    AuthorizationConfig,
    CoarseConfig,
    FineGrainConfig,
    FineRule,
    load_authorization_config,
)
from authz_gateway.authz.decision_request import build_decision_request
from authz_gateway.authz.errors import (
    AmbiguousRuleError,
    AuthorizationError,
    ConfigurationError,
    ExtractionError,
    InvalidRequestError,
    MalformedPathError,
    MissingFieldError,
    ProtocolError,
    TransportError,
    TypeMismatchError,
    UnsupportedClientAuthMethodError,
)
from authz_gateway.authz.extractor import extract
from authz_gateway.authz.fine_grain import FineGrainAuthorizer
from authz_gateway.authz.gateway import GatewayAuthorizer, GatewayDecision
from authz_gateway.authz.matcher import match, match_with_method
from authz_gateway.authz.models import CheckResult, Principal, RequestInfo
from authz_gateway.authz.pdp_client import PDPClient

__all__ = [
    # Configuration
    "AuthorizationConfig",
    "CoarseConfig",
    "FineGrainConfig",
    "FineRule",
    "load_authorization_config",
    # Matching and extraction
    "match",
    "match_with_method",
    "extract",
    "build_decision_request",
    # Authorizers
    "CheckResult",
    "CoarseAuthorizer",
    "FineGrainAuthorizer",
    "GatewayAuthorizer",
    "GatewayDecision",
    "PDPClient",
    "Principal",
    "RequestInfo",
    # Errors
    "AuthorizationError",
    "ConfigurationError",
    "UnsupportedClientAuthMethodError",
    "AmbiguousRuleError",
    "ExtractionError",
    "MissingFieldError",
    "TypeMismatchError",
    "MalformedPathError",
    "InvalidRequestError",
    "TransportError",
    "ProtocolError",
]
