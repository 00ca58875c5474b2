# Copyright 2026 The OpenChoreo Authors
# SPDX-License-Identifier: Apache-2.0


class AuthorizationError(Exception):
    pass


class ConfigurationError(AuthorizationError):
    """The running gateway cannot form correct decision requests."""


class UnsupportedClientAuthMethodError(ConfigurationError):
    def __init__(self, method: str):
        super().__init__(f"unsupported client auth method: {method}")
        self.method = method


class AmbiguousRuleError(ConfigurationError):
    def __init__(self, path: str, patterns: list[str], specificity: int):
        super().__init__(
            f"patterns {sorted(patterns)} match {path!r} with equal specificity {specificity}"
        )
        self.path = path
        self.patterns = patterns
        self.specificity = specificity


class ExtractionError(AuthorizationError):
    def __init__(self, json_path: str, message: str):
        super().__init__(f"path {json_path!r}: {message}")
        self.json_path = json_path


class MissingFieldError(ExtractionError):
    def __init__(self, json_path: str, field: str):
        super().__init__(json_path, f"field {field!r} not found in object")
        self.field = field


class TypeMismatchError(ExtractionError):
    pass


class MalformedPathError(ExtractionError, ConfigurationError):
    """A JSON path that can never resolve, whatever the request body."""


class TransportError(AuthorizationError):
    pass


class ProtocolError(AuthorizationError):
    def __init__(self, message: str, reason: str = ""):
        super().__init__(message)
        self.reason = reason


class InvalidRequestError(AuthorizationError):
    pass
