# Copyright 2026 The OpenChoreo Authors
# SPDX-License-Identifier: Apache-2.0

from typing import Any, NamedTuple

from pydantic import BaseModel, Field

from authz_gateway.authz.config import FineRule


class Principal(BaseModel):
    user_id: str = ""
    username: str = ""
    email: str = ""

    model_config = {"frozen": True}


class RequestInfo(BaseModel):
    # Only method and path are serialized into PDP payloads; headers reach the
    # decision request through an explicit subset.
    method: str
    path: str
    full_url: str = Field(default="", exclude=True)
    headers: dict[str, str] | None = Field(default=None, exclude=True)

    model_config = {"frozen": True}

    def get_header(self, name: str) -> str:
        if not self.headers:
            return ""
        if name in self.headers:
            return self.headers[name]
        lowered = name.lower()
        for key, value in self.headers.items():
            if key.lower() == lowered:
                return value
        return ""


class CheckResult(NamedTuple):
    allow: bool
    reason: str
    error: Exception | None = None


# Coarse and generic fine-grained dialect


class CoarsePayload(BaseModel):
    principal: Principal
    request: RequestInfo
    resource: str
    anonymous_access: bool


class GenericFinePayload(BaseModel):
    principal: Principal
    request: RequestInfo
    rule: FineRule


class ValidationResponse(BaseModel):
    allow: bool = False
    reason: str | None = None


# Decision dialect


class DecisionURI(BaseModel):
    schema_: str = Field(alias="schema")
    authority: dict[str, str] = Field(default_factory=dict)
    path: list[str] = Field(default_factory=list)
    query: dict[str, str | list[str]] = Field(default_factory=dict)

    model_config = {"populate_by_name": True}


class RuntimeFineTune(BaseModel):
    combined_multi_value: bool = Field(default=False, alias="combinedMultiValue")

    model_config = {"populate_by_name": True}


class DecisionMeta(BaseModel):
    runtime_fine_tune: RuntimeFineTune = Field(
        default_factory=RuntimeFineTune, alias="runtimeFineTune"
    )

    model_config = {"populate_by_name": True}


class DecisionRequest(BaseModel):
    method: str
    headers: dict[str, str]
    uri: DecisionURI
    body: dict[str, Any] = Field(default_factory=dict)
    meta: DecisionMeta = Field(default_factory=DecisionMeta)

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


class DecisionResponse(BaseModel):
    allow: bool = False
    reason: str | None = None
    permit: str | None = None
    deny: str | None = None

    def outcome(self) -> tuple[bool, str]:
        """Resolve the response as permit, then deny, then the allow flag."""
        if self.permit:
            return True, self.permit
        if self.deny:
            return False, self.deny
        return self.allow, self.reason or ""
