# Copyright 2026 The OpenChoreo Authors
# SPDX-License-Identifier: Apache-2.0

"""Authorization rule configuration (``authorization.yaml``).

Keys may be written with underscores (``validation_url``) or hyphens
(``validation-url``). Sections are also accepted as ``coarse-check`` and
``finegrain-check``.
"""

import logging
from pathlib import Path
from typing import Annotated

import httpx
import yaml
from pydantic import (
    AfterValidator,
    AliasChoices,
    BaseModel,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)

from authz_gateway.authz.errors import ConfigurationError, MalformedPathError
from authz_gateway.authz.extractor import parse_path
from authz_gateway.authz.matcher import (
    match,
    match_with_method,
    normalize_pattern,
    select_best,
    split_method,
)

logger = logging.getLogger(__name__)


def _hyphenate(name: str) -> str:
    return name.replace("_", "-")


_SECTION_CONFIG = {
    "alias_generator": _hyphenate,
    "populate_by_name": True,
    "frozen": True,
}


def _check_validation_url(url: str) -> str:
    # Blank means the section is inactive
    if not url.strip():
        return url
    try:
        parsed = httpx.URL(url)
    except (httpx.InvalidURL, ValueError) as e:
        raise ValueError(f"invalid validation URL {url!r}: {e}") from e
    if parsed.scheme not in ("http", "https") or not parsed.host:
        raise ValueError(f"validation URL {url!r} must be an absolute http(s) URL")
    return url


ValidationURL = Annotated[str, AfterValidator(_check_validation_url)]


class FineRule(BaseModel):
    roles: list[str] = Field(default_factory=list)
    ruleset_name: str = ""
    ruleset_id: str = ""
    body: dict[str, str] = Field(default_factory=dict)

    model_config = _SECTION_CONFIG

    @field_validator("body")
    @classmethod
    def _check_paths(cls, body: dict[str, str]) -> dict[str, str]:
        for field_name, json_path in body.items():
            try:
                parse_path(json_path)
            except MalformedPathError as e:
                raise ValueError(f"body field {field_name!r}: {e}") from e
        return body


class CoarseConfig(BaseModel):
    enabled: bool = False
    anonymous_access: bool = False
    validation_url: ValidationURL = ""
    client_id: str = ""
    client_secret: str = ""
    client_auth_method: str = ""
    resource_map: dict[str, str] = Field(default_factory=dict)

    model_config = _SECTION_CONFIG

    @property
    def active(self) -> bool:
        return self.enabled and bool(self.validation_url.strip())

    def match_resource(self, path: str) -> str | None:
        """Map a request path to its logical resource. Method suffixes are ignored."""

        def _match(key: str) -> tuple[bool, int]:
            return match(split_method(normalize_pattern(key)).pattern, path)

        key = select_best(self.resource_map, path, _match)
        return None if key is None else self.resource_map[key]


class FineGrainConfig(BaseModel):
    enabled: bool = False
    validation_url: ValidationURL = ""
    client_id: str = ""
    client_secret: str = ""
    client_auth_method: str = ""
    resource_map: dict[str, FineRule] = Field(default_factory=dict)

    model_config = _SECTION_CONFIG

    @property
    def active(self) -> bool:
        return self.enabled and bool(self.validation_url.strip())

    def match_rule(self, method: str, path: str) -> FineRule | None:
        def _match(key: str) -> tuple[bool, int]:
            return match_with_method(key, method, path)

        key = select_best(self.resource_map, f"{method.upper()} {path}", _match)
        return None if key is None else self.resource_map[key]


class AuthorizationConfig(BaseModel):
    coarse: CoarseConfig = Field(
        default_factory=CoarseConfig,
        validation_alias=AliasChoices("coarse", "coarse-check", "coarse_check"),
    )
    fine_grain: FineGrainConfig = Field(
        default_factory=FineGrainConfig,
        validation_alias=AliasChoices(
            "fine_grain", "fine-grain", "finegrain-check", "finegrain_check"
        ),
    )

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def _require_enabled_section(self) -> "AuthorizationConfig":
        if not self.coarse.active and not self.fine_grain.active:
            raise ValueError("at least one enabled section with a validation URL is required")
        return self


def load_authorization_config(path: str | Path) -> AuthorizationConfig:
    path = Path(path)
    try:
        raw = yaml.safe_load(path.read_text())
    except OSError as e:
        raise ConfigurationError(f"cannot read authorization config {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigurationError(f"invalid YAML in {path}: {e}") from e

    if not isinstance(raw, dict):
        raise ConfigurationError(f"authorization config {path} must be a mapping")

    try:
        config = AuthorizationConfig.model_validate(raw)
    except ValidationError as e:
        raise ConfigurationError(f"invalid authorization config {path}: {e}") from e

    logger.info(
        "Authorization config loaded",
        extra={
            "path": str(path),
            "coarse_rules": len(config.coarse.resource_map),
            "fine_grain_rules": len(config.fine_grain.resource_map),
        },
    )
    return config
