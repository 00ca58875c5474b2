# Copyright 2026 The OpenChoreo Authors
# SPDX-License-Identifier: Apache-2.0

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="allow",
    )

    # Logging
    log_level: str = "INFO"

    # Authorization rules (coarse and fine-grained resource maps)
    authz_config_path: str = "authorization.yaml"

    # Outbound PDP calls
    pdp_timeout_seconds: float = 5.0

    # Skip TLS certificate verification (for self-signed certificates)
    tls_insecure_skip_verify: bool = False

    # Backend that authorized requests are forwarded to
    upstream_url: str = ""
    upstream_timeout_seconds: float = 30.0

    request_id_header: str = "X-Request-Id"

    # Identity headers set by the authentication layer in front of the gateway
    principal_user_id_header: str = "X-Forwarded-User"
    principal_username_header: str = "X-Forwarded-Preferred-Username"
    principal_email_header: str = "X-Forwarded-Email"


settings = Settings()
