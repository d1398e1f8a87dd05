from __future__ import annotations

import json
import os
import secrets
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

from creations_core.home import CreationsPaths

ENV_BACKEND_URL = "CREATIONS_BACKEND_URL"
ENV_AUTH_SECRET = "CREATIONS_AUTH_SECRET"


class NetworkConfig(BaseModel):
    bind_host: str = Field(default="127.0.0.1")
    port: int = Field(default=8790, ge=1, le=65535)


class BackendConfig(BaseModel):
    """Gallery REST backend that owns the creations data."""

    base_url: str = Field(
        default="http://127.0.0.1:5000",
        description="Base URL of the backend; /api/gallery routes are appended to it.",
    )
    timeout_s: float = Field(default=30.0, gt=0)


class AuthConfig(BaseModel):
    secret: str | None = Field(
        default=None,
        description="HS256 secret used to sign and verify session cookies.",
    )
    session_max_age_s: int = Field(default=60 * 60 * 24 * 30, ge=60)


class LoggingConfig(BaseModel):
    max_size_mb: int = Field(
        default=10, ge=1, description="Max size of a log file in MB before rolling."
    )
    backup_count: int = Field(default=5, ge=1, description="Number of log archives to keep.")


class CoreConfig(BaseModel):
    version: str = Field(default="1")
    network: NetworkConfig = Field(default_factory=NetworkConfig)
    backend: BackendConfig = Field(default_factory=BackendConfig)
    auth: AuthConfig = Field(default_factory=AuthConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def _read_json(path: Path) -> dict[str, Any]:
    with path.open("r", encoding="utf-8") as f:
        return json.load(f)


def load_core_config(paths: CreationsPaths) -> CoreConfig:
    """Load config from ${CREATIONS_HOME}/config/core.json.

    - If missing: returns defaults.
    - Validation is performed by Pydantic.
    """

    config_path = paths.core_config_path
    if not config_path.exists():
        return CoreConfig()

    raw = _read_json(config_path)
    return CoreConfig.model_validate(raw)


def write_core_config(paths: CreationsPaths, config: CoreConfig) -> None:
    """Persist config to ${CREATIONS_HOME}/config/core.json."""

    payload = config.model_dump(mode="json", exclude_none=True)
    paths.config_dir.mkdir(parents=True, exist_ok=True)
    paths.core_config_path.write_text(json.dumps(payload, indent=2) + "\n", encoding="utf-8")


def apply_env_overrides(config: CoreConfig, environ: dict[str, str] | None = None) -> CoreConfig:
    """Let deployment env vars win over core.json for the backend URL and auth secret."""

    env = os.environ if environ is None else environ

    updated = config
    backend_url = (env.get(ENV_BACKEND_URL) or "").strip()
    if backend_url:
        backend = updated.backend.model_copy(update={"base_url": backend_url})
        updated = updated.model_copy(update={"backend": backend})

    secret = (env.get(ENV_AUTH_SECRET) or "").strip()
    if secret:
        auth = updated.auth.model_copy(update={"secret": secret})
        updated = updated.model_copy(update={"auth": auth})

    return updated


def ensure_auth_secret(paths: CreationsPaths, config: CoreConfig) -> CoreConfig:
    """Ensure a session signing secret exists.

    If missing, generate one and persist it to core.json so sessions survive restarts.
    """

    raw = (config.auth.secret or "").strip()
    if raw:
        return config

    secret = secrets.token_urlsafe(32)
    updated_auth = config.auth.model_copy(update={"secret": secret})
    updated = config.model_copy(update={"auth": updated_auth})
    write_core_config(paths, updated)
    return updated
