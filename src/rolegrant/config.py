"""XDG config loading."""

from __future__ import annotations

import os
import sys
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field
from typing_extensions import TypedDict

if sys.version_info >= (3, 11):
    import tomllib
else:  # pragma: no cover
    import tomli as tomllib

from rolegrant.retry import RetryPolicy

DEFAULT_CONFIG_PATH = Path("~/.config/rolegrant/config.toml").expanduser()
DEFAULT_MAX_ATTEMPTS = 5
DEFAULT_INITIAL_BACKOFF_SECONDS = 5.0
DEFAULT_BACKOFF_MULTIPLIER = 2.0
SUBSCRIPTION_ID_ENV = "ROLEGRANT_SUBSCRIPTION_ID"


class RoleBinding(TypedDict):
    role_id: str
    scope: str
    role_name: str


class AppConfig(BaseModel):
    model_config = ConfigDict(validate_assignment=True)

    subscription_id: str = ""
    max_attempts: int = Field(default=DEFAULT_MAX_ATTEMPTS, ge=1, le=10)
    initial_backoff_seconds: float = Field(default=DEFAULT_INITIAL_BACKOFF_SECONDS, gt=0)
    backoff_multiplier: float = Field(default=DEFAULT_BACKOFF_MULTIPLIER, ge=1)
    role_bindings: list[RoleBinding] = Field(default_factory=list)

    def retry_policy(self) -> RetryPolicy:
        return RetryPolicy(
            max_attempts=self.max_attempts,
            initial_backoff_seconds=self.initial_backoff_seconds,
            multiplier=self.backoff_multiplier,
        )


def get_config_path(path: str | Path | None = None) -> Path:
    if path is None:
        return DEFAULT_CONFIG_PATH
    return Path(path).expanduser()


def _number(value: object) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)


def _normalize_role_bindings(value: object) -> list[RoleBinding]:
    if not isinstance(value, list):
        return []

    normalized: list[RoleBinding] = []
    seen: set[tuple[str, str]] = set()
    for item in value:
        if not isinstance(item, dict):
            continue
        role_id = item.get("role_id")
        scope = item.get("scope")
        role_name = item.get("role_name", "")
        if not isinstance(role_id, str) or not isinstance(scope, str):
            continue
        role_id = role_id.strip()
        scope = scope.strip()
        if not role_id or not scope or (role_id, scope) in seen:
            continue
        seen.add((role_id, scope))
        name = role_name.strip() if isinstance(role_name, str) and role_name.strip() else role_id
        normalized.append(RoleBinding(role_id=role_id, scope=scope, role_name=name))
    return normalized


def _sanitize(raw: dict[str, object]) -> AppConfig:
    cfg = AppConfig()

    subscription_id = raw.get("subscription_id", cfg.subscription_id)
    if isinstance(subscription_id, str):
        cfg.subscription_id = subscription_id.strip()
    env_subscription = os.getenv(SUBSCRIPTION_ID_ENV, "").strip()
    if env_subscription:
        cfg.subscription_id = env_subscription

    max_attempts = raw.get("max_attempts", cfg.max_attempts)
    if isinstance(max_attempts, bool):
        max_attempts = cfg.max_attempts
    if isinstance(max_attempts, int) and 1 <= max_attempts <= 10:
        cfg.max_attempts = max_attempts

    initial_backoff = _number(raw.get("initial_backoff_seconds"))
    if initial_backoff is not None and initial_backoff > 0:
        cfg.initial_backoff_seconds = initial_backoff

    multiplier = _number(raw.get("backoff_multiplier"))
    if multiplier is not None and multiplier >= 1:
        cfg.backoff_multiplier = multiplier

    cfg.role_bindings = _normalize_role_bindings(raw.get("role_bindings", []))
    return cfg


def load_config(path: str | Path | None = None) -> AppConfig:
    resolved = get_config_path(path)
    if not resolved.exists():
        return _sanitize({})
    try:
        with resolved.open("rb") as handle:
            raw = tomllib.load(handle)
    except (tomllib.TOMLDecodeError, OSError):
        return _sanitize({})
    if not isinstance(raw, dict):
        return _sanitize({})
    return _sanitize(raw)
