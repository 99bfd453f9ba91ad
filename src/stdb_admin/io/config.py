"""
Configuration for the stdb_admin.io module.

Defines ClientSettings, a frozen dataclass carrying runtime configuration for the
remote HTTP client and the schema cache. Defaults are sourced from
stdb_admin.core.constants (the single source of truth).

Source of truth
- stdb_admin.core.constants.DEFAULT_HTTP_API, DEFAULT_CACHE_TTL_MINUTES,
  DEFAULT_MAX_LIVE_ROWS, DEFAULT_TIMEOUT_SECONDS

Import DAG discipline
- Depends only on stdlib and stdb_admin.core.constants.

Notes
- Precedence: environment > TOML > defaults.
- The auth token is sent as a bearer header; it is never written to logs.
"""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

from stdb_admin.core.constants import DEFAULT_CACHE_TTL_MINUTES as CORE_CACHE_TTL_MINUTES
from stdb_admin.core.constants import DEFAULT_HTTP_API as CORE_HTTP_API
from stdb_admin.core.constants import DEFAULT_MAX_LIVE_ROWS as CORE_MAX_LIVE_ROWS
from stdb_admin.core.constants import DEFAULT_TIMEOUT_SECONDS as CORE_TIMEOUT_SECONDS

from .errors import ClientConfigError

ENV_PREFIX = "STDB_ADMIN_"


def _bool(v: Any) -> bool:
    if isinstance(v, bool):
        return v
    if isinstance(v, (int, float)):
        return bool(v)
    if isinstance(v, str):
        return v.strip().lower() in {"1", "true", "t", "yes", "y", "on"}
    return False


def _read_toml(p: Path) -> dict[str, Any] | None:
    if not p.is_file():
        return None
    try:
        with p.open("rb") as fh:
            return tomllib.load(fh)
    except (OSError, tomllib.TOMLDecodeError):
        return None


def _client_section(p: Path, data: dict[str, Any] | None) -> dict[str, Any] | None:
    """Pick the client settings table out of a parsed TOML document."""
    if not isinstance(data, dict):
        return None
    if p.name == "pyproject.toml":
        section = data.get("tool", {}).get("stdb_admin", {}).get("client")
    elif isinstance(data.get("client"), dict):
        section = data["client"]
    else:
        section = data
    return section if isinstance(section, dict) else None


@dataclass(frozen=True)
class ClientSettings:
    """
    Runtime settings for the stdb_admin.io layer.

    Attributes:
        http_api (str): Base database API URL, e.g. "https://host/v1/database".
        module (str): Database (module) name or identity appended to http_api.
        module_version (str | None): Preferred schema endpoint version; tried first.
        auth_token (str | None): Owner token sent as ``Authorization: Bearer``.
        cache_ttl_minutes (int): Schema cache lifetime.
        max_live_rows (int): Default row cap for queries (<= 0 disables the cap).
        timeout_seconds (float): Per-request HTTP timeout.
        count_rows (bool): If True, discovery runs COUNT(*) per table for row estimates.

    Examples:
        >>> from stdb_admin.io import ClientSettings
        >>> ClientSettings(module="quickstart", cache_ttl_minutes=5)  # doctest: +ELLIPSIS
        ClientSettings(...)
    """

    http_api: str = CORE_HTTP_API
    module: str = ""
    module_version: str | None = None
    auth_token: str | None = None
    cache_ttl_minutes: int = CORE_CACHE_TTL_MINUTES
    max_live_rows: int = CORE_MAX_LIVE_ROWS
    timeout_seconds: float = CORE_TIMEOUT_SECONDS
    count_rows: bool = False

    @property
    def cache_ttl_seconds(self) -> float:
        return float(self.cache_ttl_minutes) * 60.0

    @property
    def base_url(self) -> str:
        return f"{self.http_api.rstrip('/')}/{self.module}"

    def require_module(self) -> str:
        """Return the configured module, raising ClientConfigError when unset."""
        if not self.module:
            raise ClientConfigError(
                f"no database module configured; set {ENV_PREFIX}MODULE or [client].module"
            )
        return self.module

    # Configuration loaders (env/TOML) with precedence: env > TOML > defaults.

    @classmethod
    def _apply_mapping(cls, base: ClientSettings, cfg: dict[str, Any] | None) -> ClientSettings:
        """Apply a loose config mapping onto ClientSettings, returning a new instance."""
        if not isinstance(cfg, dict):
            return base

        s = base

        for key in ("http_api", "module"):
            if key in cfg and isinstance(cfg[key], str) and cfg[key]:
                s = replace(s, **{key: cfg[key]})

        for key in ("module_version", "auth_token"):
            if key in cfg and isinstance(cfg[key], (str, int)) and str(cfg[key]):
                s = replace(s, **{key: str(cfg[key])})

        for key in ("cache_ttl_minutes", "max_live_rows"):
            if key in cfg:
                try:
                    s = replace(s, **{key: int(cfg[key])})
                except (TypeError, ValueError):
                    pass

        if "timeout_seconds" in cfg:
            try:
                s = replace(s, timeout_seconds=float(cfg["timeout_seconds"]))
            except (TypeError, ValueError):
                pass

        if "count_rows" in cfg:
            s = replace(s, count_rows=_bool(cfg["count_rows"]))

        return s

    @classmethod
    def from_env(cls, base: ClientSettings | None = None, prefix: str = ENV_PREFIX) -> ClientSettings:
        """
        Build ClientSettings from environment variables. Precedence is env > base (if provided) > defaults.

        Recognized variables:
            - STDB_ADMIN_HTTP_API
            - STDB_ADMIN_MODULE
            - STDB_ADMIN_MODULE_VERSION
            - STDB_ADMIN_AUTH_TOKEN
            - STDB_ADMIN_CACHE_TTL_MINUTES
            - STDB_ADMIN_MAX_LIVE_ROWS
            - STDB_ADMIN_TIMEOUT_SECONDS
            - STDB_ADMIN_COUNT_ROWS (1/0/true/false/yes/no/on/off)
        """
        s = base or cls()
        mapping: dict[str, Any] = {}
        for key in (
            "http_api",
            "module",
            "module_version",
            "auth_token",
            "cache_ttl_minutes",
            "max_live_rows",
            "timeout_seconds",
            "count_rows",
        ):
            v = os.getenv(prefix + key.upper())
            if v:
                mapping[key] = v
        return cls._apply_mapping(s, mapping)

    @classmethod
    def from_toml(cls, path: str | os.PathLike[str] | None = None) -> ClientSettings:
        """
        Build ClientSettings from a TOML file.

        Search order when `path` is None:
            1) ./stdb_admin.toml (with either a [client] table or top-level keys)
            2) ./pyproject.toml under [tool.stdb_admin.client]

        Returns defaults if no file is present or parseable.
        """
        if path is not None:
            candidates = [Path(path)]
        else:
            candidates = [Path.cwd() / "stdb_admin.toml", Path.cwd() / "pyproject.toml"]

        for candidate in candidates:
            section = _client_section(candidate, _read_toml(candidate))
            if section:
                return cls._apply_mapping(cls(), section)
        return cls()

    @classmethod
    def load(cls, path: str | os.PathLike[str] | None = None) -> ClientSettings:
        """
        Load ClientSettings applying precedence: environment > TOML > defaults.

        Args:
            path: Optional explicit TOML path. If None, search defaults (stdb_admin.toml, pyproject.toml).
        """
        s = cls.from_toml(path)
        s = cls.from_env(base=s)
        return s
