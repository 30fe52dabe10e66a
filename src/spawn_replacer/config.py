"""Application configuration management using Pydantic Settings.

This module defines the `Settings` class holding every spawn-replacer toggle.
Values come from three layers, lowest precedence first:

1. Built-in defaults (assault/marksman -> pmcBot, every patch path enabled).
2. Environment variables prefixed `SPAWN_REPLACER_` (and a `.env` file).
3. The mod's JSON/JSONC config file, discovered under the mod root.

`load_settings` never raises: a missing config file yields defaults, and an
unreadable or invalid one yields defaults plus a warning. The `get_settings`
function provides a cached instance for the CLI.
"""
from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import json5
from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings
from pydantic_settings import SettingsConfigDict as _SettingsConfigDict

from .identifiers import DEFAULT_SOURCES, DEFAULT_TARGET

logger = logging.getLogger(__name__)

__all__ = [
    "CONFIG_CANDIDATES",
    "Settings",
    "find_config_file",
    "get_settings",
    "load_settings",
    "normalize_config_keys",
]

# Relative to the mod root, in lookup order.
CONFIG_CANDIDATES = (
    Path("config") / "config.jsonc",
    Path("config") / "config.json",
    Path("Config") / "config.jsonc",
    Path("Config") / "config.json",
)


class Settings(BaseSettings):
    """Defines all spawn-replacer configuration parameters.

    Field names follow the environment variable convention; the JSON config
    file may spell them in any case with or without underscores
    (`FromWildSpawnTypes`, `fromWildSpawnTypes` and `FROM_WILD_SPAWN_TYPES` are
    equivalent).
    """

    model_config = _SettingsConfigDict(
        env_prefix="SPAWN_REPLACER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    ENABLED: bool = Field(default=True, description="Master switch for every patch path")

    # Identifiers
    FROM_WILD_SPAWN_TYPES: Any = Field(
        default_factory=lambda: list(DEFAULT_SOURCES),
        description=(
            "Spawn types to replace (comma-separated in env). Matching is "
            "case-insensitive; an empty list falls back to assault,marksman."
        ),
    )
    TO_WILD_SPAWN_TYPE: str = Field(
        default=DEFAULT_TARGET,
        description="Spawn type written in place of every source identifier",
    )

    # Map filters
    ONLY_MAPS: Any = Field(
        default_factory=list,
        description="Allow-list of map names (empty = all maps). Case-insensitive.",
    )
    EXCLUDE_MAPS: Any = Field(
        default_factory=list,
        description="Deny-list of map names applied after ONLY_MAPS. Case-insensitive.",
    )

    # ---------------- Patch behaviour -----------------
    PATCH_WAVES: bool = Field(default=True, description="Patch each map's Waves container")
    PATCH_MIN_MAX_BOTS: bool = Field(default=True, description="Patch each map's MinMaxBots container")
    DEEP_PATCH_ENABLED: bool = Field(
        default=True,
        description="Walk each map's whole base record, not just the known containers",
    )
    PATCH_DICTIONARY_KEYS: bool = Field(
        default=True,
        description="Also rename dictionary keys equal to a source spawn type",
    )

    # ---------------- Route triggers -----------------
    ROUTE_PATCHING_ENABLED: bool = Field(
        default=True, description="Allow raid lifecycle routes to re-run the map patch"
    )
    PATCH_ON_LOCAL_START: bool = Field(default=True, description="Re-patch on raid start")
    PATCH_ON_RAID_CONFIGURATION: bool = Field(
        default=True, description="Re-patch when the client fetches raid configuration"
    )
    PATCH_ON_LOCAL_END: bool = Field(default=True, description="Re-patch on raid end")
    PATCH_ON_BOT_GENERATE: bool = Field(
        default=True, description="Patch bot generation responses before they are sent"
    )

    # Logging & diagnostics
    DEBUG_DUMP: bool = Field(
        default=False,
        description="Append a per-pass summary to <mod root>/_debug/patched_summary.txt",
    )
    LOG_LEVEL: str = Field(default="INFO", description="Logging level")

    @field_validator("FROM_WILD_SPAWN_TYPES", "ONLY_MAPS", "EXCLUDE_MAPS", mode="before")
    @classmethod
    def parse_comma_separated(cls, v: Union[str, List[str], None]) -> List[str]:
        """Parse comma-separated string into list of stripped strings.

        Supports both direct list input (from the config file or tests) and
        comma-separated string input (from environment variables). Non-string
        list entries are ignored.
        """
        if isinstance(v, list):
            return [s.strip() for s in v if isinstance(s, str) and s.strip()]
        if isinstance(v, str):
            if not v.strip():
                return []
            return [s.strip() for s in v.split(",") if s.strip()]
        return []

    @field_validator("TO_WILD_SPAWN_TYPE", mode="before")
    @classmethod
    def normalize_target(cls, v: Any) -> str:
        """Trim whitespace; blank or missing falls back to the default target."""
        if isinstance(v, str) and v.strip():
            return v.strip()
        return DEFAULT_TARGET


def _key(name: str) -> str:
    return name.replace("_", "").replace("-", "").casefold()


_FIELD_BY_KEY: Dict[str, str] = {_key(name): name for name in Settings.model_fields}


def normalize_config_keys(data: Dict[str, Any]) -> Dict[str, Any]:
    """Map config-file keys onto `Settings` field names case-insensitively.

    Unknown keys are dropped with a debug log.
    """
    out: Dict[str, Any] = {}
    for key, value in data.items():
        field_name = _FIELD_BY_KEY.get(_key(str(key)))
        if field_name is None:
            logger.debug("Ignoring unknown config key %r", key)
            continue
        out[field_name] = value
    return out


def find_config_file(mod_root: Union[str, Path]) -> Optional[Path]:
    """Return the first existing config file under `mod_root`, or None."""
    root = Path(mod_root)
    for candidate in CONFIG_CANDIDATES:
        path = root / candidate
        if path.is_file():
            return path
    return None


def load_settings(mod_root: Optional[Union[str, Path]] = None) -> Settings:
    """Load settings from the mod's config file layered over env and defaults.

    Args:
        mod_root: Directory containing `config/` (or `Config/`). When None
            only environment variables and defaults apply.

    Returns:
        A validated `Settings` instance. Never raises.
    """
    path = find_config_file(mod_root) if mod_root is not None else None
    if path is None:
        return _default_settings()

    try:
        raw = path.read_text(encoding="utf-8-sig")
        # JSON5 accepts comments and trailing commas
        data = json5.loads(raw) if raw.strip() else {}
        if not isinstance(data, dict):
            raise ValueError(f"expected a JSON object, got {type(data).__name__}")
        settings = Settings(**normalize_config_keys(data))
    except (OSError, ValueError, ValidationError) as e:
        logger.warning("Invalid config file %s, using defaults: %s", path, e)
        return _default_settings()
    logger.debug("Loaded config from %s", path)
    return settings


def _default_settings() -> Settings:
    try:
        return Settings()
    except ValidationError as e:
        # A malformed env var must not make loading fatal.
        logger.warning("Ignoring invalid SPAWN_REPLACER_* environment: %s", e)
        return Settings.model_construct()


@lru_cache(maxsize=1)
def get_settings(mod_root: Optional[str] = None) -> Settings:  # pragma: no cover - trivial
    """Return a cached settings instance for `mod_root`."""
    return load_settings(mod_root)
