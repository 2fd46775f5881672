"""
shipfit Centralized Configuration

Provides validated, type-safe access to all environment variables using Pydantic Settings.

Usage:
    from shipfit.core.config import get_settings

    settings = get_settings()
    if settings.log_level == "DEBUG":
        ...

Data Paths:
    All data is stored in {instance_root}/cache/:
    - cache/fittings/: Saved fittings (one JSON document per fitting)

Environment Variables:
    SHIPFIT_LOG_LEVEL: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    SHIPFIT_DEBUG: Legacy debug flag (enables DEBUG level if set)
    SHIPFIT_LOG_JSON: Output logs as JSON
    SHIPFIT_NO_RETRY: Disable HTTP retry logic
    SHIPFIT_ESI_BASE_URL: Type data API base URL
    SHIPFIT_ESI_DATASOURCE: ESI datasource query parameter
    SHIPFIT_ESI_TIMEOUT: Per-request timeout in seconds
    SHIPFIT_TYPE_CACHE_TTL_SECONDS: Type data cache lifetime
    SHIPFIT_MAX_CONCURRENT_LOOKUPS: Upper bound on parallel type lookups
    SHIPFIT_SKILL_MODE: Default skill overlay (none, all_v, my_skills)
    SHIPFIT_INSTANCE_ROOT: Override for the data root directory
"""

from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .constants import ESI_BASE_URL, ESI_DATASOURCE


def _find_project_root() -> Path | None:
    """
    Find the project root by searching upward for pyproject.toml.

    Returns:
        Directory containing pyproject.toml, or None if not found
    """
    current = Path(__file__).resolve().parent

    for _ in range(10):  # Limit search depth
        if (current / "pyproject.toml").exists():
            return current
        parent = current.parent
        if parent == current:
            break  # Reached filesystem root
        current = parent

    return None


def _find_project_env_file() -> Path | None:
    """Return the project .env path if one exists next to pyproject.toml."""
    root = _find_project_root()
    if root is None:
        return None
    env_file = root / ".env"
    return env_file if env_file.exists() else None


def _find_instance_root() -> Path:
    """
    Find the shipfit instance root directory.

    Resolution order:
    1. Project root (directory containing pyproject.toml)
    2. Current working directory (fallback)

    SHIPFIT_INSTANCE_ROOT is handled by the settings model itself.
    """
    return _find_project_root() or Path.cwd()


# Resolve paths at module load time
_ENV_FILE = _find_project_env_file()
_INSTANCE_ROOT = _find_instance_root()

SkillModeName = Literal["none", "all_v", "my_skills"]


class ShipfitSettings(BaseSettings):
    """
    shipfit configuration settings with validation.

    Environment variables are automatically loaded with the SHIPFIT_ prefix.
    All settings have sensible defaults and validation.
    """

    model_config = SettingsConfigDict(
        env_prefix="SHIPFIT_",
        env_file=_ENV_FILE,
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    # =========================================================================
    # Logging Configuration
    # =========================================================================

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="WARNING",
        description="Log level for shipfit components",
    )

    debug: bool = Field(
        default=False,
        description="Legacy debug flag (enables DEBUG level if set)",
    )

    log_json: bool = Field(
        default=False,
        description="Output logs in JSON format for machine parsing",
    )

    # =========================================================================
    # Type Data API
    # =========================================================================

    no_retry: bool = Field(
        default=False,
        description="Disable HTTP retry logic (tenacity)",
    )

    esi_base_url: str = Field(
        default=ESI_BASE_URL,
        description="Base URL of the type data API",
    )

    esi_datasource: str = Field(
        default=ESI_DATASOURCE,
        description="Datasource query parameter sent with every request",
    )

    esi_timeout: float = Field(
        default=30.0,
        gt=0,
        description="Per-request timeout in seconds",
    )

    type_cache_ttl_seconds: int = Field(
        default=3600,
        ge=0,
        description="Lifetime of cached type, group and name lookups",
    )

    max_concurrent_lookups: int = Field(
        default=20,
        ge=1,
        description="Maximum number of type lookups in flight at once",
    )

    # =========================================================================
    # Fitting Defaults
    # =========================================================================

    skill_mode: SkillModeName = Field(
        default="all_v",
        description="Default skill overlay for new fitting sessions",
    )

    # =========================================================================
    # Data Paths
    # =========================================================================

    instance_root: Path = Field(
        default=_INSTANCE_ROOT,
        description="Instance root directory (project root containing pyproject.toml)",
    )

    # =========================================================================
    # Validators
    # =========================================================================

    @field_validator("log_level", mode="before")
    @classmethod
    def uppercase_log_level(cls, v: str) -> str:
        """Normalize log level to uppercase."""
        if isinstance(v, str):
            return v.upper()
        return v

    @field_validator("skill_mode", mode="before")
    @classmethod
    def normalize_skill_mode(cls, v: str) -> str:
        """Accept 'allV' / 'mySkills' spellings used by older saved settings."""
        if isinstance(v, str):
            aliases = {"allv": "all_v", "myskills": "my_skills"}
            lowered = v.strip().lower()
            return aliases.get(lowered, lowered)
        return v

    # =========================================================================
    # Computed Properties
    # =========================================================================

    @property
    def effective_log_level(self) -> str:
        """
        Get effective log level, respecting legacy SHIPFIT_DEBUG.

        Priority:
        1. Explicit SHIPFIT_LOG_LEVEL
        2. SHIPFIT_DEBUG=1 → DEBUG
        3. Default: WARNING
        """
        if self.debug and self.log_level == "WARNING":
            return "DEBUG"
        return self.log_level

    @property
    def log_level_int(self) -> int:
        """Get effective log level as logging constant."""
        return getattr(logging, self.effective_log_level)

    @property
    def cache_dir(self) -> Path:
        """Path to cache directory."""
        return self.instance_root / "cache"

    @property
    def fittings_dir(self) -> Path:
        """Path to saved fittings."""
        return self.cache_dir / "fittings"


# =============================================================================
# Singleton Accessor
# =============================================================================


@lru_cache(maxsize=1)
def get_settings() -> ShipfitSettings:
    """
    Get the singleton settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    The settings are validated at first access.
    """
    return ShipfitSettings()


def reset_settings() -> None:
    """
    Reset the settings cache (for testing).

    After calling this, the next get_settings() call will
    reload settings from environment variables.
    """
    get_settings.cache_clear()


# =============================================================================
# Convenience Functions
# =============================================================================


def is_debug_enabled() -> bool:
    """Check if debug logging is enabled."""
    return get_settings().effective_log_level == "DEBUG"


def is_json_logging() -> bool:
    """Check if JSON logging is enabled."""
    return get_settings().log_json


def is_retry_disabled() -> bool:
    """Check if retry logic is disabled via environment."""
    return get_settings().no_retry
