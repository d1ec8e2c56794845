"""Environment aware configuration loader for the analysis engine."""

from __future__ import annotations

import copy
import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Mapping, MutableMapping, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_SETTINGS: Dict[str, Any] = {
    "providers": {
        "order": ["tradier", "polygon", "yfinance"],
        "include_synthetic": True,
        "timeout_seconds": 10.0,
        "settings": {},
    },
    "cache": {
        "quote_ttl_seconds": 300,
        "analysis_ttl_seconds": 1800,
    },
    "pricing": {
        "risk_free_rate": 0.05,
        "default_volatility": 0.25,
        "min_premium": 0.05,
    },
    "synthetic": {
        "seed_bucket_seconds": 1800,
    },
    "filter": {
        "max_candidates": 10,
        "min_days": 7,
        "max_days": 90,
    },
}

CONFIG_DIR = Path(__file__).resolve().parents[2] / "config"
CONFIG_DIR_VARIABLE = "PREMIUM_ADVISOR_CONFIG_DIR"
ENVIRONMENT_VARIABLE = "APP_ENV"


class ProviderSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    order: List[str] = Field(default_factory=list)
    include_synthetic: bool = True
    timeout_seconds: float = Field(default=10.0, gt=0)
    settings: Dict[str, Dict[str, Any]] = Field(default_factory=dict)

    @field_validator("order", mode="before")
    @classmethod
    def _normalize_order(cls, value: Any) -> List[str]:
        return [str(name).strip().lower() for name in (value or [])]

    def settings_for(self, provider: str) -> Dict[str, Any]:
        return dict(self.settings.get(provider, {}) or {})


class CacheSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    quote_ttl_seconds: int = Field(default=300, ge=0)
    analysis_ttl_seconds: int = Field(default=1800, ge=0)


class PricingSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    risk_free_rate: float = 0.05
    default_volatility: float = Field(default=0.25, gt=0)
    min_premium: float = Field(default=0.05, ge=0)


class SyntheticSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    seed_bucket_seconds: int = Field(default=1800, ge=0)


class FilterSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    max_candidates: int = Field(default=10, gt=0)
    min_days: int = Field(default=7, ge=0)
    max_days: int = Field(default=90, gt=0)


class AppSettings(BaseModel):
    """Fully resolved application settings loaded from YAML."""

    model_config = ConfigDict(frozen=True)

    env: str
    providers: ProviderSettings
    cache: CacheSettings
    pricing: PricingSettings
    synthetic: SyntheticSettings
    filter: FilterSettings

    @field_validator("env")
    @classmethod
    def _normalize_env(cls, value: str) -> str:
        return value.lower()


def _deep_merge(base: MutableMapping[str, Any], overrides: Mapping[str, Any]) -> MutableMapping[str, Any]:
    for key, value in overrides.items():
        if isinstance(value, Mapping):
            existing = base.get(key)
            if isinstance(existing, MutableMapping):
                base[key] = _deep_merge(copy.deepcopy(existing), value)
            else:
                base[key] = copy.deepcopy(value)
        else:
            base[key] = copy.deepcopy(value)
    return base


def _load_yaml(path: Path) -> Dict[str, Any]:
    with path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle.read()) or {}
        if not isinstance(data, dict):
            raise ValueError(f"Configuration file {path} must contain a mapping at the root.")
        return data


def config_dir() -> Path:
    override = os.getenv(CONFIG_DIR_VARIABLE)
    return Path(override) if override else CONFIG_DIR


def _build_settings(env: str, directory: Path) -> AppSettings:
    config_path = directory / f"{env}.yaml"
    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file for environment '{env}' not found at {config_path}")

    merged = copy.deepcopy(DEFAULT_SETTINGS)
    merged = _deep_merge(merged, _load_yaml(config_path))
    merged["env"] = env
    return AppSettings.model_validate(merged)


@lru_cache(maxsize=None)
def _cached_settings(env: str, directory: str) -> AppSettings:
    return _build_settings(env, Path(directory))


def get_settings(env: Optional[str] = None) -> AppSettings:
    """Load settings for the requested environment (default: APP_ENV or 'dev')."""

    resolved_env = (env or os.getenv(ENVIRONMENT_VARIABLE, "dev")).strip().lower()
    return _cached_settings(resolved_env, str(config_dir()))


def reset_settings_cache() -> None:
    """Clear the cached settings, primarily used during tests."""

    _cached_settings.cache_clear()


__all__ = [
    "AppSettings",
    "CacheSettings",
    "FilterSettings",
    "PricingSettings",
    "ProviderSettings",
    "SyntheticSettings",
    "get_settings",
    "reset_settings_cache",
]
