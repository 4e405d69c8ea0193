"""Configuration loading from dashlens.yml and environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml


@dataclass
class MetabaseConfig:
    url: str = ""
    api_key: str = ""
    timeout: float = 30.0


@dataclass
class ResolverConfig:
    max_workers: int = 8


@dataclass
class DashlensConfig:
    metabase: MetabaseConfig = field(default_factory=MetabaseConfig)
    resolver: ResolverConfig = field(default_factory=ResolverConfig)
    log_level: str = "INFO"


def _resolve_env(val: str) -> str:
    """Expand ~ and $ENV_VAR references in string values."""
    if not isinstance(val, str):
        return val
    return os.path.expandvars(os.path.expanduser(val))


def _metabase_from_env() -> MetabaseConfig:
    return MetabaseConfig(
        url=os.environ.get("METABASE_URL", ""),
        api_key=os.environ.get("METABASE_API_KEY", ""),
    )


CONFIG_FILENAME = "dashlens.yml"


def _candidate_config_paths() -> list[Path]:
    """DASHLENS_CONFIG, then the user config dir, then the working directory."""
    candidates = []
    override = os.environ.get("DASHLENS_CONFIG")
    if override:
        candidates.append(Path(override).expanduser())
    candidates.append(Path.home() / ".config" / "dashlens" / CONFIG_FILENAME)
    candidates.append(Path.cwd() / CONFIG_FILENAME)
    return candidates


def find_config_path() -> Path | None:
    return next((p for p in _candidate_config_paths() if p.is_file()), None)


def load_config(config_path: str | Path | None = None) -> DashlensConfig:
    """Load dashlens configuration from YAML file.

    Without a config file the Metabase connection comes from the
    METABASE_URL and METABASE_API_KEY environment variables.
    """
    cfg = DashlensConfig(metabase=_metabase_from_env())

    if config_path is None:
        return cfg

    config_path = Path(config_path)
    if not config_path.exists():
        return cfg

    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}

    mb = raw.get("metabase", {})
    cfg.metabase = MetabaseConfig(
        url=_resolve_env(mb.get("url", cfg.metabase.url)).rstrip("/"),
        api_key=_resolve_env(mb.get("api_key", cfg.metabase.api_key)),
        timeout=float(mb.get("timeout", 30.0)),
    )

    rs = raw.get("resolver", {})
    cfg.resolver = ResolverConfig(
        max_workers=max(1, int(rs.get("max_workers", 8))),
    )

    cfg.log_level = str(raw.get("log_level", "INFO")).upper()

    return cfg
