"""Load and merge configuration from .keytrail.toml and KEYTRAIL_* env vars."""

from __future__ import annotations

import dataclasses
import os
import sys
from pathlib import Path
from typing import Any, Dict, Optional

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

from keytrail.config.schema import (
    OUTPUT_FORMATS,
    VALIDATION_MODES,
    IgnoreConfig,
    KeyTrailConfig,
    OutputConfig,
    RulesConfig,
    ScanConfig,
    ValidationConfig,
)

CONFIG_FILENAME = ".keytrail.toml"


class ConfigError(Exception):
    """Raised when config is malformed or unreadable."""


def find_config_file(root: Path, override: Optional[str] = None) -> Optional[Path]:
    """Locate the config file. *override* takes precedence."""
    if override:
        p = Path(override)
        if not p.is_file():
            raise ConfigError(f"Config file not found: {override}")
        return p
    candidate = root / CONFIG_FILENAME
    return candidate if candidate.is_file() else None


def _parse_toml(path: Path) -> Dict[str, Any]:
    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as exc:
        raise ConfigError(f"Failed to parse {path}: {exc}") from exc


def _positive_int(val: str) -> Optional[int]:
    try:
        n = int(val)
    except ValueError:
        return None
    return n if n > 0 else None


def _merge_env_overrides(cfg: KeyTrailConfig) -> None:
    """Apply KEYTRAIL_* environment variable overrides."""
    if val := os.environ.get("KEYTRAIL_FORMAT"):
        if val in OUTPUT_FORMATS:
            cfg.output.format = val  # type: ignore[assignment]
    if val := os.environ.get("KEYTRAIL_VALIDATION_MODE"):
        if val in VALIDATION_MODES:
            cfg.validation.mode = val  # type: ignore[assignment]
    if val := os.environ.get("KEYTRAIL_MAX_WORKERS"):
        if (n := _positive_int(val)) is not None:
            cfg.validation.max_workers = n
    if val := os.environ.get("KEYTRAIL_REGION"):
        cfg.validation.region = val
    if os.environ.get("KEYTRAIL_NO_VALIDATE") == "1":
        cfg.validation.enabled = False
    if val := os.environ.get("KEYTRAIL_IGNORE_PATHS"):
        cfg.ignore.paths.extend(p.strip() for p in val.split(os.pathsep) if p.strip())


def _build_section(data: Dict[str, Any], cls: type, section: str):
    """Build a dataclass from a TOML section dict, ignoring unknown keys."""
    raw = data.get(section, {})
    if not isinstance(raw, dict):
        raise ConfigError(f"[{section}] must be a table")
    valid_fields = {f.name for f in dataclasses.fields(cls)}
    filtered = {k: v for k, v in raw.items() if k in valid_fields}
    return cls(**filtered)


def _validate(cfg: KeyTrailConfig) -> None:
    if cfg.validation.mode not in VALIDATION_MODES:
        raise ConfigError(f"validation.mode must be one of {', '.join(VALIDATION_MODES)}")
    if cfg.output.format not in OUTPUT_FORMATS:
        raise ConfigError(f"output.format must be one of {', '.join(OUTPUT_FORMATS)}")
    if cfg.validation.max_workers < 1:
        raise ConfigError("validation.max_workers must be at least 1")
    if cfg.validation.max_attempts < 1:
        raise ConfigError("validation.max_attempts must be at least 1")
    if cfg.scan.max_revisions is not None and cfg.scan.max_revisions < 0:
        raise ConfigError("scan.max_revisions cannot be negative")


def load_config(
    root: Path,
    config_override: Optional[str] = None,
) -> KeyTrailConfig:
    """Load, validate, and return a KeyTrailConfig."""
    config_path = find_config_file(root, config_override)

    if config_path is None:
        cfg = KeyTrailConfig()
    else:
        raw = _parse_toml(config_path)
        cfg = KeyTrailConfig(
            version=raw.get("version", "1.0"),
            scan=_build_section(raw, ScanConfig, "scan"),
            validation=_build_section(raw, ValidationConfig, "validation"),
            output=_build_section(raw, OutputConfig, "output"),
            ignore=_build_section(raw, IgnoreConfig, "ignore"),
            rules=_build_section(raw, RulesConfig, "rules"),
        )

    _merge_env_overrides(cfg)
    _validate(cfg)
    return cfg
