"""Configuration loading for doccov (.doccov.yml)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, FrozenSet, List, Optional, Sequence

import yaml

from .drift.categorize import parse_drift_type_filter
from .fix.generator import DEFAULT_DESCRIPTION_PLACEHOLDER
from .logging import parse_level
from .models import DriftType

CONFIG_FILENAME = ".doccov.yml"


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed."""


@dataclass
class Thresholds:
    """Limits consumed by threshold checks."""

    min_coverage: Optional[float] = None
    max_drift: Optional[float] = None
    drift_types: FrozenSet[DriftType] = frozenset()
    examples: bool = False


@dataclass
class FixConfig:
    description_placeholder: str = DEFAULT_DESCRIPTION_PLACEHOLDER
    max_workers: int = 1


@dataclass
class DiffConfig:
    cache_path: Optional[Path] = None
    docs: List[str] = field(default_factory=list)


@dataclass
class LoggingConfig:
    verbose: bool = False
    log_file: Optional[Path] = None
    levels: Dict[str, str] = field(default_factory=dict)


@dataclass
class DocCovConfig:
    """Represents the settings defined in .doccov.yml."""

    root: Path
    check: Thresholds = field(default_factory=Thresholds)
    fix: FixConfig = field(default_factory=FixConfig)
    diff: DiffConfig = field(default_factory=DiffConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def load_config(config_path: Path) -> DocCovConfig:
    """Load configuration from disk, returning defaults when the file is absent."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    if not config_file.exists():
        return DocCovConfig(root=root)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    return DocCovConfig(
        root=root,
        check=parse_thresholds(_as_dict(data.get("check"))),
        fix=_parse_fix(_as_dict(data.get("fix"))),
        diff=_parse_diff(_as_dict(data.get("diff")), root),
        logging=_parse_logging(_as_dict(data.get("logging")), root),
    )


def parse_thresholds(data: Dict[str, Any]) -> Thresholds:
    """Build :class:`Thresholds` from a plain mapping, validating ranges."""
    min_coverage = _as_float(data.get("min_coverage"))
    max_drift = _as_float(data.get("max_drift"))
    for name, value in (("min_coverage", min_coverage), ("max_drift", max_drift)):
        if value is not None and not 0 <= value <= 100:
            raise ConfigError(f"check.{name} must be between 0 and 100, got {value}")

    raw_types = data.get("drift_types")
    if isinstance(raw_types, (list, tuple)):
        raw_types = ",".join(str(item) for item in raw_types)
    drift_types: FrozenSet[DriftType] = frozenset()
    if isinstance(raw_types, str) and raw_types.strip():
        try:
            drift_types = parse_drift_type_filter(raw_types)
        except ValueError as exc:
            raise ConfigError(f"check.drift_types: {exc}") from exc

    return Thresholds(
        min_coverage=min_coverage,
        max_drift=max_drift,
        drift_types=drift_types,
        examples=_as_bool(data.get("examples")) or False,
    )


def _parse_fix(data: Dict[str, Any]) -> FixConfig:
    config = FixConfig()
    placeholder = _as_str(data.get("description_placeholder"))
    if placeholder:
        config.description_placeholder = placeholder
    workers = _as_int(data.get("max_workers"))
    if workers is not None:
        if workers < 1:
            raise ConfigError("fix.max_workers must be at least 1")
        config.max_workers = workers
    return config


def _parse_diff(data: Dict[str, Any], root: Path) -> DiffConfig:
    cache_path = _as_str(data.get("cache_path"))
    return DiffConfig(
        cache_path=root / cache_path if cache_path else None,
        docs=_as_str_list(data.get("docs")),
    )


def _parse_logging(data: Dict[str, Any], root: Path) -> LoggingConfig:
    log_file = _as_str(data.get("file"))
    levels: Dict[str, str] = {}
    for component, value in _as_dict(data.get("levels")).items():
        level = _as_str(value)
        try:
            parse_level(level or "")
        except ValueError as exc:
            raise ConfigError(f"logging.levels.{component}: {exc}") from exc
        levels[str(component)] = level or ""
    return LoggingConfig(
        verbose=_as_bool(data.get("verbose")) or False,
        log_file=root / log_file if log_file else None,
        levels=levels,
    )


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    if config_path.name != CONFIG_FILENAME:
        return (config_path.parent / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Any:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded if loaded is not None else {}


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float, bool)) else None


def _as_float(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError as exc:
            raise ConfigError(f"Expected a number, got {value!r}") from exc
    return None


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return None
    return None


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    return None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float, bool))]
    return []


__all__ = [
    "CONFIG_FILENAME",
    "ConfigError",
    "DiffConfig",
    "DocCovConfig",
    "FixConfig",
    "LoggingConfig",
    "Thresholds",
    "load_config",
    "parse_thresholds",
]
