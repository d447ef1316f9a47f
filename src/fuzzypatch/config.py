"""Option loading for the fuzzypatch CLI and library callers."""

from __future__ import annotations

import copy
import logging
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

from .core.errors import ConfigError

LOGGER = logging.getLogger(__name__)

CONFIG_SECTION = "fuzzypatch"

DEFAULT_OPTIONS: Dict[str, Any] = {
    "policy": "auto",
    "backend": "linker",
    "validate": True,
    "max_diff_chars": 100000,
    "dmp_match_threshold": 0.5,
    "dmp_match_distance": 1000,
}

_CHOICES = {
    "policy": ("auto", "whitespace", "indentation"),
    "backend": ("linker", "dmp"),
}


def load_options(config_path: Path) -> Dict[str, Any]:
    """Load options from a YAML file, either top-level or under a ``fuzzypatch:`` mapping."""
    if not config_path.exists():
        raise ConfigError(f"Config file not found: {config_path}", details={"path": str(config_path)})

    try:
        with config_path.open("r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle) or {}
    except yaml.YAMLError as error:
        raise ConfigError(f"Failed to parse config: {error}", details={"path": str(config_path)}) from error

    if not isinstance(data, dict):
        raise ConfigError("Configuration must be a mapping at the top level.", details={"path": str(config_path)})

    section = data.get(CONFIG_SECTION, data)
    if not isinstance(section, dict):
        raise ConfigError(f"'{CONFIG_SECTION}' must be a mapping.", details={"path": str(config_path)})
    LOGGER.debug("Loaded %d option(s) from %s", len(section), config_path)
    return merge_options(section)


def merge_options(overrides: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
    """Return DEFAULT_OPTIONS updated with ``overrides``; values are checked."""
    options = copy.deepcopy(DEFAULT_OPTIONS)
    for key, value in (overrides or {}).items():
        if key not in DEFAULT_OPTIONS:
            raise ConfigError(f"Unknown option: {key}", details={"known": sorted(DEFAULT_OPTIONS)})
        if value is None:
            continue
        options[key] = _coerce(key, value)
    return options


def _coerce(key: str, value: Any) -> Any:
    if key in _CHOICES:
        text = str(value).strip().lower()
        if text not in _CHOICES[key]:
            raise ConfigError(f"Invalid {key}: {value!r}", details={"choices": list(_CHOICES[key])})
        return text
    if key == "validate":
        if not isinstance(value, bool):
            raise ConfigError(f"Invalid validate flag: {value!r}")
        return value
    try:
        coerced = float(value) if key == "dmp_match_threshold" else int(value)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid {key}: {value!r}") from e
    if key == "max_diff_chars" and coerced <= 0:
        raise ConfigError("max_diff_chars must be positive")
    if key == "dmp_match_threshold" and not 0.0 <= coerced <= 1.0:
        raise ConfigError("dmp_match_threshold must be between 0 and 1")
    return coerced
