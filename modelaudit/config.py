"""
modelaudit - Configuration Loading
==================================
Reads a YAML or JSON configuration file and validates it into an
immutable ``ValidatorConfig``.

Example ``modelaudit.yaml``::

    models_paths: [app/models]
    models_modules: [app.models]
    connection: sqlite:///app.db
    checks:
      relations: false
    ignore:
      columns: [legacy_flags]
    annotations:
      aliases:
        Status: app.enums.OrderStatus
    type_map:
      mysql:
        boolean: [tinyint]
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import ValidationError

from modelaudit.models import ValidatorConfig

logger: logging.Logger = logging.getLogger("modelaudit.config")

DEFAULT_CONFIG_NAMES: List[str] = ["modelaudit.yaml", "modelaudit.yml", "modelaudit.json"]


def _load_json_file(path: Path) -> Dict[str, Any]:
    """Load and parse a JSON file. Raises ValueError on parse errors."""
    try:
        data: Any = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ValueError(
            f"Expected a JSON object at top level, got {type(data).__name__}."
        )
    return data


def _load_yaml_file(path: Path) -> Dict[str, Any]:
    """Load and parse a YAML file. An empty file is an empty mapping."""
    try:
        data: Any = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid YAML in {path}: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(
            f"Expected a YAML mapping at top level, got {type(data).__name__}."
        )
    return data


def load_config_file(path: Path) -> Dict[str, Any]:
    """
    Load a configuration file (JSON or YAML), dispatching on extension.

    Raises:
        FileNotFoundError: If the file doesn't exist.
        ValueError: If the file can't be parsed.
    """
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")
    if not path.is_file():
        raise ValueError(f"Config path is not a file: {path}")

    if path.suffix.lower() == ".json":
        return _load_json_file(path)
    # YAML is a superset of JSON, so it also covers unknown extensions.
    return _load_yaml_file(path)


def find_default_config(directory: Path) -> Optional[Path]:
    for name in DEFAULT_CONFIG_NAMES:
        candidate: Path = directory / name
        if candidate.is_file():
            return candidate
    return None


def _deep_merge(base: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    merged: Dict[str, Any] = dict(base)
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def build_config(
    raw: Optional[Dict[str, Any]] = None,
    overrides: Optional[Dict[str, Any]] = None,
) -> ValidatorConfig:
    """
    Validate raw settings (plus nested overrides) into a ``ValidatorConfig``.

    Raises:
        ValueError: If the settings do not validate.
    """
    data: Dict[str, Any] = _deep_merge(raw or {}, overrides or {})
    try:
        config: ValidatorConfig = ValidatorConfig.model_validate(data)
    except ValidationError as exc:
        raise ValueError(f"Invalid configuration: {exc}") from exc
    logger.debug("Configuration built: %s", config.checks)
    return config


__all__: List[str] = [
    "DEFAULT_CONFIG_NAMES",
    "load_config_file",
    "find_default_config",
    "build_config",
]
