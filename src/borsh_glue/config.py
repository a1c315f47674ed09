"""
Run configuration.

A YAML file (by default `borsh-glue.yaml` in the input directory) may
override any of these keys:

    derive_marker: BorshSchema
    class_module: layouts
    schema_module: schema
    extensions_path: ./extensions
    exclude_dirs: [target, .git]
"""
from __future__ import annotations

import os
from dataclasses import dataclass, field, fields
from typing import Any, Dict, List, Optional

import yaml

from borsh_glue.errors import ConfigError


CONFIG_FILENAME = "borsh-glue.yaml"

_IDENTIFIER_KEYS = ("derive_marker", "class_module", "schema_module")


@dataclass(frozen=True)
class GlueConfig:
    """
    Properties:
        derive_marker: Derive name that opts a declaration in
        class_module: Basename of the class artifact (".ts" appended)
        schema_module: Basename of the schema artifact (".ts" appended)
        extensions_path: Import prefix of the Struct/Enum base classes
        exclude_dirs: Directory names the walker never enters
    """

    derive_marker: str = "BorshSchema"
    class_module: str = "layouts"
    schema_module: str = "schema"
    extensions_path: str = "./extensions"
    exclude_dirs: List[str] = field(default_factory=lambda: ["target", ".git"])

    @property
    def class_filename(self) -> str:
        return self.class_module + ".ts"

    @property
    def schema_filename(self) -> str:
        return self.schema_module + ".ts"


def config_to_dict(config: GlueConfig) -> Dict[str, Any]:
    return {
        "derive_marker": config.derive_marker,
        "class_module": config.class_module,
        "schema_module": config.schema_module,
        "extensions_path": config.extensions_path,
        "exclude_dirs": list(config.exclude_dirs),
    }


def config_from_dict(d: Optional[Dict[str, Any]]) -> GlueConfig:
    """
    Build a config from a plain mapping, validating keys and value types.

    Raises:
        ConfigError: On unknown keys or values of the wrong type
    """
    if d is None:
        return GlueConfig()
    if not isinstance(d, dict):
        raise ConfigError(f"Configuration must be a mapping, got {type(d).__name__}")

    known = {f.name for f in fields(GlueConfig)}
    unknown = sorted(set(d) - known)
    if unknown:
        raise ConfigError(f"Unknown configuration keys: {', '.join(unknown)}")

    for key, value in d.items():
        if key == "exclude_dirs":
            if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
                raise ConfigError("'exclude_dirs' must be a list of directory names")
        elif not isinstance(value, str) or not value:
            raise ConfigError(f"'{key}' must be a non-empty string")

    for key in _IDENTIFIER_KEYS:
        if key in d and not d[key].isidentifier():
            raise ConfigError(f"'{key}' must be a plain identifier, got '{d[key]}'")

    return GlueConfig(**d)


def config_from_yaml(s: str) -> GlueConfig:
    try:
        d = yaml.safe_load(s)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML configuration: {e}") from e
    return config_from_dict(d)


def config_to_yaml(config: GlueConfig) -> str:
    return yaml.safe_dump(config_to_dict(config))


def load_config(path: Optional[str] = None, schema_dir: Optional[str] = None) -> GlueConfig:
    """
    Load the run configuration.

    Args:
        path: Explicit config file; must exist when given
        schema_dir: Input directory searched for borsh-glue.yaml when no
            explicit path is given

    Returns:
        GlueConfig (defaults when no file is found)

    Raises:
        ConfigError: If the file cannot be read or is invalid
    """
    if path is None and schema_dir is not None:
        candidate = os.path.join(schema_dir, CONFIG_FILENAME)
        if os.path.isfile(candidate):
            path = candidate
    if path is None:
        return GlueConfig()

    try:
        with open(path, "r", encoding="utf-8") as f:
            content = f.read()
    except OSError as e:
        raise ConfigError(f"Cannot read configuration file '{path}': {e}") from e

    return config_from_yaml(content)


__all__ = [
    "CONFIG_FILENAME",
    "GlueConfig",
    "config_to_dict",
    "config_from_dict",
    "config_to_yaml",
    "config_from_yaml",
    "load_config",
]
