"""Configuration loading for srcverify.

Settings live in a frozen ``VerifierConfig``. They are read from
``srcverify.yaml`` in the working directory, or from an explicit path, and
CLI flags may override individual fields afterwards via ``with_overrides``.

Example ``srcverify.yaml``::

    work_dir: .tmp
    registry_url: https://registry.npmjs.org
    command_timeout: 900
    max_concurrency: 8
"""

from __future__ import annotations

from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any

import yaml

from srcverify.exceptions import ConfigError

CONFIG_FILENAME = "srcverify.yaml"

DEFAULT_REGISTRY_URL = "https://registry.npmjs.org"


@dataclass(frozen=True)
class VerifierConfig:
    """Runtime settings shared by the pipeline, coordinator and CLI.

    Attributes:
        work_dir: Root of the on-disk workspace (mirrors, tarballs, results).
        registry_url: Base URL of the npm registry.
        http_timeout: Timeout in seconds for registry and tarball requests.
        command_timeout: Wall-clock limit in seconds for each external command.
        result_cache_size: Capacity of the in-memory results LRU.
        dependency_cache_size: Capacity of the in-memory dependency-list LRU.
        max_concurrency: Upper bound on parallel verifications in batch checks.
    """

    work_dir: Path = Path(".tmp")
    registry_url: str = DEFAULT_REGISTRY_URL
    http_timeout: float = 30.0
    command_timeout: float = 600.0
    result_cache_size: int = 1000
    dependency_cache_size: int = 100
    max_concurrency: int = 4

    def with_overrides(self, **overrides: Any) -> VerifierConfig:
        """Return a copy with every non-``None`` override applied."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        if "work_dir" in changes:
            changes["work_dir"] = Path(changes["work_dir"])
        return replace(self, **changes) if changes else self


_FIELD_TYPES: dict[str, tuple[type, ...]] = {
    "work_dir": (str,),
    "registry_url": (str,),
    "http_timeout": (int, float),
    "command_timeout": (int, float),
    "result_cache_size": (int,),
    "dependency_cache_size": (int,),
    "max_concurrency": (int,),
}


def load_config(config_path: Path | None = None, root: Path | None = None) -> VerifierConfig:
    """Load ``VerifierConfig`` from YAML.

    Args:
        config_path: Explicit config file. Must exist if given.
        root: Directory searched for ``srcverify.yaml`` when no explicit
            path is given. Defaults to the current directory.

    Returns:
        The parsed configuration, or defaults when no file is present.

    Raises:
        ConfigError: If the file is missing (explicit path only), is not a
            YAML mapping, or contains unknown keys or mistyped values.
    """
    path = config_path if config_path is not None else (root or Path.cwd()) / CONFIG_FILENAME
    if not path.exists():
        if config_path is not None:
            raise ConfigError(f"Config file not found: {path}")
        return VerifierConfig()

    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML config file at {path}: {exc}") from exc

    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ConfigError(f"Config file at {path} must be a YAML mapping")

    known = {f.name for f in fields(VerifierConfig)}
    unknown = sorted(set(raw) - known)
    if unknown:
        raise ConfigError(f"Unknown config keys in {path}: {', '.join(unknown)}")

    values: dict[str, Any] = {}
    for key, value in raw.items():
        expected = _FIELD_TYPES[key]
        # bool is an int subclass; reject it explicitly.
        if isinstance(value, bool) or not isinstance(value, expected):
            names = " or ".join(t.__name__ for t in expected)
            raise ConfigError(f"{key} must be {names}, got {type(value).__name__}")
        if key.endswith(("_size", "_concurrency", "_timeout")) and value <= 0:
            raise ConfigError(f"{key} must be positive")
        values[key] = Path(value) if key == "work_dir" else value

    return VerifierConfig(**values)
