"""
change-gate — runtime config loader.

Precedence is CLI > env (``CHANGE_GATE_``) > file > defaults. The file is TOML read
with ``tomllib``. Only the settings listed in ``ENV_BINDINGS`` can come from the
environment; pattern lists and benchmark tables belong in the file.
"""

from __future__ import annotations

import json
import os
import tomllib
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import Any, Final

from change_gate.config.schema import (
    PATH_FIELDS,
    assert_valid_config,
    default_config,
    merge_config,
)

DEFAULT_CONFIG_FILE: Final[str] = "change_gate.toml"
ENV_PREFIX: Final[str] = "CHANGE_GATE_"


def _as_bool(raw: str) -> bool:
    lowered = raw.lower()
    if lowered in {"1", "true", "yes", "on"}:
        return True
    if lowered in {"0", "false", "no", "off"}:
        return False
    raise ValueError("must be a boolean (true/false/1/0/yes/no/on/off)")


def _as_int(raw: str) -> int:
    try:
        return int(raw)
    except ValueError:
        raise ValueError("must be an integer") from None


def _as_float(raw: str) -> float:
    try:
        return float(raw)
    except ValueError:
        raise ValueError("must be a number") from None


# Env var suffix -> (config path, parser).
ENV_BINDINGS: Final[dict[str, tuple[tuple[str, ...], Callable[[str], object]]]] = {
    "PROJECT_ROOT": (("project", "root"), str),
    "OBSERVABILITY_LOG_LEVEL": (("observability", "log_level"), str),
    "OBSERVABILITY_LOG_DIR": (("observability", "log_dir"), str),
    "OBSERVABILITY_LOG_TO_STDERR": (("observability", "log_to_stderr"), _as_bool),
    "OBSERVABILITY_REDACT_SECRETS": (("observability", "redact_secrets"), _as_bool),
    "VALIDATION_TESTS_TIMEOUT_SECONDS": (("validation", "tests", "timeout_seconds"), _as_float),
    "VALIDATION_TESTS_COVERAGE_TARGET": (("validation", "tests", "coverage_target"), str),
    "VALIDATION_PERFORMANCE_TIMEOUT_SECONDS": (
        ("validation", "performance", "timeout_seconds"),
        _as_float,
    ),
    "VALIDATION_PERFORMANCE_BASELINES_FILE": (
        ("validation", "performance", "baselines_file"),
        str,
    ),
    "VALIDATION_QUALITY_TIMEOUT_SECONDS": (("validation", "quality", "timeout_seconds"), _as_float),
    "VALIDATION_QUALITY_RUN_SECURITY_SCAN": (
        ("validation", "quality", "run_security_scan"),
        _as_bool,
    ),
    "VALIDATION_QUALITY_DUPLICATION_WINDOW": (
        ("validation", "quality", "duplication_window"),
        _as_int,
    ),
    "CONSTRAINTS_RESOURCE_LIMITS_MAX_MEMORY_MB": (
        ("constraints", "resource_limits", "max_memory_mb"),
        _as_float,
    ),
    "CONSTRAINTS_RESOURCE_LIMITS_MAX_CPU_PERCENT": (
        ("constraints", "resource_limits", "max_cpu_percent"),
        _as_float,
    ),
    "CONSTRAINTS_RESOURCE_LIMITS_MAX_DISK_SPACE_MB": (
        ("constraints", "resource_limits", "max_disk_space_mb"),
        _as_float,
    ),
    "CONSTRAINTS_RESOURCE_LIMITS_MAX_API_CALLS_PER_MINUTE": (
        ("constraints", "resource_limits", "max_api_calls_per_minute"),
        _as_int,
    ),
}


class ConfigLoadError(ValueError):
    """Raised when config cannot be loaded or overrides cannot be coerced."""


def load_config(
    config_path: str | Path | None = None,
    *,
    cli_overrides: Mapping[str, object] | None = None,
    environ: Mapping[str, str] | None = None,
    base_dir: str | Path | None = None,
) -> dict[str, Any]:
    """Load the effective config.

    ``config_path`` defaults to ``change_gate.toml`` in ``base_dir`` (or the current
    directory); a missing default file is not an error, a missing explicit one is.
    ``cli_overrides`` maps dotted keys such as ``observability.log_level`` to values.
    Relative paths are anchored at the directory holding the config file.
    """

    if config_path is None:
        anchor = Path.cwd() if base_dir is None else Path(base_dir)
        path = Path(os.path.abspath(anchor / DEFAULT_CONFIG_FILE))
    else:
        path = Path(os.path.abspath(Path(config_path).expanduser()))

    merged = merge_config(default_config(), _read_file(path, required=config_path is not None))
    merged = merge_config(merged, _env_overrides(os.environ if environ is None else environ))
    for key, value in sorted((cli_overrides or {}).items()):
        parts = tuple(part for part in key.split(".") if part)
        if not parts:
            raise ConfigLoadError(f"invalid CLI override key {key!r}")
        merged = merge_config(merged, _nested(parts, value))

    for field_path in PATH_FIELDS:
        _anchor_path(merged, field_path, path.parent)
    return assert_valid_config(merged)


def dump_effective_config(config: Mapping[str, object]) -> str:
    """Return the effective config as compact JSON with sorted keys."""

    return json.dumps(config, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def _read_file(path: Path, *, required: bool) -> dict[str, Any]:
    if not path.is_file():
        if required:
            raise ConfigLoadError(f"config file not found: {path}")
        return {}
    try:
        with path.open("rb") as handle:
            return tomllib.load(handle)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigLoadError(f"invalid TOML in {path}: {exc}") from exc
    except OSError as exc:
        raise ConfigLoadError(f"unable to read config file {path}: {exc}") from exc


def _env_overrides(environ: Mapping[str, str]) -> dict[str, Any]:
    overrides: dict[str, Any] = {}
    for suffix, (field_path, parse) in sorted(ENV_BINDINGS.items()):
        name = ENV_PREFIX + suffix
        raw = environ.get(name)
        if raw is None:
            continue
        try:
            value = parse(raw.strip())
        except ValueError as exc:
            raise ConfigLoadError(f"{name} -> {'.'.join(field_path)} {exc}") from exc
        overrides = merge_config(overrides, _nested(field_path, value))
    return overrides


def _nested(path: tuple[str, ...], value: object) -> dict[str, Any]:
    payload: Any = value
    for part in reversed(path):
        payload = {part: payload}
    return payload


def _anchor_path(config: dict[str, Any], field_path: tuple[str, ...], base_dir: Path) -> None:
    section: Any = config
    for part in field_path[:-1]:
        section = section.get(part) if isinstance(section, dict) else None
    if not isinstance(section, dict):
        return
    raw = section.get(field_path[-1])
    # Empty optional paths stay unset.
    if not isinstance(raw, str) or not raw.strip():
        return
    candidate = Path(os.path.expandvars(raw)).expanduser()
    if not candidate.is_absolute():
        candidate = base_dir / candidate
    section[field_path[-1]] = Path(os.path.normpath(candidate)).as_posix()


__all__ = [
    "ConfigLoadError",
    "DEFAULT_CONFIG_FILE",
    "ENV_BINDINGS",
    "ENV_PREFIX",
    "dump_effective_config",
    "load_config",
]
