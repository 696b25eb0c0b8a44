"""
change-gate — configuration schema and validation.

Defines the built-in defaults for ``change_gate.toml`` and strict validation that
reports every problem as a structured issue (field path + message) before failing.
"""

from __future__ import annotations

import copy
import math
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Final, TypedDict

from change_gate.constants import CONFIG_SCHEMA_VERSION
from change_gate.domain.models import OperatingConstraints, default_constraints

ConfigSchemaVersion: Final[int] = CONFIG_SCHEMA_VERSION

# Config paths that are normalized relative to the config file location.
PATH_FIELDS: Final[tuple[tuple[str, ...], ...]] = (
    ("project", "root"),
    ("validation", "performance", "baselines_file"),
    ("observability", "log_dir"),
)


class MetaConfig(TypedDict):
    schema_version: int


class ProjectConfig(TypedDict):
    root: str


class FileAccessConfig(TypedDict):
    read_only: list[str]
    write_allowed: list[str]
    prohibited: list[str]


class ResourceLimitsConfig(TypedDict):
    max_memory_mb: float
    max_cpu_percent: float
    max_disk_space_mb: float
    max_api_calls_per_minute: int


class ConstraintsConfig(TypedDict):
    allowed_operations: list[str]
    prohibited_operations: list[str]
    file_access: FileAccessConfig
    resource_limits: ResourceLimitsConfig


class TestsConfig(TypedDict):
    pytest_command: list[str]
    unit_dir: str
    integration_dir: str
    coverage_target: str
    scope_to_changed_files: bool
    timeout_seconds: float


class BenchmarkEntryConfig(TypedDict):
    baseline: float
    threshold_percent: float


class PerformanceConfig(TypedDict):
    command: list[str]
    baselines_file: str
    benchmarks: dict[str, BenchmarkEntryConfig]
    timeout_seconds: float


class QualityConfig(TypedDict):
    bandit_command: list[str]
    run_security_scan: bool
    duplication_window: int
    timeout_seconds: float


class ValidationConfig(TypedDict):
    tests: TestsConfig
    performance: PerformanceConfig
    quality: QualityConfig


class ObservabilityConfig(TypedDict):
    log_level: str
    log_dir: str
    log_to_stderr: bool
    redact_secrets: bool


class GateConfig(TypedDict):
    meta: MetaConfig
    project: ProjectConfig
    constraints: ConstraintsConfig
    validation: ValidationConfig
    observability: ObservabilityConfig


def _default_constraints_section() -> ConstraintsConfig:
    payload = default_constraints().to_dict()
    return copy.deepcopy(payload)  # type: ignore[return-value]


DEFAULT_CONFIG: Final[GateConfig] = {
    "meta": {"schema_version": CONFIG_SCHEMA_VERSION},
    "project": {"root": "."},
    "constraints": _default_constraints_section(),
    "validation": {
        "tests": {
            "pytest_command": [],
            "unit_dir": "tests/unit",
            "integration_dir": "tests/integration",
            "coverage_target": "",
            "scope_to_changed_files": False,
            "timeout_seconds": 0.0,
        },
        "performance": {
            "command": [],
            "baselines_file": "",
            "benchmarks": {},
            "timeout_seconds": 0.0,
        },
        "quality": {
            "bandit_command": ["bandit", "-f", "json", "-q"],
            "run_security_scan": True,
            "duplication_window": 6,
            "timeout_seconds": 0.0,
        },
    },
    "observability": {
        "log_level": "INFO",
        "log_dir": "logs",
        "log_to_stderr": True,
        "redact_secrets": True,
    },
}


@dataclass(frozen=True, slots=True)
class ConfigValidationIssue:
    """Single structured validation failure."""

    path: str
    message: str


@dataclass(frozen=True, slots=True)
class ConfigValidationResult:
    """Validation result with normalized config when no issues were found."""

    config: dict[str, Any] | None
    issues: tuple[ConfigValidationIssue, ...]

    @property
    def is_valid(self) -> bool:
        return self.config is not None and not self.issues


class ConfigValidationError(ValueError):
    """Raised when strict config validation fails."""

    def __init__(self, issues: Sequence[ConfigValidationIssue]) -> None:
        self.issues = tuple(issues)
        if not self.issues:
            rendered = "unknown validation failure"
        else:
            rendered = "\n".join(f"- {item.path}: {item.message}" for item in self.issues)
        super().__init__(f"invalid config:\n{rendered}")


class _IssueCollector:
    __slots__ = ("_items",)

    def __init__(self) -> None:
        self._items: list[ConfigValidationIssue] = []

    def add(self, path: str, message: str) -> None:
        self._items.append(ConfigValidationIssue(path=path, message=message))

    def items(self) -> tuple[ConfigValidationIssue, ...]:
        return tuple(self._items)

    @property
    def has_issues(self) -> bool:
        return bool(self._items)


def default_config() -> GateConfig:
    """Return a deep copy of the built-in defaults."""

    return copy.deepcopy(DEFAULT_CONFIG)


def merge_config(base: Mapping[str, object], overlay: Mapping[str, object]) -> dict[str, Any]:
    """Deterministically deep-merge ``overlay`` onto ``base``."""

    merged = _deep_copy_mapping(base)
    _merge_into(merged, overlay)
    return merged


def validate_config(config: Mapping[str, object] | object) -> ConfigValidationResult:
    """Validate config and return structured issues with deterministic paths."""

    issues = _IssueCollector()
    root = _as_object(config, "<root>", issues)
    if root is None:
        return ConfigValidationResult(config=None, issues=issues.items())

    normalized = _validate_root(root, issues)
    if issues.has_issues:
        return ConfigValidationResult(config=None, issues=issues.items())
    return ConfigValidationResult(config=normalized, issues=())


def assert_valid_config(config: Mapping[str, object] | object) -> dict[str, Any]:
    """Validate config and raise ``ConfigValidationError`` on failure."""

    result = validate_config(config)
    if result.config is None:
        raise ConfigValidationError(result.issues)
    return result.config


def constraints_from_config(config: Mapping[str, Any]) -> OperatingConstraints:
    """Build the immutable constraint set from a validated config."""

    try:
        return OperatingConstraints.from_dict(config["constraints"])
    except (KeyError, ValueError) as exc:
        raise ConfigValidationError(
            (ConfigValidationIssue("constraints", str(exc)),)
        ) from exc


def _validate_root(payload: Mapping[str, object], issues: _IssueCollector) -> dict[str, Any]:
    allowed = {"meta", "project", "constraints", "validation", "observability"}
    _reject_unknown_keys(payload, allowed, "", issues)
    _require_keys(payload, allowed, "", issues)

    out: dict[str, Any] = {}
    sections: tuple[tuple[str, Callable[[dict[str, object], str, _IssueCollector], dict[str, Any]]], ...] = (
        ("meta", _validate_meta),
        ("project", _validate_project),
        ("constraints", _validate_constraints),
        ("validation", _validate_validation),
        ("observability", _validate_observability),
    )
    for key, validator in sections:
        raw = payload.get(key)
        if raw is None:
            continue
        section = _as_object(raw, key, issues)
        if section is not None:
            out[key] = validator(section, key, issues)
    return out


def _validate_meta(
    payload: Mapping[str, object], path: str, issues: _IssueCollector
) -> dict[str, Any]:
    _reject_unknown_keys(payload, {"schema_version"}, path, issues)
    _require_keys(payload, {"schema_version"}, path, issues)
    out: dict[str, Any] = {}
    if "schema_version" in payload:
        parsed = _as_int(payload["schema_version"], _join(path, "schema_version"), issues, minimum=1)
        if parsed is not None:
            out["schema_version"] = parsed
            if parsed != ConfigSchemaVersion:
                issues.add(
                    _join(path, "schema_version"),
                    f"unsupported schema version {parsed}; expected {ConfigSchemaVersion}",
                )
    return out


def _validate_project(
    payload: Mapping[str, object], path: str, issues: _IssueCollector
) -> dict[str, Any]:
    _reject_unknown_keys(payload, {"root"}, path, issues)
    _require_keys(payload, {"root"}, path, issues)
    out: dict[str, Any] = {}
    if "root" in payload:
        parsed = _as_path_text(payload["root"], _join(path, "root"), issues)
        if parsed is not None:
            out["root"] = parsed
    return out


def _validate_constraints(
    payload: Mapping[str, object], path: str, issues: _IssueCollector
) -> dict[str, Any]:
    allowed = {"allowed_operations", "prohibited_operations", "file_access", "resource_limits"}
    _reject_unknown_keys(payload, allowed, path, issues)
    _require_keys(payload, {"file_access", "resource_limits"}, path, issues)

    out: dict[str, Any] = {}
    for key in ("allowed_operations", "prohibited_operations"):
        if key in payload:
            parsed_list = _as_str_list(payload[key], _join(path, key), issues)
            if parsed_list is not None:
                out[key] = parsed_list

    file_access = payload.get("file_access")
    if file_access is not None:
        access_path = _join(path, "file_access")
        access = _as_object(file_access, access_path, issues)
        if access is not None:
            tiers = {"read_only", "write_allowed", "prohibited"}
            _reject_unknown_keys(access, tiers, access_path, issues)
            out_access: dict[str, Any] = {}
            for tier in sorted(tiers):
                patterns = _as_str_list(
                    access.get(tier, []), _join(access_path, tier), issues, unique=True
                )
                if patterns is not None:
                    out_access[tier] = patterns
            out["file_access"] = out_access

    limits_raw = payload.get("resource_limits")
    if limits_raw is not None:
        limits_path = _join(path, "resource_limits")
        limits = _as_object(limits_raw, limits_path, issues)
        if limits is not None:
            fields = {
                "max_memory_mb",
                "max_cpu_percent",
                "max_disk_space_mb",
                "max_api_calls_per_minute",
            }
            _reject_unknown_keys(limits, fields, limits_path, issues)
            _require_keys(limits, fields, limits_path, issues)
            out_limits: dict[str, Any] = {}
            for key in ("max_memory_mb", "max_cpu_percent", "max_disk_space_mb"):
                if key in limits:
                    parsed_float = _as_float(
                        limits[key], _join(limits_path, key), issues, exclusive_minimum=0.0
                    )
                    if parsed_float is not None:
                        out_limits[key] = parsed_float
            if "max_api_calls_per_minute" in limits:
                parsed_calls = _as_int(
                    limits["max_api_calls_per_minute"],
                    _join(limits_path, "max_api_calls_per_minute"),
                    issues,
                    minimum=1,
                )
                if parsed_calls is not None:
                    out_limits["max_api_calls_per_minute"] = parsed_calls
            out["resource_limits"] = out_limits
    return out


def _validate_validation(
    payload: Mapping[str, object], path: str, issues: _IssueCollector
) -> dict[str, Any]:
    allowed = {"tests", "performance", "quality"}
    _reject_unknown_keys(payload, allowed, path, issues)
    _require_keys(payload, allowed, path, issues)
    out: dict[str, Any] = {}

    tests = _as_object(payload.get("tests", {}), _join(path, "tests"), issues)
    if tests is not None:
        out["tests"] = _validate_tests(tests, _join(path, "tests"), issues)
    performance = _as_object(payload.get("performance", {}), _join(path, "performance"), issues)
    if performance is not None:
        out["performance"] = _validate_performance(
            performance, _join(path, "performance"), issues
        )
    quality = _as_object(payload.get("quality", {}), _join(path, "quality"), issues)
    if quality is not None:
        out["quality"] = _validate_quality(quality, _join(path, "quality"), issues)
    return out


def _validate_tests(
    payload: Mapping[str, object], path: str, issues: _IssueCollector
) -> dict[str, Any]:
    allowed = {
        "pytest_command",
        "unit_dir",
        "integration_dir",
        "coverage_target",
        "scope_to_changed_files",
        "timeout_seconds",
    }
    _reject_unknown_keys(payload, allowed, path, issues)
    _require_keys(payload, allowed, path, issues)
    out: dict[str, Any] = {}
    if "pytest_command" in payload:
        command = _as_str_list(payload["pytest_command"], _join(path, "pytest_command"), issues)
        if command is not None:
            out["pytest_command"] = command
    for key in ("unit_dir", "integration_dir"):
        if key in payload:
            parsed = _as_path_text(payload[key], _join(path, key), issues)
            if parsed is not None:
                out[key] = parsed
    if "coverage_target" in payload:
        target = _as_optional_text(payload["coverage_target"], _join(path, "coverage_target"), issues)
        if target is not None:
            out["coverage_target"] = target
    if "scope_to_changed_files" in payload:
        scoped = _as_bool(
            payload["scope_to_changed_files"], _join(path, "scope_to_changed_files"), issues
        )
        if scoped is not None:
            out["scope_to_changed_files"] = scoped
    _copy_timeout(payload, path, issues, out)
    return out


def _validate_performance(
    payload: Mapping[str, object], path: str, issues: _IssueCollector
) -> dict[str, Any]:
    allowed = {"command", "baselines_file", "benchmarks", "timeout_seconds"}
    _reject_unknown_keys(payload, allowed, path, issues)
    _require_keys(payload, allowed, path, issues)
    out: dict[str, Any] = {}
    if "command" in payload:
        command = _as_str_list(payload["command"], _join(path, "command"), issues)
        if command is not None:
            out["command"] = command
    if "baselines_file" in payload:
        baselines = _as_optional_text(payload["baselines_file"], _join(path, "baselines_file"), issues)
        if baselines is not None:
            out["baselines_file"] = baselines
    if "benchmarks" in payload:
        benchmarks_path = _join(path, "benchmarks")
        benchmarks = _as_object(payload["benchmarks"], benchmarks_path, issues)
        if benchmarks is not None:
            out_benchmarks: dict[str, Any] = {}
            for metric in sorted(benchmarks):
                entry_path = _join(benchmarks_path, metric)
                entry = _as_object(benchmarks[metric], entry_path, issues)
                if entry is None:
                    continue
                fields = {"baseline", "threshold_percent"}
                _reject_unknown_keys(entry, fields, entry_path, issues)
                _require_keys(entry, fields, entry_path, issues)
                baseline = _as_float(
                    entry.get("baseline"), _join(entry_path, "baseline"), issues,
                    exclusive_minimum=0.0,
                ) if "baseline" in entry else None
                threshold = _as_float(
                    entry.get("threshold_percent"), _join(entry_path, "threshold_percent"), issues,
                    minimum=0.0,
                ) if "threshold_percent" in entry else None
                if baseline is not None and threshold is not None:
                    out_benchmarks[metric] = {"baseline": baseline, "threshold_percent": threshold}
            out["benchmarks"] = out_benchmarks
    _copy_timeout(payload, path, issues, out)
    return out


def _validate_quality(
    payload: Mapping[str, object], path: str, issues: _IssueCollector
) -> dict[str, Any]:
    allowed = {"bandit_command", "run_security_scan", "duplication_window", "timeout_seconds"}
    _reject_unknown_keys(payload, allowed, path, issues)
    _require_keys(payload, allowed, path, issues)
    out: dict[str, Any] = {}
    if "bandit_command" in payload:
        command = _as_str_list(payload["bandit_command"], _join(path, "bandit_command"), issues)
        if command is not None:
            out["bandit_command"] = command
    if "run_security_scan" in payload:
        scan = _as_bool(payload["run_security_scan"], _join(path, "run_security_scan"), issues)
        if scan is not None:
            out["run_security_scan"] = scan
    if "duplication_window" in payload:
        window = _as_int(
            payload["duplication_window"], _join(path, "duplication_window"), issues, minimum=2
        )
        if window is not None:
            out["duplication_window"] = window
    _copy_timeout(payload, path, issues, out)
    return out


def _validate_observability(
    payload: Mapping[str, object], path: str, issues: _IssueCollector
) -> dict[str, Any]:
    allowed = {"log_level", "log_dir", "log_to_stderr", "redact_secrets"}
    _reject_unknown_keys(payload, allowed, path, issues)
    _require_keys(payload, allowed, path, issues)
    out: dict[str, Any] = {}
    if "log_level" in payload:
        level = _as_enum(
            payload["log_level"],
            _join(path, "log_level"),
            issues,
            allowed_values=("DEBUG", "INFO", "WARNING", "ERROR"),
        )
        if level is not None:
            out["log_level"] = level
    if "log_dir" in payload:
        log_dir = _as_path_text(payload["log_dir"], _join(path, "log_dir"), issues)
        if log_dir is not None:
            out["log_dir"] = log_dir
    for key in ("log_to_stderr", "redact_secrets"):
        if key in payload:
            flag = _as_bool(payload[key], _join(path, key), issues)
            if flag is not None:
                out[key] = flag
    return out


def _copy_timeout(
    payload: Mapping[str, object], path: str, issues: _IssueCollector, out: dict[str, Any]
) -> None:
    # 0 disables the timeout; TOML has no null.
    if "timeout_seconds" in payload:
        timeout = _as_float(
            payload["timeout_seconds"], _join(path, "timeout_seconds"), issues, minimum=0.0
        )
        if timeout is not None:
            out["timeout_seconds"] = timeout


def _as_object(value: object, path: str, issues: _IssueCollector) -> dict[str, object] | None:
    if not isinstance(value, Mapping):
        issues.add(path, f"expected object, got {type(value).__name__}")
        return None
    out: dict[str, object] = {}
    for key, item in value.items():
        if not isinstance(key, str):
            issues.add(path, f"object key must be string, got {type(key).__name__}")
            continue
        out[key] = item
    return out


def _as_str(value: object, path: str, issues: _IssueCollector) -> str | None:
    if not isinstance(value, str):
        issues.add(path, f"expected string, got {type(value).__name__}")
        return None
    parsed = value.strip()
    if not parsed:
        issues.add(path, "must not be empty")
        return None
    return parsed


def _as_optional_text(value: object, path: str, issues: _IssueCollector) -> str | None:
    if not isinstance(value, str):
        issues.add(path, f"expected string, got {type(value).__name__}")
        return None
    return value.strip()


def _as_path_text(value: object, path: str, issues: _IssueCollector) -> str | None:
    parsed = _as_str(value, path, issues)
    if parsed is None:
        return None
    if "\x00" in parsed:
        issues.add(path, "must not contain NUL bytes")
        return None
    return parsed


def _as_str_list(
    value: object, path: str, issues: _IssueCollector, *, unique: bool = False
) -> list[str] | None:
    if isinstance(value, str) or not isinstance(value, (list, tuple)):
        issues.add(path, f"expected array, got {type(value).__name__}")
        return None
    parsed: list[str] = []
    ok = True
    for index, item in enumerate(value):
        text = _as_str(item, f"{path}[{index}]", issues)
        if text is None:
            ok = False
            continue
        parsed.append(text)
    if unique and len(set(parsed)) != len(parsed):
        issues.add(path, "contains duplicate values")
        return None
    return parsed if ok else None


def _as_bool(value: object, path: str, issues: _IssueCollector) -> bool | None:
    if isinstance(value, bool):
        return value
    issues.add(path, f"expected boolean, got {type(value).__name__}")
    return None


def _as_int(
    value: object,
    path: str,
    issues: _IssueCollector,
    *,
    minimum: int | None = None,
) -> int | None:
    if isinstance(value, bool) or not isinstance(value, int):
        issues.add(path, f"expected integer, got {type(value).__name__}")
        return None
    if minimum is not None and value < minimum:
        issues.add(path, f"must be >= {minimum}")
        return None
    return value


def _as_float(
    value: object,
    path: str,
    issues: _IssueCollector,
    *,
    minimum: float | None = None,
    exclusive_minimum: float | None = None,
) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        issues.add(path, f"expected number, got {type(value).__name__}")
        return None
    parsed = float(value)
    if not math.isfinite(parsed):
        issues.add(path, "must be finite")
        return None
    if minimum is not None and parsed < minimum:
        issues.add(path, f"must be >= {minimum}")
        return None
    if exclusive_minimum is not None and parsed <= exclusive_minimum:
        issues.add(path, f"must be > {exclusive_minimum}")
        return None
    return parsed


def _as_enum(
    value: object,
    path: str,
    issues: _IssueCollector,
    *,
    allowed_values: tuple[str, ...],
) -> str | None:
    parsed = _as_str(value, path, issues)
    if parsed is None:
        return None
    if parsed not in allowed_values:
        expected = ", ".join(sorted(allowed_values))
        issues.add(path, f"invalid value {parsed!r}; expected one of: {expected}")
        return None
    return parsed


def _reject_unknown_keys(
    payload: Mapping[str, object],
    allowed: set[str],
    path: str,
    issues: _IssueCollector,
) -> None:
    for key in sorted(payload):
        if key in allowed:
            continue
        issues.add(_join(path, key), "unknown field")


def _require_keys(
    payload: Mapping[str, object],
    required: set[str],
    path: str,
    issues: _IssueCollector,
) -> None:
    for key in sorted(required):
        if key not in payload:
            issues.add(_join(path, key), "missing required field")


def _join(path: str, key: str) -> str:
    if not path:
        return key
    return f"{path}.{key}"


def _merge_into(target: dict[str, Any], overlay: Mapping[str, object]) -> None:
    for key in sorted(overlay):
        value = overlay[key]
        if isinstance(value, Mapping):
            existing = target.get(key)
            nested = _deep_copy_mapping(existing) if isinstance(existing, Mapping) else {}
            _merge_into(nested, value)
            target[key] = nested
        else:
            target[key] = copy.deepcopy(value)


def _deep_copy_mapping(value: Mapping[str, object]) -> dict[str, Any]:
    return {key: copy.deepcopy(value[key]) for key in sorted(value) if isinstance(key, str)}


__all__ = [
    "ConfigSchemaVersion",
    "ConfigValidationError",
    "ConfigValidationIssue",
    "ConfigValidationResult",
    "DEFAULT_CONFIG",
    "GateConfig",
    "PATH_FIELDS",
    "assert_valid_config",
    "constraints_from_config",
    "default_config",
    "merge_config",
    "validate_config",
]
