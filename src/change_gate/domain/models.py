"""Dataclass domain models with strict validation and canonical serialization."""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass
from enum import StrEnum
from typing import NoReturn, TypeVar

from change_gate.constants import (
    MAX_CYCLOMATIC_COMPLEXITY,
    MAX_DUPLICATION_PERCENT,
    MAX_SECURITY_VULNERABILITIES,
)

JSONScalar = str | int | float | bool | None
JSONValue = JSONScalar | list["JSONValue"] | dict[str, "JSONValue"]

TEnum = TypeVar("TEnum", bound=StrEnum)

_MAX_TEXT = 8192
_MAX_COLLECTION = 4096

# Accepted camelCase spellings, mapped onto the canonical snake_case field names.
_KEY_ALIASES: dict[str, str] = {
    "allowedOperations": "allowed_operations",
    "prohibitedOperations": "prohibited_operations",
    "fileAccess": "file_access",
    "resourceLimits": "resource_limits",
    "readOnly": "read_only",
    "writeAllowed": "write_allowed",
    "maxMemoryMB": "max_memory_mb",
    "maxCpuPercent": "max_cpu_percent",
    "maxDiskSpaceMB": "max_disk_space_mb",
    "maxApiCallsPerMinute": "max_api_calls_per_minute",
    "expectedImpact": "expected_impact",
    "riskLevel": "risk_level",
    "createdFiles": "created_files",
}


class ChangeType(StrEnum):
    OPTIMIZATION = "optimization"
    BUG_FIX = "bug_fix"
    REFACTOR = "refactor"
    FEATURE = "feature"


class RiskLevel(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class FailureKind(StrEnum):
    """Why a change was rejected."""

    PERMISSION_DENIED = "permission_denied"
    COMPLEXITY_EXCEEDED = "complexity_exceeded"
    SCOPE_VIOLATION = "scope_violation"
    DEEP_VALIDATION_FAILURE = "deep_validation_failure"
    UNEXPECTED_ERROR = "unexpected_error"


# ---------------------------------------------------------------------------
# Policy
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class FileAccessPolicy:
    """Three ordered glob-pattern lists; ``prohibited`` wins over the other two."""

    read_only: tuple[str, ...] = ()
    write_allowed: tuple[str, ...] = ()
    prohibited: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        for name in ("read_only", "write_allowed", "prohibited"):
            object.__setattr__(
                self,
                name,
                _as_unique_str_tuple(getattr(self, name), f"FileAccessPolicy.{name}"),
            )

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> FileAccessPolicy:
        parsed = _expect_object(
            data,
            "FileAccessPolicy",
            required=set(),
            optional={"read_only", "write_allowed", "prohibited"},
        )
        return cls(
            read_only=_as_unique_str_tuple(
                parsed.get("read_only", ()), "FileAccessPolicy.read_only"
            ),
            write_allowed=_as_unique_str_tuple(
                parsed.get("write_allowed", ()), "FileAccessPolicy.write_allowed"
            ),
            prohibited=_as_unique_str_tuple(
                parsed.get("prohibited", ()), "FileAccessPolicy.prohibited"
            ),
        )

    def to_dict(self) -> dict[str, JSONValue]:
        return {
            "read_only": list(self.read_only),
            "write_allowed": list(self.write_allowed),
            "prohibited": list(self.prohibited),
        }


@dataclass(frozen=True, slots=True)
class ResourceLimits:
    """Hard ceilings for a session; every value must be positive."""

    max_memory_mb: float
    max_cpu_percent: float
    max_disk_space_mb: float
    max_api_calls_per_minute: int

    def __post_init__(self) -> None:
        object.__setattr__(
            self,
            "max_memory_mb",
            _as_positive_float(self.max_memory_mb, "ResourceLimits.max_memory_mb"),
        )
        object.__setattr__(
            self,
            "max_cpu_percent",
            _as_positive_float(self.max_cpu_percent, "ResourceLimits.max_cpu_percent"),
        )
        object.__setattr__(
            self,
            "max_disk_space_mb",
            _as_positive_float(self.max_disk_space_mb, "ResourceLimits.max_disk_space_mb"),
        )
        object.__setattr__(
            self,
            "max_api_calls_per_minute",
            _as_int(
                self.max_api_calls_per_minute,
                "ResourceLimits.max_api_calls_per_minute",
                minimum=1,
            ),
        )

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> ResourceLimits:
        fields = {
            "max_memory_mb",
            "max_cpu_percent",
            "max_disk_space_mb",
            "max_api_calls_per_minute",
        }
        parsed = _expect_object(data, "ResourceLimits", required=fields)
        return cls(
            max_memory_mb=_as_positive_float(
                parsed["max_memory_mb"], "ResourceLimits.max_memory_mb"
            ),
            max_cpu_percent=_as_positive_float(
                parsed["max_cpu_percent"], "ResourceLimits.max_cpu_percent"
            ),
            max_disk_space_mb=_as_positive_float(
                parsed["max_disk_space_mb"], "ResourceLimits.max_disk_space_mb"
            ),
            max_api_calls_per_minute=_as_int(
                parsed["max_api_calls_per_minute"],
                "ResourceLimits.max_api_calls_per_minute",
                minimum=1,
            ),
        )

    def to_dict(self) -> dict[str, JSONValue]:
        return {
            "max_memory_mb": self.max_memory_mb,
            "max_cpu_percent": self.max_cpu_percent,
            "max_disk_space_mb": self.max_disk_space_mb,
            "max_api_calls_per_minute": self.max_api_calls_per_minute,
        }


@dataclass(frozen=True, slots=True)
class OperatingConstraints:
    """Immutable policy governing what an autonomous session may touch."""

    allowed_operations: tuple[str, ...]
    prohibited_operations: tuple[str, ...]
    file_access: FileAccessPolicy
    resource_limits: ResourceLimits

    def __post_init__(self) -> None:
        object.__setattr__(
            self,
            "allowed_operations",
            _dedupe(
                _as_str_tuple(self.allowed_operations, "OperatingConstraints.allowed_operations")
            ),
        )
        object.__setattr__(
            self,
            "prohibited_operations",
            _dedupe(
                _as_str_tuple(
                    self.prohibited_operations, "OperatingConstraints.prohibited_operations"
                )
            ),
        )
        if not isinstance(self.file_access, FileAccessPolicy):
            _fail("OperatingConstraints.file_access", "expected FileAccessPolicy")
        if not isinstance(self.resource_limits, ResourceLimits):
            _fail("OperatingConstraints.resource_limits", "expected ResourceLimits")

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> OperatingConstraints:
        parsed = _expect_object(
            data,
            "OperatingConstraints",
            required={"file_access", "resource_limits"},
            optional={"allowed_operations", "prohibited_operations"},
        )
        file_access = parsed["file_access"]
        resource_limits = parsed["resource_limits"]
        if not isinstance(file_access, Mapping):
            _fail("OperatingConstraints.file_access", "expected object")
        if not isinstance(resource_limits, Mapping):
            _fail("OperatingConstraints.resource_limits", "expected object")
        return cls(
            allowed_operations=_as_str_tuple(
                parsed.get("allowed_operations", ()), "OperatingConstraints.allowed_operations"
            ),
            prohibited_operations=_as_str_tuple(
                parsed.get("prohibited_operations", ()),
                "OperatingConstraints.prohibited_operations",
            ),
            file_access=FileAccessPolicy.from_dict(file_access),
            resource_limits=ResourceLimits.from_dict(resource_limits),
        )

    def to_dict(self) -> dict[str, JSONValue]:
        return {
            "allowed_operations": list(self.allowed_operations),
            "prohibited_operations": list(self.prohibited_operations),
            "file_access": self.file_access.to_dict(),
            "resource_limits": self.resource_limits.to_dict(),
        }


def default_constraints() -> OperatingConstraints:
    """Built-in policy for an analysis session over the evals package."""

    return OperatingConstraints(
        allowed_operations=(
            "Read telemetry data via MCP server",
            "Analyze patterns and performance metrics",
            "Generate reports and visualizations",
            "Identify optimization opportunities",
            "Run existing tests",
        ),
        prohibited_operations=(
            "Modify configuration files (*.config.*, *.env, package.json)",
            "Delete any files",
            "Modify test files (can only run them)",
            "Access production databases directly",
            "Make changes outside the packages/evals directory",
            "Install new dependencies without explicit approval",
        ),
        file_access=FileAccessPolicy(
            read_only=("packages/evals/src/**/*.ts", "packages/evals/src/**/*.js"),
            write_allowed=(
                "packages/evals/src/**/*.ts",
                "packages/evals/src/**/*.js",
                ".github/workflows/autonomous-analysis-*.yml",
            ),
            prohibited=(
                "packages/evals/src/**/*.test.ts",
                "packages/evals/src/**/*.spec.ts",
                "*.config.*",
                "*.env*",
                "package.json",
                "package-lock.json",
                "node_modules/**",
            ),
        ),
        resource_limits=ResourceLimits(
            max_memory_mb=4096,
            max_cpu_percent=50,
            max_disk_space_mb=1024,
            max_api_calls_per_minute=100,
        ),
    )


# ---------------------------------------------------------------------------
# Proposed change
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ProposedChange:
    """A machine-generated modification awaiting a verdict.

    ``created_files`` lists the members of ``files`` that the change creates; those
    may be absent from disk without failing the accessibility check.
    """

    id: str
    type: ChangeType
    files: tuple[str, ...]
    description: str = ""
    rationale: str = ""
    expected_impact: str = ""
    risk_level: RiskLevel = RiskLevel.LOW
    created_files: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "id", _as_str(self.id, "ProposedChange.id", max_len=256))
        object.__setattr__(self, "type", _as_enum(ChangeType, self.type, "ProposedChange.type"))
        object.__setattr__(self, "files", _as_str_tuple(self.files, "ProposedChange.files"))
        for name in ("description", "rationale", "expected_impact"):
            object.__setattr__(
                self,
                name,
                _as_text(getattr(self, name), f"ProposedChange.{name}"),
            )
        object.__setattr__(
            self,
            "risk_level",
            _as_enum(RiskLevel, self.risk_level, "ProposedChange.risk_level"),
        )
        created = _as_str_tuple(self.created_files, "ProposedChange.created_files")
        unknown = sorted(set(created) - set(self.files))
        if unknown:
            _fail("ProposedChange.created_files", f"not listed in files: {unknown}")
        object.__setattr__(self, "created_files", created)

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> ProposedChange:
        parsed = _expect_object(
            data,
            "ProposedChange",
            required={"id", "type", "files"},
            optional={
                "description",
                "rationale",
                "expected_impact",
                "risk_level",
                "created_files",
            },
        )
        return cls(
            id=_as_str(parsed["id"], "ProposedChange.id", max_len=256),
            type=_as_enum(ChangeType, parsed["type"], "ProposedChange.type"),
            files=_as_str_tuple(parsed["files"], "ProposedChange.files"),
            description=_as_text(parsed.get("description", ""), "ProposedChange.description"),
            rationale=_as_text(parsed.get("rationale", ""), "ProposedChange.rationale"),
            expected_impact=_as_text(
                parsed.get("expected_impact", ""), "ProposedChange.expected_impact"
            ),
            risk_level=_as_enum(
                RiskLevel, parsed.get("risk_level", RiskLevel.LOW), "ProposedChange.risk_level"
            ),
            created_files=_as_str_tuple(
                parsed.get("created_files", ()), "ProposedChange.created_files"
            ),
        )

    def to_dict(self) -> dict[str, JSONValue]:
        return {
            "id": self.id,
            "type": self.type.value,
            "files": list(self.files),
            "description": self.description,
            "rationale": self.rationale,
            "expected_impact": self.expected_impact,
            "risk_level": self.risk_level.value,
            "created_files": list(self.created_files),
        }


# ---------------------------------------------------------------------------
# Deep-validation results
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class UnitTestSummary:
    passed: int
    failed: int
    coverage: float = 0.0
    duration_ms: int = 0

    def __post_init__(self) -> None:
        object.__setattr__(self, "passed", _as_int(self.passed, "UnitTestSummary.passed", minimum=0))
        object.__setattr__(self, "failed", _as_int(self.failed, "UnitTestSummary.failed", minimum=0))
        object.__setattr__(
            self, "coverage", _as_float(self.coverage, "UnitTestSummary.coverage", minimum=0.0)
        )
        object.__setattr__(
            self,
            "duration_ms",
            _as_int(self.duration_ms, "UnitTestSummary.duration_ms", minimum=0),
        )

    def to_dict(self) -> dict[str, JSONValue]:
        return {
            "passed": self.passed,
            "failed": self.failed,
            "coverage": self.coverage,
            "duration_ms": self.duration_ms,
        }


@dataclass(frozen=True, slots=True)
class IntegrationTestSummary:
    passed: int
    failed: int
    scenarios: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "passed", _as_int(self.passed, "IntegrationTestSummary.passed", minimum=0)
        )
        object.__setattr__(
            self, "failed", _as_int(self.failed, "IntegrationTestSummary.failed", minimum=0)
        )
        object.__setattr__(
            self,
            "scenarios",
            _as_str_tuple(self.scenarios, "IntegrationTestSummary.scenarios"),
        )

    def to_dict(self) -> dict[str, JSONValue]:
        return {
            "passed": self.passed,
            "failed": self.failed,
            "scenarios": list(self.scenarios),
        }


@dataclass(frozen=True, slots=True)
class TestValidation:
    """Unit and integration test outcome for one change."""

    __test__ = False

    unit_tests: UnitTestSummary
    integration_tests: IntegrationTestSummary

    @property
    def passed(self) -> bool:
        return self.unit_tests.failed == 0 and self.integration_tests.failed == 0

    def to_dict(self) -> dict[str, JSONValue]:
        return {
            "passed": self.passed,
            "unit_tests": self.unit_tests.to_dict(),
            "integration_tests": self.integration_tests.to_dict(),
        }


@dataclass(frozen=True, slots=True)
class Benchmark:
    """One benchmark comparison; percentages are signed, positive means worse."""

    metric: str
    baseline: float
    current: float
    change_percent: float
    threshold_percent: float

    def __post_init__(self) -> None:
        object.__setattr__(self, "metric", _as_str(self.metric, "Benchmark.metric", max_len=256))
        object.__setattr__(self, "baseline", _as_float(self.baseline, "Benchmark.baseline"))
        object.__setattr__(self, "current", _as_float(self.current, "Benchmark.current"))
        object.__setattr__(
            self, "change_percent", _as_float(self.change_percent, "Benchmark.change_percent")
        )
        object.__setattr__(
            self,
            "threshold_percent",
            _as_float(self.threshold_percent, "Benchmark.threshold_percent", minimum=0.0),
        )

    @property
    def regressed(self) -> bool:
        return self.change_percent > self.threshold_percent

    def to_dict(self) -> dict[str, JSONValue]:
        return {
            "metric": self.metric,
            "baseline": self.baseline,
            "current": self.current,
            "change_percent": self.change_percent,
            "threshold_percent": self.threshold_percent,
        }


@dataclass(frozen=True, slots=True)
class BenchmarkResult:
    benchmarks: tuple[Benchmark, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "benchmarks", tuple(self.benchmarks))

    @property
    def regressions(self) -> tuple[Benchmark, ...]:
        return tuple(item for item in self.benchmarks if item.regressed)

    @property
    def passed(self) -> bool:
        return not self.regressions

    def to_dict(self) -> dict[str, JSONValue]:
        return {
            "passed": self.passed,
            "benchmarks": [item.to_dict() for item in self.benchmarks],
            "regressions": [item.to_dict() for item in self.regressions],
        }


@dataclass(frozen=True, slots=True)
class QualityMetrics:
    cyclomatic: int = 0
    cognitive: int = 0
    maintainability_index: float = 100.0
    maintainability_grade: str = "A"
    duplication_percentage: float = 0.0
    duplication_blocks: int = 0
    vulnerabilities: int = 0
    severities: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "cyclomatic", _as_int(self.cyclomatic, "QualityMetrics.cyclomatic", minimum=0)
        )
        object.__setattr__(
            self, "cognitive", _as_int(self.cognitive, "QualityMetrics.cognitive", minimum=0)
        )
        object.__setattr__(
            self,
            "maintainability_index",
            _as_float(self.maintainability_index, "QualityMetrics.maintainability_index"),
        )
        object.__setattr__(
            self,
            "maintainability_grade",
            _as_str(self.maintainability_grade, "QualityMetrics.maintainability_grade", max_len=8),
        )
        object.__setattr__(
            self,
            "duplication_percentage",
            _as_float(
                self.duplication_percentage, "QualityMetrics.duplication_percentage", minimum=0.0
            ),
        )
        object.__setattr__(
            self,
            "duplication_blocks",
            _as_int(self.duplication_blocks, "QualityMetrics.duplication_blocks", minimum=0),
        )
        object.__setattr__(
            self,
            "vulnerabilities",
            _as_int(self.vulnerabilities, "QualityMetrics.vulnerabilities", minimum=0),
        )
        object.__setattr__(
            self, "severities", _as_str_tuple(self.severities, "QualityMetrics.severities")
        )

    def to_dict(self) -> dict[str, JSONValue]:
        return {
            "complexity": {"cyclomatic": self.cyclomatic, "cognitive": self.cognitive},
            "maintainability": {
                "index": self.maintainability_index,
                "grade": self.maintainability_grade,
            },
            "duplication": {
                "percentage": self.duplication_percentage,
                "blocks": self.duplication_blocks,
            },
            "security": {
                "vulnerabilities": self.vulnerabilities,
                "severities": list(self.severities),
            },
        }


@dataclass(frozen=True, slots=True)
class CodeQualityReport:
    metrics: QualityMetrics
    issues: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "issues", _as_str_tuple(self.issues, "CodeQualityReport.issues"))

    @classmethod
    def from_metrics(cls, metrics: QualityMetrics) -> CodeQualityReport:
        """Derive the issue list from the fixed quality thresholds."""

        issues: list[str] = []
        if metrics.cyclomatic > MAX_CYCLOMATIC_COMPLEXITY:
            issues.append("High cyclomatic complexity detected")
        if metrics.duplication_percentage > MAX_DUPLICATION_PERCENT:
            issues.append("Code duplication above threshold")
        if metrics.vulnerabilities > MAX_SECURITY_VULNERABILITIES:
            issues.append("Security vulnerabilities found")
        return cls(metrics=metrics, issues=tuple(issues))

    @property
    def passed(self) -> bool:
        return not self.issues

    def to_dict(self) -> dict[str, JSONValue]:
        return {
            "passed": self.passed,
            "metrics": self.metrics.to_dict(),
            "issues": list(self.issues),
        }


# ---------------------------------------------------------------------------
# Verdict
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class GateFailure:
    """One structured rejection reason."""

    kind: FailureKind
    message: str
    path: str | None = None

    def to_dict(self) -> dict[str, JSONValue]:
        return {"kind": self.kind.value, "message": self.message, "path": self.path}


@dataclass(frozen=True, slots=True)
class ValidationResult:
    """Verdict for one proposed change.

    Deep-validation results are only present when every static gate passed.
    """

    valid: bool
    reason: str
    test_results: TestValidation | None = None
    performance_results: BenchmarkResult | None = None
    code_quality_results: CodeQualityReport | None = None
    failures: tuple[GateFailure, ...] = ()

    @classmethod
    def rejected(cls, failures: tuple[GateFailure, ...]) -> ValidationResult:
        return cls(
            valid=False,
            reason="; ".join(item.message for item in failures),
            failures=failures,
        )

    def to_dict(self) -> dict[str, JSONValue]:
        return {
            "valid": self.valid,
            "reason": self.reason,
            "test_results": None if self.test_results is None else self.test_results.to_dict(),
            "performance_results": (
                None if self.performance_results is None else self.performance_results.to_dict()
            ),
            "code_quality_results": (
                None
                if self.code_quality_results is None
                else self.code_quality_results.to_dict()
            ),
            "failures": [item.to_dict() for item in self.failures],
        }


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _fail(path: str, message: str) -> NoReturn:
    raise ValueError(f"{path}: {message}")


def _expect_object(
    value: object,
    path: str,
    *,
    required: set[str],
    optional: set[str] | None = None,
) -> dict[str, object]:
    if not isinstance(value, Mapping):
        _fail(path, f"expected object, got {type(value).__name__}")

    parsed: dict[str, object] = {}
    for key, item in value.items():
        if not isinstance(key, str):
            _fail(path, f"object keys must be strings, got {type(key).__name__}")
        canonical = _KEY_ALIASES.get(key, key)
        if canonical in parsed:
            _fail(path, f"duplicate field {canonical!r}")
        parsed[canonical] = item

    allowed = required | (optional or set())
    unknown = sorted(key for key in parsed if key not in allowed)
    if unknown:
        _fail(path, f"unexpected fields: {unknown}")

    missing = sorted(key for key in required if key not in parsed)
    if missing:
        _fail(path, f"missing required fields: {missing}")

    return parsed


def _as_str(value: object, path: str, *, max_len: int = _MAX_TEXT) -> str:
    if not isinstance(value, str):
        _fail(path, f"expected string, got {type(value).__name__}")
    normalized = value.strip()
    if not normalized:
        _fail(path, "must not be empty")
    if len(normalized) > max_len:
        _fail(path, f"must be <= {max_len} characters")
    return normalized


def _as_text(value: object, path: str) -> str:
    if value is None:
        return ""
    if not isinstance(value, str):
        _fail(path, f"expected string, got {type(value).__name__}")
    if len(value) > _MAX_TEXT:
        _fail(path, f"must be <= {_MAX_TEXT} characters")
    return value


def _as_int(value: object, path: str, *, minimum: int | None = None) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        _fail(path, f"expected integer, got {type(value).__name__}")
    if minimum is not None and value < minimum:
        _fail(path, f"must be >= {minimum}")
    return value


def _as_float(value: object, path: str, *, minimum: float | None = None) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        _fail(path, f"expected number, got {type(value).__name__}")
    parsed = float(value)
    if not math.isfinite(parsed):
        _fail(path, "must be finite")
    if minimum is not None and parsed < minimum:
        _fail(path, f"must be >= {minimum}")
    return parsed


def _as_positive_float(value: object, path: str) -> float:
    parsed = _as_float(value, path)
    if parsed <= 0:
        _fail(path, "must be > 0")
    return parsed


def _as_enum(enum_type: type[TEnum], value: object, path: str) -> TEnum:
    if isinstance(value, enum_type):
        return value
    if not isinstance(value, str):
        _fail(path, f"expected string enum value, got {type(value).__name__}")
    try:
        return enum_type(value)
    except ValueError:
        allowed = ", ".join(sorted(item.value for item in enum_type))
        _fail(path, f"invalid value {value!r}; expected one of: {allowed}")


def _as_str_tuple(value: object, path: str) -> tuple[str, ...]:
    if isinstance(value, str) or not isinstance(value, (list, tuple)):
        _fail(path, f"expected array, got {type(value).__name__}")
    if len(value) > _MAX_COLLECTION:
        _fail(path, f"too many items (>{_MAX_COLLECTION})")
    return tuple(_as_str(item, f"{path}[{index}]") for index, item in enumerate(value))


def _as_unique_str_tuple(value: object, path: str) -> tuple[str, ...]:
    parsed = _as_str_tuple(value, path)
    if len(set(parsed)) != len(parsed):
        _fail(path, "contains duplicate values")
    return parsed


def _dedupe(values: tuple[str, ...]) -> tuple[str, ...]:
    return tuple(dict.fromkeys(values))


__all__ = [
    "Benchmark",
    "BenchmarkResult",
    "ChangeType",
    "CodeQualityReport",
    "FailureKind",
    "FileAccessPolicy",
    "GateFailure",
    "IntegrationTestSummary",
    "JSONScalar",
    "JSONValue",
    "OperatingConstraints",
    "ProposedChange",
    "QualityMetrics",
    "ResourceLimits",
    "RiskLevel",
    "TestValidation",
    "UnitTestSummary",
    "ValidationResult",
    "default_constraints",
]
