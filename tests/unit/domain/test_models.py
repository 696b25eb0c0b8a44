"""Unit tests for core domain models."""

from __future__ import annotations

import json

import pytest

from change_gate.domain import models


def test_default_constraints_carry_the_analysis_session_policy() -> None:
    constraints = models.default_constraints()

    assert "Run existing tests" in constraints.allowed_operations
    assert "Delete any files" in constraints.prohibited_operations
    assert constraints.file_access.prohibited[-1] == "node_modules/**"
    assert ".github/workflows/autonomous-analysis-*.yml" in constraints.file_access.write_allowed
    assert constraints.resource_limits == models.ResourceLimits(
        max_memory_mb=4096,
        max_cpu_percent=50,
        max_disk_space_mb=1024,
        max_api_calls_per_minute=100,
    )


def test_constraints_roundtrip_through_dict_is_stable() -> None:
    constraints = models.default_constraints()
    payload = constraints.to_dict()

    restored = models.OperatingConstraints.from_dict(json.loads(json.dumps(payload)))

    assert restored == constraints
    assert restored.to_dict() == payload


def test_constraints_accept_camel_case_keys() -> None:
    restored = models.OperatingConstraints.from_dict(
        {
            "allowedOperations": ["Run existing tests"],
            "prohibitedOperations": [],
            "fileAccess": {"readOnly": ["src/**"], "writeAllowed": ["src/**/*.py"]},
            "resourceLimits": {
                "maxMemoryMB": 512,
                "maxCpuPercent": 25,
                "maxDiskSpaceMB": 100,
                "maxApiCallsPerMinute": 10,
            },
        }
    )

    assert restored.file_access.write_allowed == ("src/**/*.py",)
    assert restored.file_access.prohibited == ()
    assert restored.resource_limits.max_api_calls_per_minute == 10


def test_operations_are_deduplicated_in_order() -> None:
    constraints = models.OperatingConstraints(
        allowed_operations=("a", "b", "a"),
        prohibited_operations=(),
        file_access=models.FileAccessPolicy(),
        resource_limits=models.default_constraints().resource_limits,
    )

    assert constraints.allowed_operations == ("a", "b")


@pytest.mark.parametrize(
    "field_name",
    ["max_memory_mb", "max_cpu_percent", "max_disk_space_mb", "max_api_calls_per_minute"],
)
def test_resource_limits_must_be_positive(field_name: str) -> None:
    values: dict[str, object] = {
        "max_memory_mb": 1.0,
        "max_cpu_percent": 1.0,
        "max_disk_space_mb": 1.0,
        "max_api_calls_per_minute": 1,
    }
    values[field_name] = 0

    with pytest.raises(ValueError, match=field_name):
        models.ResourceLimits.from_dict(values)


def test_file_access_policy_rejects_duplicate_patterns() -> None:
    with pytest.raises(ValueError, match="duplicate"):
        models.FileAccessPolicy(prohibited=("*.env*", "*.env*"))


def test_unknown_constraint_fields_are_rejected() -> None:
    payload = models.default_constraints().to_dict()
    payload["extra"] = True

    with pytest.raises(ValueError, match="unexpected fields"):
        models.OperatingConstraints.from_dict(payload)


def test_proposed_change_defaults_and_coercion() -> None:
    change = models.ProposedChange.from_dict(
        {"id": " change-1 ", "type": "bug_fix", "files": ["src/a.py"], "riskLevel": "medium"}
    )

    assert change.id == "change-1"
    assert change.type is models.ChangeType.BUG_FIX
    assert change.risk_level is models.RiskLevel.MEDIUM
    assert change.description == ""
    assert change.created_files == ()
    assert models.ProposedChange.from_dict(change.to_dict()) == change


def test_proposed_change_rejects_unknown_type() -> None:
    with pytest.raises(ValueError, match="expected one of"):
        models.ProposedChange(id="c", type="rewrite", files=("a.py",))  # type: ignore[arg-type]


def test_created_files_must_be_listed_in_files() -> None:
    with pytest.raises(ValueError, match="not listed in files"):
        models.ProposedChange(
            id="c",
            type=models.ChangeType.REFACTOR,
            files=("src/a.py",),
            created_files=("src/b.py",),
        )


def test_test_validation_passes_only_without_failures() -> None:
    green = models.TestValidation(
        unit_tests=models.UnitTestSummary(passed=45, failed=0, coverage=85.5, duration_ms=1200),
        integration_tests=models.IntegrationTestSummary(
            passed=12, failed=0, scenarios=("telemetry-collection", "pattern-analysis")
        ),
    )
    red = models.TestValidation(
        unit_tests=models.UnitTestSummary(passed=44, failed=1),
        integration_tests=models.IntegrationTestSummary(passed=12, failed=0),
    )

    assert green.passed is True
    assert red.passed is False


def test_benchmark_regresses_only_above_threshold() -> None:
    at_threshold = models.Benchmark(
        metric="response_time", baseline=100, current=110, change_percent=10.0, threshold_percent=10
    )
    above = models.Benchmark(
        metric="memory", baseline=100, current=111, change_percent=11.0, threshold_percent=10
    )
    improved = models.Benchmark(
        metric="throughput", baseline=100, current=50, change_percent=-50.0, threshold_percent=0
    )

    result = models.BenchmarkResult(benchmarks=(at_threshold, above, improved))

    assert [item.metric for item in result.regressions] == ["memory"]
    assert result.passed is False
    assert models.BenchmarkResult().passed is True


def test_code_quality_report_derives_issues_from_thresholds() -> None:
    clean = models.CodeQualityReport.from_metrics(
        models.QualityMetrics(cyclomatic=10, duplication_percentage=5.0, vulnerabilities=0)
    )
    dirty = models.CodeQualityReport.from_metrics(
        models.QualityMetrics(
            cyclomatic=11,
            duplication_percentage=5.01,
            vulnerabilities=1,
            severities=("HIGH",),
        )
    )

    assert clean.passed is True
    assert clean.issues == ()
    assert dirty.issues == (
        "High cyclomatic complexity detected",
        "Code duplication above threshold",
        "Security vulnerabilities found",
    )


def test_quality_metrics_serialize_as_nested_sections() -> None:
    payload = models.QualityMetrics(cyclomatic=8, cognitive=12, maintainability_index=75.0).to_dict()

    assert payload["complexity"] == {"cyclomatic": 8, "cognitive": 12}
    assert payload["maintainability"] == {"index": 75.0, "grade": "A"}
    assert payload["security"] == {"vulnerabilities": 0, "severities": []}


def test_rejected_result_joins_failure_messages() -> None:
    failures = (
        models.GateFailure(models.FailureKind.PERMISSION_DENIED, "first", "a.py"),
        models.GateFailure(models.FailureKind.SCOPE_VIOLATION, "second"),
    )

    result = models.ValidationResult.rejected(failures)

    assert result.valid is False
    assert result.reason == "first; second"
    assert result.test_results is None
    assert result.to_dict()["failures"] == [
        {"kind": "permission_denied", "message": "first", "path": "a.py"},
        {"kind": "scope_violation", "message": "second", "path": None},
    ]
