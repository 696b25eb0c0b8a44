"""Unit tests for the safety validator pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import pytest

from change_gate.domain.models import (
    Benchmark,
    BenchmarkResult,
    ChangeType,
    CodeQualityReport,
    FailureKind,
    FileAccessPolicy,
    IntegrationTestSummary,
    OperatingConstraints,
    ProposedChange,
    QualityMetrics,
    RiskLevel,
    TestValidation,
    UnitTestSummary,
    default_constraints,
)
from change_gate.safety.validator import ALL_VALIDATIONS_PASSED, SafetyValidator
from change_gate.verification.backends import (
    BenchmarkError,
    BenchmarkRunner,
    QualityAnalyzer,
    SuiteRunner,
)


def _green_tests() -> TestValidation:
    return TestValidation(
        unit_tests=UnitTestSummary(passed=45, failed=0, coverage=85.5, duration_ms=1200),
        integration_tests=IntegrationTestSummary(
            passed=12,
            failed=0,
            scenarios=("telemetry-collection", "pattern-analysis", "report-generation"),
        ),
    )


def _green_benchmarks() -> BenchmarkResult:
    return BenchmarkResult(
        benchmarks=(
            Benchmark(
                metric="response_time",
                baseline=100,
                current=95,
                change_percent=-5.0,
                threshold_percent=10,
            ),
            Benchmark(
                metric="memory_usage",
                baseline=512,
                current=480,
                change_percent=-6.25,
                threshold_percent=15,
            ),
        )
    )


def _green_quality() -> CodeQualityReport:
    return CodeQualityReport.from_metrics(
        QualityMetrics(
            cyclomatic=8,
            cognitive=12,
            maintainability_index=75.0,
            maintainability_grade="A",
            duplication_percentage=2.5,
            duplication_blocks=1,
        )
    )


@dataclass
class FakeSuiteRunner:
    result: TestValidation = field(default_factory=_green_tests)
    calls: list[str] = field(default_factory=list)

    async def run_tests(self, change: ProposedChange) -> TestValidation:
        self.calls.append(change.id)
        return self.result


@dataclass
class FakeBenchmarkRunner:
    result: BenchmarkResult = field(default_factory=_green_benchmarks)
    error: Exception | None = None
    calls: list[str] = field(default_factory=list)

    async def run_benchmarks(self, change: ProposedChange) -> BenchmarkResult:
        self.calls.append(change.id)
        if self.error is not None:
            raise self.error
        return self.result


@dataclass
class FakeQualityAnalyzer:
    result: CodeQualityReport = field(default_factory=_green_quality)
    calls: list[str] = field(default_factory=list)

    async def analyze_code_quality(self, change: ProposedChange) -> CodeQualityReport:
        self.calls.append(change.id)
        return self.result


@dataclass
class RecordingLogger:
    events: list[tuple[str, str, dict[str, Any]]] = field(default_factory=list)

    def info(self, event: str, **fields: Any) -> None:
        self.events.append(("info", event, fields))

    def warning(self, event: str, **fields: Any) -> None:
        self.events.append(("warning", event, fields))


def _evals_constraints() -> OperatingConstraints:
    return OperatingConstraints(
        allowed_operations=(),
        prohibited_operations=(),
        file_access=FileAccessPolicy(
            write_allowed=("packages/evals/src/**/*.ts",),
            prohibited=("packages/evals/src/**/*.test.ts",),
        ),
        resource_limits=default_constraints().resource_limits,
    )


def _write(root: Path, relative: str, size: int = 200) -> Path:
    path = root / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(b"x" * size)
    return path


def _validator(
    root: Path,
    *,
    suite: FakeSuiteRunner | None = None,
    bench: FakeBenchmarkRunner | None = None,
    quality: FakeQualityAnalyzer | None = None,
    logger: RecordingLogger | None = None,
) -> SafetyValidator:
    return SafetyValidator(
        _evals_constraints(),
        project_root=root,
        suite_runner=suite or FakeSuiteRunner(),
        benchmark_runner=bench or FakeBenchmarkRunner(),
        quality_analyzer=quality or FakeQualityAnalyzer(),
        logger=logger or RecordingLogger(),
    )


def test_fakes_satisfy_capability_protocols() -> None:
    assert isinstance(FakeSuiteRunner(), SuiteRunner)
    assert isinstance(FakeBenchmarkRunner(), BenchmarkRunner)
    assert isinstance(FakeQualityAnalyzer(), QualityAnalyzer)


@pytest.mark.asyncio
async def test_prohibited_file_is_rejected_without_deep_validation(tmp_path: Path) -> None:
    target = _write(tmp_path, "packages/evals/src/foo.test.ts")
    suite = FakeSuiteRunner()
    validator = _validator(tmp_path, suite=suite)

    result = await validator.validate_change(
        ProposedChange(
            id="scenario-a",
            type=ChangeType.REFACTOR,
            files=(str(target),),
            risk_level=RiskLevel.LOW,
        )
    )

    assert result.valid is False
    assert result.reason == "File packages/evals/src/foo.test.ts is in prohibited access list"
    assert result.test_results is None
    assert suite.calls == []


@pytest.mark.asyncio
async def test_clean_change_passes_all_validations(tmp_path: Path) -> None:
    target = _write(tmp_path, "packages/evals/src/foo.ts")
    logger = RecordingLogger()
    validator = _validator(tmp_path, logger=logger)

    result = await validator.validate_change(
        ProposedChange(id="scenario-b", type=ChangeType.REFACTOR, files=(str(target),))
    )

    assert result.valid is True
    assert result.reason == ALL_VALIDATIONS_PASSED
    assert result.test_results == _green_tests()
    assert result.performance_results == _green_benchmarks()
    assert result.code_quality_results == _green_quality()
    assert result.failures == ()

    level, event, fields = logger.events[-1]
    assert (level, event) == ("info", "safety_validation_decision")
    assert fields["change_id"] == "scenario-b"
    assert fields["stage"] == "deep"
    assert fields["valid"] is True


@pytest.mark.asyncio
async def test_eleven_files_are_rejected_for_complexity(tmp_path: Path) -> None:
    files = tuple(
        str(_write(tmp_path, f"packages/evals/src/m{index}.ts")) for index in range(11)
    )
    logger = RecordingLogger()
    validator = _validator(tmp_path, logger=logger)

    result = await validator.validate_change(
        ProposedChange(id="scenario-c", type=ChangeType.OPTIMIZATION, files=files)
    )

    assert result.valid is False
    assert result.reason == "Too many files modified (11). Maximum is 10 per change."
    assert [item.kind for item in result.failures] == [FailureKind.COMPLEXITY_EXCEEDED]
    assert logger.events[-1][2]["stage"] == "static"


@pytest.mark.asyncio
async def test_failures_from_several_gates_are_all_reported(tmp_path: Path) -> None:
    validator = _validator(tmp_path)

    result = await validator.validate_change(
        ProposedChange(
            id="multi",
            type=ChangeType.FEATURE,
            files=("README.md",),
            risk_level=RiskLevel.HIGH,
        )
    )

    assert result.reason == (
        "File README.md is not in write-allowed list; "
        "Change type 'feature' is not allowed. Allowed types: optimization, bug_fix, refactor; "
        "High-risk changes are not allowed in autonomous mode"
    )
    assert [item.kind for item in result.failures] == [
        FailureKind.PERMISSION_DENIED,
        FailureKind.SCOPE_VIOLATION,
        FailureKind.SCOPE_VIOLATION,
    ]


@pytest.mark.asyncio
async def test_failing_deep_checks_are_summarized_in_order(tmp_path: Path) -> None:
    target = _write(tmp_path, "packages/evals/src/foo.ts")
    suite = FakeSuiteRunner(
        result=TestValidation(
            unit_tests=UnitTestSummary(passed=40, failed=2),
            integration_tests=IntegrationTestSummary(passed=11, failed=1),
        )
    )
    bench = FakeBenchmarkRunner(
        result=BenchmarkResult(
            benchmarks=(
                Benchmark(
                    metric="response_time",
                    baseline=100,
                    current=125,
                    change_percent=25.0,
                    threshold_percent=10,
                ),
                Benchmark(
                    metric="memory_usage",
                    baseline=512,
                    current=600,
                    change_percent=17.19,
                    threshold_percent=15,
                ),
            )
        )
    )
    quality = FakeQualityAnalyzer(
        result=CodeQualityReport.from_metrics(
            QualityMetrics(cyclomatic=14, vulnerabilities=2, severities=("HIGH", "LOW"))
        )
    )
    validator = _validator(tmp_path, suite=suite, bench=bench, quality=quality)

    result = await validator.validate_change(
        ProposedChange(id="deep", type=ChangeType.BUG_FIX, files=(str(target),))
    )

    assert result.valid is False
    assert result.reason == (
        "Tests failed: 2 unit tests, 1 integration tests; "
        "Performance regressions detected: response_time, memory_usage; "
        "Code quality issues: High cyclomatic complexity detected, Security vulnerabilities found"
    )
    assert {item.kind for item in result.failures} == {FailureKind.DEEP_VALIDATION_FAILURE}
    assert result.test_results is not None
    assert result.performance_results is not None
    assert result.code_quality_results is not None


@pytest.mark.asyncio
async def test_backend_exception_becomes_validation_error(tmp_path: Path) -> None:
    target = _write(tmp_path, "packages/evals/src/foo.ts")
    logger = RecordingLogger()
    bench = FakeBenchmarkRunner(error=BenchmarkError("benchmark output is missing metrics: p95"))
    quality = FakeQualityAnalyzer()
    validator = _validator(tmp_path, bench=bench, quality=quality, logger=logger)

    result = await validator.validate_change(
        ProposedChange(id="boom", type=ChangeType.BUG_FIX, files=(str(target),))
    )

    assert result.valid is False
    assert result.reason == "Validation error: benchmark output is missing metrics: p95"
    assert [item.kind for item in result.failures] == [FailureKind.UNEXPECTED_ERROR]
    assert quality.calls == []
    level, event, fields = logger.events[-1]
    assert (level, event) == ("warning", "safety_validation_error")
    assert fields["error_type"] == "BenchmarkError"


@pytest.mark.asyncio
async def test_validator_is_reusable_across_changes(tmp_path: Path) -> None:
    target = _write(tmp_path, "packages/evals/src/foo.ts")
    suite = FakeSuiteRunner()
    validator = _validator(tmp_path, suite=suite)

    first = await validator.validate_change(
        ProposedChange(id="one", type=ChangeType.BUG_FIX, files=(str(target),))
    )
    second = await validator.validate_change(
        ProposedChange(id="two", type=ChangeType.REFACTOR, files=(str(target),))
    )

    assert first.valid and second.valid
    assert suite.calls == ["one", "two"]
    assert validator.constraints == _evals_constraints()
