"""
Safety validator: static gates followed by deep validation.

``validate_change`` never raises for a single change. Static-gate failures, failed
deep validation and unexpected errors all come back as ``ValidationResult`` with
``valid=False``; only cancellation propagates to the caller.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import structlog

from change_gate.domain.models import (
    FailureKind,
    GateFailure,
    OperatingConstraints,
    ProposedChange,
    ValidationResult,
)
from change_gate.safety.gates import StaticGates
from change_gate.verification.backends import BenchmarkRunner, QualityAnalyzer, SuiteRunner

ALL_VALIDATIONS_PASSED = "All validations passed successfully"


class SafetyValidator:
    """Decide whether a proposed change may proceed."""

    def __init__(
        self,
        constraints: OperatingConstraints,
        *,
        project_root: Path | str,
        suite_runner: SuiteRunner,
        benchmark_runner: BenchmarkRunner,
        quality_analyzer: QualityAnalyzer,
        logger: Any | None = None,
    ) -> None:
        self._constraints = constraints
        self._gates = StaticGates(constraints, project_root=project_root)
        self._suite_runner = suite_runner
        self._benchmark_runner = benchmark_runner
        self._quality_analyzer = quality_analyzer
        self._logger = logger if logger is not None else structlog.get_logger(__name__)

    @property
    def constraints(self) -> OperatingConstraints:
        return self._constraints

    @property
    def gates(self) -> StaticGates:
        return self._gates

    async def validate_change(self, change: ProposedChange) -> ValidationResult:
        try:
            failures = tuple(
                failure
                for outcome in self._gates.evaluate(change)
                for failure in outcome.failures
            )
            if failures:
                result = ValidationResult.rejected(failures)
                self._log_decision(change, result, stage="static")
                return result

            result = await self._deep_validate(change)
            self._log_decision(change, result, stage="deep")
            return result
        except Exception as exc:
            message = str(exc) or type(exc).__name__
            self._logger.warning(
                "safety_validation_error",
                change_id=change.id,
                error_type=type(exc).__name__,
                error=message,
            )
            return ValidationResult(
                valid=False,
                reason=f"Validation error: {message}",
                failures=(GateFailure(FailureKind.UNEXPECTED_ERROR, message),),
            )

    async def _deep_validate(self, change: ProposedChange) -> ValidationResult:
        tests = await self._suite_runner.run_tests(change)
        performance = await self._benchmark_runner.run_benchmarks(change)
        quality = await self._quality_analyzer.analyze_code_quality(change)

        failures: list[GateFailure] = []
        if not tests.passed:
            failures.append(
                GateFailure(
                    FailureKind.DEEP_VALIDATION_FAILURE,
                    (
                        f"Tests failed: {tests.unit_tests.failed} unit tests, "
                        f"{tests.integration_tests.failed} integration tests"
                    ),
                )
            )
        if not performance.passed:
            metrics = ", ".join(item.metric for item in performance.regressions)
            failures.append(
                GateFailure(
                    FailureKind.DEEP_VALIDATION_FAILURE,
                    f"Performance regressions detected: {metrics}",
                )
            )
        if not quality.passed:
            failures.append(
                GateFailure(
                    FailureKind.DEEP_VALIDATION_FAILURE,
                    f"Code quality issues: {', '.join(quality.issues)}",
                )
            )

        reason = "; ".join(item.message for item in failures) if failures else ALL_VALIDATIONS_PASSED
        return ValidationResult(
            valid=not failures,
            reason=reason,
            test_results=tests,
            performance_results=performance,
            code_quality_results=quality,
            failures=tuple(failures),
        )

    def _log_decision(self, change: ProposedChange, result: ValidationResult, *, stage: str) -> None:
        self._logger.info(
            "safety_validation_decision",
            change_id=change.id,
            change_type=change.type.value,
            risk_level=change.risk_level.value,
            file_count=len(change.files),
            stage=stage,
            valid=result.valid,
            failure_kinds=sorted({item.kind.value for item in result.failures}),
            reason=result.reason,
        )


__all__ = ["ALL_VALIDATIONS_PASSED", "SafetyValidator"]
