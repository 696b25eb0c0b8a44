"""Deep-validation capability interfaces and their error hierarchy."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from change_gate.domain.models import (
    BenchmarkResult,
    CodeQualityReport,
    ProposedChange,
    TestValidation,
)


class DeepValidationError(RuntimeError):
    """A deep-validation capability could not produce a result."""


class SuiteRunError(DeepValidationError):
    """The test suite could not be run or its output could not be read."""


class BenchmarkError(DeepValidationError):
    """Benchmarks could not be run or did not report a configured metric."""


class QualityAnalysisError(DeepValidationError):
    """Static analysis failed for one of the changed files."""


@runtime_checkable
class SuiteRunner(Protocol):
    """Runs unit and integration tests against the change as it sits on disk."""

    async def run_tests(self, change: ProposedChange) -> TestValidation: ...


@runtime_checkable
class BenchmarkRunner(Protocol):
    """Runs the fixed benchmark battery and compares it with stored baselines."""

    async def run_benchmarks(self, change: ProposedChange) -> BenchmarkResult: ...


@runtime_checkable
class QualityAnalyzer(Protocol):
    """Computes complexity, maintainability, duplication and security metrics."""

    async def analyze_code_quality(self, change: ProposedChange) -> CodeQualityReport: ...


__all__ = [
    "BenchmarkError",
    "BenchmarkRunner",
    "DeepValidationError",
    "QualityAnalysisError",
    "QualityAnalyzer",
    "SuiteRunError",
    "SuiteRunner",
]
