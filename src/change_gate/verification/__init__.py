"""Deep-validation capabilities and the tool adapters that implement them."""

from change_gate.verification.backends import (
    BenchmarkError,
    BenchmarkRunner,
    DeepValidationError,
    QualityAnalysisError,
    QualityAnalyzer,
    SuiteRunError,
    SuiteRunner,
)
from change_gate.verification.benchmarks import (
    BenchmarkSpec,
    CommandBenchmarkRunner,
    load_baselines,
)
from change_gate.verification.commands import (
    CommandExecutor,
    CommandResult,
    CommandSpec,
    LocalSubprocessExecutor,
)
from change_gate.verification.pytest_runner import PytestSuiteRunner
from change_gate.verification.quality import StaticAnalysisQualityAnalyzer

__all__ = [
    "BenchmarkError",
    "BenchmarkRunner",
    "BenchmarkSpec",
    "CommandBenchmarkRunner",
    "CommandExecutor",
    "CommandResult",
    "CommandSpec",
    "DeepValidationError",
    "LocalSubprocessExecutor",
    "PytestSuiteRunner",
    "QualityAnalysisError",
    "QualityAnalyzer",
    "StaticAnalysisQualityAnalyzer",
    "SuiteRunError",
    "SuiteRunner",
    "load_baselines",
]
