"""Domain models for constraints, proposed changes and validation verdicts."""

from change_gate.domain.models import (
    Benchmark,
    BenchmarkResult,
    ChangeType,
    CodeQualityReport,
    FailureKind,
    FileAccessPolicy,
    GateFailure,
    IntegrationTestSummary,
    OperatingConstraints,
    ProposedChange,
    QualityMetrics,
    ResourceLimits,
    RiskLevel,
    TestValidation,
    UnitTestSummary,
    ValidationResult,
    default_constraints,
)

__all__ = [
    "Benchmark",
    "BenchmarkResult",
    "ChangeType",
    "CodeQualityReport",
    "FailureKind",
    "FileAccessPolicy",
    "GateFailure",
    "IntegrationTestSummary",
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
