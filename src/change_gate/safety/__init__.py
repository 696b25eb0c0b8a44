"""Safety gating for autonomous changes and session resource accounting."""

from change_gate.safety.factory import (
    benchmark_specs_from_config,
    build_resource_monitor,
    build_safety_validator,
)
from change_gate.safety.gates import GateOutcome, StaticGates
from change_gate.safety.resource_monitor import (
    DimensionUsage,
    ResourceCheck,
    ResourceLimitExceeded,
    ResourceMonitor,
    UsageReport,
)
from change_gate.safety.sampler import ResourceSample, ResourceSampler, directory_size_mb
from change_gate.safety.validator import ALL_VALIDATIONS_PASSED, SafetyValidator

__all__ = [
    "ALL_VALIDATIONS_PASSED",
    "DimensionUsage",
    "GateOutcome",
    "ResourceCheck",
    "ResourceLimitExceeded",
    "ResourceMonitor",
    "ResourceSample",
    "ResourceSampler",
    "SafetyValidator",
    "StaticGates",
    "UsageReport",
    "benchmark_specs_from_config",
    "build_resource_monitor",
    "build_safety_validator",
    "directory_size_mb",
]
