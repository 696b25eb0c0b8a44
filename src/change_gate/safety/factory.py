"""Assemble a ``SafetyValidator`` and ``ResourceMonitor`` from an effective config."""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any

from change_gate.config.schema import constraints_from_config
from change_gate.safety.resource_monitor import ResourceMonitor
from change_gate.safety.validator import SafetyValidator
from change_gate.verification.benchmarks import (
    BenchmarkSpec,
    CommandBenchmarkRunner,
    benchmark_specs_from_mapping,
    load_baselines,
)
from change_gate.verification.commands import CommandExecutor, LocalSubprocessExecutor
from change_gate.verification.pytest_runner import PytestSuiteRunner
from change_gate.verification.quality import StaticAnalysisQualityAnalyzer


def build_safety_validator(
    config: Mapping[str, Any],
    *,
    project_root: Path | str | None = None,
    executor: CommandExecutor | None = None,
    logger: Any | None = None,
) -> SafetyValidator:
    """Wire the pytest, benchmark and static-analysis adapters behind the gates."""

    root = Path(project_root if project_root is not None else config["project"]["root"])
    validation = config["validation"]
    runner = executor if executor is not None else LocalSubprocessExecutor()

    tests = validation["tests"]
    suite_runner = PytestSuiteRunner(
        root,
        executor=runner,
        pytest_command=tests["pytest_command"] or None,
        unit_dir=tests["unit_dir"],
        integration_dir=tests["integration_dir"],
        coverage_target=tests["coverage_target"] or None,
        scope_to_changed_files=tests["scope_to_changed_files"],
        timeout_seconds=_timeout(tests),
    )

    performance = validation["performance"]
    benchmark_runner = CommandBenchmarkRunner(
        root,
        command=performance["command"],
        benchmarks=benchmark_specs_from_config(performance),
        executor=runner,
        timeout_seconds=_timeout(performance),
    )

    quality = validation["quality"]
    quality_analyzer = StaticAnalysisQualityAnalyzer(
        root,
        executor=runner,
        bandit_command=quality["bandit_command"],
        run_security_scan=quality["run_security_scan"],
        duplication_window=quality["duplication_window"],
        timeout_seconds=_timeout(quality),
    )

    return SafetyValidator(
        constraints_from_config(config),
        project_root=root,
        suite_runner=suite_runner,
        benchmark_runner=benchmark_runner,
        quality_analyzer=quality_analyzer,
        logger=logger,
    )


def build_resource_monitor(config: Mapping[str, Any], *, logger: Any | None = None) -> ResourceMonitor:
    return ResourceMonitor(constraints_from_config(config).resource_limits, logger=logger)


def benchmark_specs_from_config(performance: Mapping[str, Any]) -> tuple[BenchmarkSpec, ...]:
    """Baselines file entries first, overridden per metric by inline ``benchmarks``."""

    specs: dict[str, BenchmarkSpec] = {}
    baselines_file = performance.get("baselines_file") or ""
    if baselines_file:
        for spec in load_baselines(baselines_file):
            specs[spec.metric] = spec
    for spec in benchmark_specs_from_mapping(performance.get("benchmarks") or {}):
        specs[spec.metric] = spec
    return tuple(specs[metric] for metric in sorted(specs))


def _timeout(section: Mapping[str, Any]) -> float | None:
    value = float(section.get("timeout_seconds") or 0.0)
    return value if value > 0 else None


__all__ = ["benchmark_specs_from_config", "build_resource_monitor", "build_safety_validator"]
