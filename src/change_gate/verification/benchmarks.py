"""Command-driven benchmark capability with baseline comparison."""

from __future__ import annotations

import json
import math
import os
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path

import yaml

from change_gate.domain.models import Benchmark, BenchmarkResult, ProposedChange
from change_gate.verification.backends import BenchmarkError
from change_gate.verification.commands import CommandExecutor, CommandSpec, LocalSubprocessExecutor

CHANGED_FILES_ENV = "CHANGE_GATE_CHANGED_FILES"


@dataclass(frozen=True, slots=True)
class BenchmarkSpec:
    """A named metric with its recorded baseline and tolerated increase in percent."""

    metric: str
    baseline: float
    threshold_percent: float

    def __post_init__(self) -> None:
        if not self.metric.strip():
            raise ValueError("BenchmarkSpec.metric: must not be empty")
        if not math.isfinite(self.baseline) or self.baseline <= 0:
            raise ValueError(f"BenchmarkSpec.baseline: must be > 0 for {self.metric!r}")
        if not math.isfinite(self.threshold_percent) or self.threshold_percent < 0:
            raise ValueError(f"BenchmarkSpec.threshold_percent: must be >= 0 for {self.metric!r}")

    def compare(self, current: float) -> Benchmark:
        change = round((current - self.baseline) / self.baseline * 100.0, 2)
        return Benchmark(
            metric=self.metric,
            baseline=self.baseline,
            current=current,
            change_percent=change,
            threshold_percent=self.threshold_percent,
        )


def benchmark_specs_from_mapping(payload: Mapping[str, object]) -> tuple[BenchmarkSpec, ...]:
    """Build specs from ``{metric: {baseline: x, threshold_percent: y}}``."""

    specs: list[BenchmarkSpec] = []
    for metric in sorted(payload):
        entry = payload[metric]
        if not isinstance(entry, Mapping):
            raise ValueError(f"benchmarks.{metric}: expected object")
        try:
            baseline = float(entry["baseline"])  # type: ignore[arg-type]
            threshold = float(entry["threshold_percent"])  # type: ignore[arg-type]
        except KeyError as exc:
            raise ValueError(f"benchmarks.{metric}: missing {exc.args[0]!r}") from exc
        except (TypeError, ValueError) as exc:
            raise ValueError(f"benchmarks.{metric}: baseline and threshold must be numbers") from exc
        specs.append(BenchmarkSpec(metric=metric, baseline=baseline, threshold_percent=threshold))
    return tuple(specs)


def load_baselines(path: Path | str) -> tuple[BenchmarkSpec, ...]:
    """Load benchmark baselines from a YAML file.

    The file holds a top-level ``benchmarks`` mapping keyed by metric name.
    """

    baseline_path = Path(path)
    try:
        payload = yaml.safe_load(baseline_path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise ValueError(f"unable to read baselines file {baseline_path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ValueError(f"invalid YAML in {baseline_path}: {exc}") from exc

    if not isinstance(payload, Mapping) or not isinstance(payload.get("benchmarks"), Mapping):
        raise ValueError(f"{baseline_path}: expected a top-level 'benchmarks' mapping")
    return benchmark_specs_from_mapping(payload["benchmarks"])


def parse_measurements(output: str) -> dict[str, float]:
    """Read ``{metric: value}`` (or ``[{metric, value}]``) JSON from command output.

    The whole output is tried first, then each line from the end.
    """

    candidates = [output.strip(), *reversed([line.strip() for line in output.splitlines()])]
    for candidate in candidates:
        if not candidate or candidate[0] not in "[{":
            continue
        try:
            payload = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        return _measurements_from_payload(payload)
    raise BenchmarkError("benchmark command did not print a JSON measurement object")


class CommandBenchmarkRunner:
    """Run a benchmark harness command and compare its measurements to baselines."""

    def __init__(
        self,
        project_root: Path | str,
        *,
        command: Sequence[str] = (),
        benchmarks: Sequence[BenchmarkSpec] = (),
        executor: CommandExecutor | None = None,
        timeout_seconds: float | None = None,
    ) -> None:
        self._project_root = Path(os.path.abspath(project_root))
        self._command = tuple(command)
        self._benchmarks = tuple(benchmarks)
        self._executor = executor if executor is not None else LocalSubprocessExecutor()
        self._timeout_seconds = timeout_seconds

    @property
    def benchmarks(self) -> tuple[BenchmarkSpec, ...]:
        return self._benchmarks

    async def run_benchmarks(self, change: ProposedChange) -> BenchmarkResult:
        if not self._benchmarks:
            return BenchmarkResult(benchmarks=())
        if not self._command:
            raise BenchmarkError("benchmarks are configured but no benchmark command is set")

        spec = CommandSpec(
            argv=self._command,
            cwd=str(self._project_root),
            env={CHANGED_FILES_ENV: os.pathsep.join(change.files)},
            timeout_seconds=self._timeout_seconds,
        )
        result = await self._executor.run(spec)
        if not result.is_success(spec):
            raise BenchmarkError(result.describe_failure())

        measured = parse_measurements(result.stdout)
        missing = [item.metric for item in self._benchmarks if item.metric not in measured]
        if missing:
            raise BenchmarkError(f"benchmark output is missing metrics: {', '.join(missing)}")
        return BenchmarkResult(
            benchmarks=tuple(item.compare(measured[item.metric]) for item in self._benchmarks)
        )


def _measurements_from_payload(payload: object) -> dict[str, float]:
    entries: list[tuple[object, object]]
    if isinstance(payload, Mapping):
        entries = list(payload.items())
    elif isinstance(payload, list):
        entries = []
        for item in payload:
            if not isinstance(item, Mapping) or "metric" not in item or "value" not in item:
                raise BenchmarkError("benchmark list entries need 'metric' and 'value'")
            entries.append((item["metric"], item["value"]))
    else:
        raise BenchmarkError("benchmark output must be a JSON object or list")

    measured: dict[str, float] = {}
    for metric, value in entries:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise BenchmarkError(f"benchmark metric {metric!r} is not a number")
        measured[str(metric)] = float(value)
    return measured


__all__ = [
    "CHANGED_FILES_ENV",
    "BenchmarkSpec",
    "CommandBenchmarkRunner",
    "benchmark_specs_from_mapping",
    "load_baselines",
    "parse_measurements",
]
