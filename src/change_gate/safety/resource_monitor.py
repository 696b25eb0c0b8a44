"""Session resource accounting against hard ceilings."""

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import structlog

from change_gate.constants import (
    API_CALL_WINDOW_MS,
    CPU_WARNING_PERCENT,
    MEMORY_WARNING_PERCENT,
)
from change_gate.domain.models import JSONValue, ResourceLimits

Clock = Callable[[], float]


class ResourceLimitExceeded(RuntimeError):
    """Raised by ``ResourceMonitor.enforce`` when any ceiling is exceeded."""

    def __init__(self, violations: tuple[str, ...]) -> None:
        self.violations = violations
        super().__init__(f"Resource limits exceeded: {', '.join(violations)}")


@dataclass(frozen=True, slots=True)
class ResourceCheck:
    within_limits: bool
    violations: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class DimensionUsage:
    usage: float
    limit: float

    @property
    def percentage(self) -> float:
        return self.usage / self.limit * 100.0

    def to_dict(self) -> dict[str, JSONValue]:
        return {"usage": self.usage, "limit": self.limit, "percentage": self.percentage}


@dataclass(frozen=True, slots=True)
class UsageReport:
    memory: DimensionUsage
    cpu: DimensionUsage
    disk: DimensionUsage
    api_calls: DimensionUsage

    def to_dict(self) -> dict[str, JSONValue]:
        return {
            "memory": self.memory.to_dict(),
            "cpu": self.cpu.to_dict(),
            "disk": self.disk.to_dict(),
            "api_calls": self.api_calls.to_dict(),
        }


class ResourceMonitor:
    """Gauges for memory/CPU/disk plus a fixed-window API-call counter.

    Gauges hold the last recorded value. The API-call window is reset the first time
    a call is recorded more than 60 seconds after the previous reset, so counts are
    only refreshed on ``record_api_call``. One lock guards all state, so a monitor
    may be shared across threads.
    """

    def __init__(
        self,
        limits: ResourceLimits,
        *,
        clock: Clock | None = None,
        logger: Any | None = None,
    ) -> None:
        self._limits = limits
        self._clock = clock if clock is not None else _monotonic_ms
        self._logger = logger if logger is not None else structlog.get_logger(__name__)
        self._lock = threading.Lock()
        self._memory_mb = 0.0
        self._cpu_percent = 0.0
        self._disk_mb = 0.0
        self._api_call_count = 0
        self._last_api_reset_ms = self._clock()

    @property
    def limits(self) -> ResourceLimits:
        return self._limits

    @property
    def api_call_count(self) -> int:
        with self._lock:
            return self._api_call_count

    def record_memory_usage(self, mb: float) -> None:
        with self._lock:
            self._memory_mb = float(mb)

    def record_cpu_usage(self, percent: float) -> None:
        with self._lock:
            self._cpu_percent = float(percent)

    def record_disk_usage(self, mb: float) -> None:
        with self._lock:
            self._disk_mb = float(mb)

    def record_api_call(self) -> int:
        """Count one API call and return the count in the current window."""

        with self._lock:
            now = self._clock()
            if now - self._last_api_reset_ms > API_CALL_WINDOW_MS:
                self._api_call_count = 0
                self._last_api_reset_ms = now
            self._api_call_count += 1
            return self._api_call_count

    def check_resource_limits(self) -> ResourceCheck:
        with self._lock:
            memory, cpu, disk, calls = (
                self._memory_mb,
                self._cpu_percent,
                self._disk_mb,
                self._api_call_count,
            )
        limits = self._limits

        violations: list[str] = []
        if memory > limits.max_memory_mb:
            violations.append(
                f"Memory usage ({_fmt(memory)}MB) exceeds limit ({_fmt(limits.max_memory_mb)}MB)"
            )
        if cpu > limits.max_cpu_percent:
            violations.append(
                f"CPU usage ({_fmt(cpu)}%) exceeds limit ({_fmt(limits.max_cpu_percent)}%)"
            )
        if disk > limits.max_disk_space_mb:
            violations.append(
                f"Disk usage ({_fmt(disk)}MB) exceeds limit ({_fmt(limits.max_disk_space_mb)}MB)"
            )
        if calls > limits.max_api_calls_per_minute:
            violations.append(
                f"API calls ({calls}/min) exceed limit ({limits.max_api_calls_per_minute}/min)"
            )
        return ResourceCheck(within_limits=not violations, violations=tuple(violations))

    def get_usage_report(self) -> UsageReport:
        with self._lock:
            memory, cpu, disk, calls = (
                self._memory_mb,
                self._cpu_percent,
                self._disk_mb,
                self._api_call_count,
            )
        limits = self._limits
        return UsageReport(
            memory=DimensionUsage(usage=memory, limit=limits.max_memory_mb),
            cpu=DimensionUsage(usage=cpu, limit=limits.max_cpu_percent),
            disk=DimensionUsage(usage=disk, limit=limits.max_disk_space_mb),
            api_calls=DimensionUsage(
                usage=float(calls), limit=float(limits.max_api_calls_per_minute)
            ),
        )

    def usage_warnings(
        self,
        *,
        memory_percent: float = MEMORY_WARNING_PERCENT,
        cpu_percent: float = CPU_WARNING_PERCENT,
    ) -> tuple[str, ...]:
        """Early warnings for sessions approaching their memory or CPU ceiling."""

        report = self.get_usage_report()
        warnings: list[str] = []
        if report.memory.percentage > memory_percent:
            warnings.append(f"High memory usage: {report.memory.percentage:.1f}%")
        if report.cpu.percentage > cpu_percent:
            warnings.append(f"High CPU usage: {report.cpu.percentage:.1f}%")
        return tuple(warnings)

    def enforce(self) -> ResourceCheck:
        """Return the check when within limits, otherwise raise ``ResourceLimitExceeded``."""

        check = self.check_resource_limits()
        if not check.within_limits:
            self._logger.warning("resource_limits_exceeded", violations=list(check.violations))
            raise ResourceLimitExceeded(check.violations)
        return check


def _monotonic_ms() -> float:
    return time.monotonic() * 1000.0


def _fmt(value: float) -> str:
    if float(value).is_integer():
        return str(int(value))
    return str(round(value, 2))


__all__ = [
    "Clock",
    "DimensionUsage",
    "ResourceCheck",
    "ResourceLimitExceeded",
    "ResourceMonitor",
    "UsageReport",
]
