"""Unit tests for session resource accounting."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any

import pytest

from change_gate.domain.models import ResourceLimits
from change_gate.safety.resource_monitor import ResourceLimitExceeded, ResourceMonitor


class FakeClock:
    def __init__(self, start_ms: float = 1_000.0) -> None:
        self.now_ms = start_ms

    def __call__(self) -> float:
        return self.now_ms

    def advance(self, ms: float) -> None:
        self.now_ms += ms


@dataclass
class RecordingLogger:
    events: list[tuple[str, dict[str, Any]]] = field(default_factory=list)

    def warning(self, event: str, **fields: Any) -> None:
        self.events.append((event, fields))


def _limits() -> ResourceLimits:
    return ResourceLimits(
        max_memory_mb=4096,
        max_cpu_percent=50,
        max_disk_space_mb=1024,
        max_api_calls_per_minute=100,
    )


def test_fresh_monitor_is_within_limits() -> None:
    monitor = ResourceMonitor(_limits(), clock=FakeClock())

    check = monitor.check_resource_limits()

    assert check.within_limits is True
    assert check.violations == ()
    assert monitor.api_call_count == 0


def test_api_call_window_resets_after_sixty_seconds() -> None:
    clock = FakeClock()
    monitor = ResourceMonitor(_limits(), clock=clock)

    for _ in range(101):
        clock.advance(100)
        monitor.record_api_call()

    check = monitor.check_resource_limits()
    assert check.within_limits is False
    assert check.violations == ("API calls (101/min) exceed limit (100/min)",)

    clock.advance(61_000)
    assert monitor.record_api_call() == 1
    assert monitor.check_resource_limits().within_limits is True


def test_window_boundary_is_exclusive() -> None:
    clock = FakeClock()
    monitor = ResourceMonitor(_limits(), clock=clock)
    monitor.record_api_call()

    clock.advance(60_000)
    assert monitor.record_api_call() == 2

    clock.advance(1)
    assert monitor.record_api_call() == 1


def test_counter_is_not_reset_by_reads() -> None:
    clock = FakeClock()
    monitor = ResourceMonitor(_limits(), clock=clock)
    for _ in range(101):
        monitor.record_api_call()

    clock.advance(120_000)

    assert monitor.check_resource_limits().within_limits is False
    assert monitor.api_call_count == 101


def test_gauges_use_strict_greater_than() -> None:
    monitor = ResourceMonitor(_limits(), clock=FakeClock())
    monitor.record_memory_usage(4096)
    monitor.record_cpu_usage(50)
    monitor.record_disk_usage(1024)

    assert monitor.check_resource_limits().within_limits is True

    monitor.record_memory_usage(5000)
    monitor.record_cpu_usage(75.5)
    monitor.record_disk_usage(2048.25)

    assert monitor.check_resource_limits().violations == (
        "Memory usage (5000MB) exceeds limit (4096MB)",
        "CPU usage (75.5%) exceeds limit (50%)",
        "Disk usage (2048.25MB) exceeds limit (1024MB)",
    )


def test_gauges_are_overwritten_not_accumulated() -> None:
    monitor = ResourceMonitor(_limits(), clock=FakeClock())
    monitor.record_memory_usage(5000)
    monitor.record_memory_usage(100)

    assert monitor.get_usage_report().memory.usage == 100.0
    assert monitor.check_resource_limits().within_limits is True


def test_usage_report_percentages() -> None:
    monitor = ResourceMonitor(_limits(), clock=FakeClock())
    monitor.record_memory_usage(2048)
    monitor.record_cpu_usage(25)
    monitor.record_api_call()

    report = monitor.get_usage_report()

    assert report.memory.percentage == pytest.approx(50.0)
    assert report.cpu.percentage == pytest.approx(50.0)
    assert report.disk.percentage == 0.0
    assert report.api_calls.to_dict() == {"usage": 1.0, "limit": 100.0, "percentage": 1.0}
    assert set(report.to_dict()) == {"memory", "cpu", "disk", "api_calls"}


def test_usage_warnings_fire_above_warning_thresholds() -> None:
    monitor = ResourceMonitor(_limits(), clock=FakeClock())
    monitor.record_memory_usage(3500)
    monitor.record_cpu_usage(46)

    assert monitor.usage_warnings() == ("High memory usage: 85.4%", "High CPU usage: 92.0%")

    monitor.record_memory_usage(1000)
    monitor.record_cpu_usage(10)
    assert monitor.usage_warnings() == ()


def test_enforce_raises_with_every_violation() -> None:
    logger = RecordingLogger()
    monitor = ResourceMonitor(_limits(), clock=FakeClock(), logger=logger)
    monitor.record_memory_usage(8192)
    monitor.record_disk_usage(4096)

    with pytest.raises(ResourceLimitExceeded) as excinfo:
        monitor.enforce()

    assert excinfo.value.violations == (
        "Memory usage (8192MB) exceeds limit (4096MB)",
        "Disk usage (4096MB) exceeds limit (1024MB)",
    )
    assert str(excinfo.value).startswith("Resource limits exceeded: Memory usage")
    assert logger.events[0][0] == "resource_limits_exceeded"


def test_enforce_returns_check_when_within_limits() -> None:
    monitor = ResourceMonitor(_limits(), clock=FakeClock())

    assert monitor.enforce().within_limits is True


def test_concurrent_api_calls_are_all_counted() -> None:
    monitor = ResourceMonitor(_limits(), clock=FakeClock())

    def record() -> None:
        for _ in range(50):
            monitor.record_api_call()

    threads = [threading.Thread(target=record) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert monitor.api_call_count == 400
