"""Unit tests for psutil-backed resource sampling."""

from __future__ import annotations

import os
from pathlib import Path
from types import SimpleNamespace

import psutil
import pytest

from change_gate.constants import BYTES_PER_MB
from change_gate.domain.models import ResourceLimits
from change_gate.safety.resource_monitor import ResourceMonitor
from change_gate.safety.sampler import ResourceSampler, directory_size_mb


class FakeProcess:
    def __init__(self, rss: int, cpu: float, children: list[object] | None = None) -> None:
        self._rss = rss
        self._cpu = cpu
        self._children = children or []

    def memory_info(self) -> SimpleNamespace:
        return SimpleNamespace(rss=self._rss)

    def cpu_percent(self, interval: float | None = None) -> float:
        return self._cpu

    def children(self, recursive: bool = False) -> list[object]:
        return list(self._children)


class VanishedProcess:
    def memory_info(self) -> SimpleNamespace:
        raise psutil.NoSuchProcess(pid=999_999)


def _monitor() -> ResourceMonitor:
    return ResourceMonitor(
        ResourceLimits(
            max_memory_mb=64,
            max_cpu_percent=50,
            max_disk_space_mb=1,
            max_api_calls_per_minute=10,
        )
    )


def test_sample_records_into_monitor(tmp_path: Path) -> None:
    (tmp_path / "data.bin").write_bytes(b"x" * (2 * BYTES_PER_MB))
    child = FakeProcess(rss=16 * BYTES_PER_MB, cpu=0.0)
    process = FakeProcess(rss=32 * BYTES_PER_MB, cpu=12.5, children=[child, VanishedProcess()])
    monitor = _monitor()

    sample = ResourceSampler(monitor, workspace=tmp_path, process=process).sample()  # type: ignore[arg-type]

    assert sample.memory_mb == pytest.approx(48.0)
    assert sample.cpu_percent == 12.5
    assert sample.disk_mb == pytest.approx(2.0)
    assert monitor.check_resource_limits().violations == (
        "Disk usage (2MB) exceeds limit (1MB)",
    )


def test_children_can_be_excluded(tmp_path: Path) -> None:
    child = FakeProcess(rss=16 * BYTES_PER_MB, cpu=0.0)
    process = FakeProcess(rss=8 * BYTES_PER_MB, cpu=0.0, children=[child])

    sampler = ResourceSampler(
        _monitor(), workspace=tmp_path, process=process, include_children=False  # type: ignore[arg-type]
    )

    assert sampler.sample().memory_mb == pytest.approx(8.0)


def test_directory_size_counts_nested_regular_files(tmp_path: Path) -> None:
    nested = tmp_path / "a" / "b"
    nested.mkdir(parents=True)
    (tmp_path / "top.txt").write_bytes(b"x" * 1024)
    (nested / "deep.txt").write_bytes(b"x" * 3072)

    assert directory_size_mb(tmp_path) == pytest.approx(4096 / BYTES_PER_MB)


@pytest.mark.skipif(not hasattr(os, "symlink"), reason="symlinks unavailable")
def test_directory_size_ignores_symlinks(tmp_path: Path) -> None:
    outside = tmp_path / "outside"
    outside.mkdir()
    (outside / "big.bin").write_bytes(b"x" * 8192)
    workspace = tmp_path / "workspace"
    workspace.mkdir()
    (workspace / "small.bin").write_bytes(b"x" * 1024)
    try:
        (workspace / "link.bin").symlink_to(outside / "big.bin")
        (workspace / "linkdir").symlink_to(outside, target_is_directory=True)
    except OSError:
        pytest.skip("symlink creation not permitted")

    assert directory_size_mb(workspace) == pytest.approx(1024 / BYTES_PER_MB)


def test_missing_workspace_has_zero_size(tmp_path: Path) -> None:
    assert directory_size_mb(tmp_path / "absent") == 0.0
