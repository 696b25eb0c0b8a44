"""Process resource sampling with ``psutil``."""

from __future__ import annotations

import os
import stat
from dataclasses import dataclass
from pathlib import Path

import psutil

from change_gate.constants import BYTES_PER_MB
from change_gate.safety.resource_monitor import ResourceMonitor


@dataclass(frozen=True, slots=True)
class ResourceSample:
    memory_mb: float
    cpu_percent: float
    disk_mb: float


class ResourceSampler:
    """Measure the session process tree and feed the readings into a monitor.

    Memory is resident set size, summed over child processes when requested. CPU is
    the process CPU percentage since the previous sample (the first sample reads 0).
    Disk is the on-disk size of the workspace directory.
    """

    def __init__(
        self,
        monitor: ResourceMonitor,
        *,
        workspace: Path | str,
        process: psutil.Process | None = None,
        include_children: bool = True,
    ) -> None:
        self._monitor = monitor
        self._workspace = Path(workspace).resolve(strict=False)
        self._process = process if process is not None else psutil.Process()
        self._include_children = include_children

    def sample(self) -> ResourceSample:
        reading = ResourceSample(
            memory_mb=self._memory_mb(),
            cpu_percent=float(self._process.cpu_percent(interval=None)),
            disk_mb=directory_size_mb(self._workspace),
        )
        self._monitor.record_memory_usage(reading.memory_mb)
        self._monitor.record_cpu_usage(reading.cpu_percent)
        self._monitor.record_disk_usage(reading.disk_mb)
        return reading

    def _memory_mb(self) -> float:
        rss = int(self._process.memory_info().rss)
        if self._include_children:
            for child in self._process.children(recursive=True):
                try:
                    rss += int(child.memory_info().rss)
                except psutil.Error:
                    # Children may exit between listing and reading.
                    continue
        return rss / BYTES_PER_MB


def directory_size_mb(root: Path | str) -> float:
    """Total size of regular files below ``root`` in MB; symlinks are not followed."""

    total = 0
    for current, _dirs, files in os.walk(root, followlinks=False):
        for name in files:
            try:
                info = os.lstat(os.path.join(current, name))
            except OSError:
                continue
            if stat.S_ISREG(info.st_mode):
                total += info.st_size
    return total / BYTES_PER_MB


__all__ = ["ResourceSample", "ResourceSampler", "directory_size_mb"]
