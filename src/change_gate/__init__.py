"""
change-gate — safety gate for autonomous code changes.

Package root. A proposed, machine-generated modification is admitted only when it
passes path-level permission checks, size limits, a change-type/risk scope check, and
deep validation (tests, benchmarks, static quality). A companion resource monitor
bounds memory, CPU, disk and API-call consumption across a session.

Importing the package has no side effects (no config loading, no logging setup).
"""

from __future__ import annotations

__version__ = "0.1.0"

__all__ = ["__version__"]
