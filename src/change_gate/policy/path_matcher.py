"""
Glob-style path policy matching.

Patterns are matched against project-relative POSIX paths:

- ``**/`` matches zero or more whole directories,
- any other ``**`` matches any characters, separators included,
- ``*`` matches any characters except ``/``,
- every other character is literal.

Matching is anchored and purely lexical: no case folding, no symlink resolution.
"""

from __future__ import annotations

import os
import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from enum import StrEnum
from functools import lru_cache
from pathlib import Path

from change_gate.domain.models import FileAccessPolicy


class AccessLevel(StrEnum):
    """Effective access for one path, strongest rule first."""

    PROHIBITED = "prohibited"
    WRITE = "write"
    READ_ONLY = "read_only"
    NONE = "none"


def compile_pattern(pattern: str) -> re.Pattern[str]:
    """Translate one glob pattern into an anchored regular expression."""

    return _compile_cached(pattern)


@lru_cache(maxsize=1024)
def _compile_cached(pattern: str) -> re.Pattern[str]:
    tokens: list[str] = []
    index = 0
    length = len(pattern)
    while index < length:
        if pattern.startswith("**/", index):
            tokens.append("(?:.*/)?")
            index += 3
        elif pattern.startswith("**", index):
            tokens.append(".*")
            index += 2
        elif pattern[index] == "*":
            tokens.append("[^/]*")
            index += 1
        else:
            tokens.append(re.escape(pattern[index]))
            index += 1
    return re.compile("".join(tokens), re.DOTALL)


@dataclass(frozen=True, slots=True)
class PatternSet:
    """An ordered, precompiled group of glob patterns."""

    patterns: tuple[str, ...]
    _compiled: tuple[re.Pattern[str], ...]

    @classmethod
    def from_patterns(cls, patterns: Iterable[str]) -> PatternSet:
        ordered = tuple(patterns)
        return cls(patterns=ordered, _compiled=tuple(compile_pattern(item) for item in ordered))

    def first_match(self, relative_path: str) -> str | None:
        """Return the first pattern that fully matches ``relative_path``."""

        for pattern, compiled in zip(self.patterns, self._compiled, strict=True):
            if compiled.fullmatch(relative_path) is not None:
                return pattern
        return None

    def matches(self, relative_path: str) -> bool:
        return self.first_match(relative_path) is not None

    def __len__(self) -> int:
        return len(self.patterns)


class PathPolicyMatcher:
    """Stateless path-versus-pattern-set matching."""

    def matches(self, relative_path: str, patterns: Sequence[str]) -> bool:
        """True iff ``relative_path`` fully matches at least one pattern."""

        return any(compile_pattern(item).fullmatch(relative_path) for item in patterns)


class FileAccessMatcher:
    """File-access policy compiled once per constraints load."""

    __slots__ = ("_prohibited", "_read_only", "_write_allowed")

    def __init__(self, policy: FileAccessPolicy) -> None:
        self._prohibited = PatternSet.from_patterns(policy.prohibited)
        self._write_allowed = PatternSet.from_patterns(policy.write_allowed)
        self._read_only = PatternSet.from_patterns(policy.read_only)

    def is_prohibited(self, relative_path: str) -> bool:
        return self._prohibited.matches(relative_path)

    def is_write_allowed(self, relative_path: str) -> bool:
        """Writable means matched by ``write_allowed`` and not prohibited."""

        return not self.is_prohibited(relative_path) and self._write_allowed.matches(
            relative_path
        )

    def is_readable(self, relative_path: str) -> bool:
        return self.classify(relative_path) in {AccessLevel.WRITE, AccessLevel.READ_ONLY}

    def classify(self, relative_path: str) -> AccessLevel:
        if self._prohibited.matches(relative_path):
            return AccessLevel.PROHIBITED
        if self._write_allowed.matches(relative_path):
            return AccessLevel.WRITE
        if self._read_only.matches(relative_path):
            return AccessLevel.READ_ONLY
        return AccessLevel.NONE

    def explain(self, relative_path: str) -> tuple[AccessLevel, str | None]:
        """Return the access level together with the pattern that decided it."""

        for level, patterns in (
            (AccessLevel.PROHIBITED, self._prohibited),
            (AccessLevel.WRITE, self._write_allowed),
            (AccessLevel.READ_ONLY, self._read_only),
        ):
            matched = patterns.first_match(relative_path)
            if matched is not None:
                return level, matched
        return AccessLevel.NONE, None


def to_relative_path(path: str | os.PathLike[str], project_root: Path) -> str:
    """Express ``path`` relative to ``project_root`` with ``/`` separators.

    Relative inputs are taken as already relative to the project root. The result may
    start with ``..`` when the path lies outside the root; such paths match no pattern
    that does not itself start with ``..``.
    """

    candidate = Path(path)
    if not candidate.is_absolute():
        candidate = project_root / candidate
    relative = os.path.relpath(os.path.normpath(candidate), os.path.normpath(project_root))
    return Path(relative).as_posix()


__all__ = [
    "AccessLevel",
    "FileAccessMatcher",
    "PathPolicyMatcher",
    "PatternSet",
    "compile_pattern",
    "to_relative_path",
]
