"""Unit tests for glob-style path policy matching."""

from __future__ import annotations

from pathlib import Path

import pytest
from hypothesis import given
from hypothesis import strategies as st

from change_gate.domain.models import FileAccessPolicy, default_constraints
from change_gate.policy.path_matcher import (
    AccessLevel,
    FileAccessMatcher,
    PathPolicyMatcher,
    PatternSet,
    compile_pattern,
    to_relative_path,
)

_SEGMENT = st.text(alphabet="abcdefghijklmnopqrstuvwxyz0123456789_-", min_size=1, max_size=8)
_RELATIVE_PATH = st.lists(_SEGMENT, min_size=1, max_size=5).map("/".join)


@pytest.mark.parametrize(
    ("path", "pattern", "expected"),
    [
        ("src/foo.test.ts", "src/**/*.test.ts", True),
        ("src/a/b/foo.test.ts", "src/**/*.test.ts", True),
        ("src/foo.ts", "src/**/*.test.ts", False),
        ("app.config.js", "*.config.*", True),
        ("nested/app.config.js", "*.config.*", False),
        (".env.local", "*.env*", True),
        ("node_modules/pkg/index.js", "node_modules/**", True),
        ("package.json", "package.json", True),
        ("packagexjson", "package.json", False),
        ("src/foo.ts", "src/*.ts", True),
        ("src/deep/foo.ts", "src/*.ts", False),
        ("a/b/c", "a**c", True),
    ],
)
def test_glob_semantics(path: str, pattern: str, expected: bool) -> None:
    assert PathPolicyMatcher().matches(path, [pattern]) is expected


def test_empty_pattern_list_matches_nothing() -> None:
    assert PathPolicyMatcher().matches("src/a.py", []) is False


def test_regex_metacharacters_are_literal() -> None:
    assert compile_pattern("src/(a)+[b].py").fullmatch("src/(a)+[b].py") is not None
    assert compile_pattern("src/a?.py").fullmatch("src/ab.py") is None


@given(path=_RELATIVE_PATH)
def test_double_star_matches_every_path(path: str) -> None:
    assert PathPolicyMatcher().matches(path, ["**"])


@given(path=_RELATIVE_PATH)
def test_literal_pattern_matches_only_itself(path: str) -> None:
    matcher = PathPolicyMatcher()

    assert matcher.matches(path, [path])
    assert not matcher.matches(path + "x", [path])


@given(parents=st.lists(_SEGMENT, min_size=1, max_size=3), segment=_SEGMENT)
def test_single_star_never_crosses_a_separator(parents: list[str], segment: str) -> None:
    star = compile_pattern("*")

    assert star.fullmatch(segment) is not None
    assert star.fullmatch("/".join([*parents, segment])) is None


def test_pattern_set_reports_first_matching_pattern() -> None:
    patterns = PatternSet.from_patterns(["src/**", "src/**/*.py"])

    assert patterns.first_match("src/a.py") == "src/**"
    assert patterns.first_match("lib/a.py") is None
    assert len(patterns) == 2


def test_prohibited_wins_over_write_allowed() -> None:
    matcher = FileAccessMatcher(default_constraints().file_access)

    assert matcher.classify("packages/evals/src/foo.test.ts") is AccessLevel.PROHIBITED
    assert matcher.is_write_allowed("packages/evals/src/foo.test.ts") is False
    assert matcher.classify("packages/evals/src/foo.ts") is AccessLevel.WRITE
    assert matcher.classify("README.md") is AccessLevel.NONE
    assert matcher.is_readable("README.md") is False


def test_explain_returns_deciding_pattern() -> None:
    matcher = FileAccessMatcher(
        FileAccessPolicy(
            read_only=("docs/**",),
            write_allowed=("src/**/*.py",),
            prohibited=("*.env*",),
        )
    )

    assert matcher.explain("docs/index.md") == (AccessLevel.READ_ONLY, "docs/**")
    assert matcher.explain("src/app/core.py") == (AccessLevel.WRITE, "src/**/*.py")
    assert matcher.explain(".env") == (AccessLevel.PROHIBITED, "*.env*")
    assert matcher.explain("setup.cfg") == (AccessLevel.NONE, None)


def test_to_relative_path_handles_absolute_and_relative_inputs(tmp_path: Path) -> None:
    root = tmp_path / "project"

    assert to_relative_path(root / "src" / "a.py", root) == "src/a.py"
    assert to_relative_path("src/./b.py", root) == "src/b.py"
    assert to_relative_path(tmp_path / "other.py", root) == "../other.py"
