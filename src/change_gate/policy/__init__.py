"""Path policy matching."""

from change_gate.policy.path_matcher import (
    AccessLevel,
    FileAccessMatcher,
    PathPolicyMatcher,
    PatternSet,
    compile_pattern,
    to_relative_path,
)

__all__ = [
    "AccessLevel",
    "FileAccessMatcher",
    "PathPolicyMatcher",
    "PatternSet",
    "compile_pattern",
    "to_relative_path",
]
