"""Validation of user-supplied review inputs."""

import fnmatch
from pathlib import PurePosixPath

from .config import DIFF_MODES, MAX_COMMIT_LIMIT, REASONING_EFFORTS, _parse_list_env
from .diff_types import SEVERITY_ORDER


def is_valid_diff_mode(mode: str) -> bool:
    return mode in DIFF_MODES


def is_valid_severity_level(severity: str) -> bool:
    return severity in SEVERITY_ORDER


def is_valid_reasoning_effort(effort: str) -> bool:
    return effort in REASONING_EFFORTS


def _to_int(value: str | int) -> int | None:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def is_valid_token_limit(limit: str | int) -> bool:
    num = _to_int(limit)
    return num is not None and num > 0


def is_valid_commit_limit(limit: str | int) -> bool:
    num = _to_int(limit)
    return num is not None and 0 < num <= MAX_COMMIT_LIMIT


def parse_exclude_patterns(value: str | None) -> list[str]:
    """Split a comma-separated pattern list, dropping blanks."""
    return _parse_list_env(value)


def is_valid_exclude_patterns(value: str) -> bool:
    """Accept repo-relative glob patterns only.

    Absolute paths and patterns climbing out of the repo with ".." are
    rejected. An empty string means no exclusions.
    """
    for pattern in parse_exclude_patterns(value):
        if pattern.startswith("/") or ".." in PurePosixPath(pattern).parts:
            return False
    return True


def _globstar_variants(pattern: str) -> set[str]:
    """Spell out each "**/" as either kept or matching zero directories."""
    index = pattern.find("**/")
    if index == -1:
        return {pattern}
    head, tail = pattern[:index], pattern[index + 3:]
    variants = set()
    for rest in _globstar_variants(tail):
        variants.add(head + "**/" + rest)
        variants.add(head + rest)
    return variants


def _matches(filename: str, pattern: str) -> bool:
    return any(fnmatch.fnmatch(filename, variant) for variant in _globstar_variants(pattern))


def is_excluded(filename: str, patterns: list[str]) -> bool:
    """Check if a changed file matches any exclude pattern."""
    return any(_matches(filename, pattern) for pattern in patterns)
