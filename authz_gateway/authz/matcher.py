# Copyright 2026 The OpenChoreo Authors
# SPDX-License-Identifier: Apache-2.0

"""Path and method pattern matching for resource-map keys.

Patterns look like ``[/api/v1/things/*]`` or ``[/api/**:POST]``. The brackets
are optional. A trailing ``:METHOD`` restricts the pattern to one HTTP method.

Every successful match carries a specificity score so the best rule can be
picked when several patterns match the same path:

* exact string match: ``EXACT_MATCH_BONUS + len(path)``
* literal segment: ``LITERAL_SEGMENT`` per segment
* ``*`` (exactly one segment): ``SINGLE_WILDCARD``
* ``**`` (all remaining segments): ``RECURSIVE_WILDCARD``, ends matching
"""

from collections.abc import Callable, Iterable
from typing import NamedTuple

from authz_gateway.authz.errors import AmbiguousRuleError

EXACT_MATCH_BONUS = 1000
LITERAL_SEGMENT = 10
SINGLE_WILDCARD = 2
RECURSIVE_WILDCARD = 1


class PatternMethod(NamedTuple):
    pattern: str
    method: str | None


def normalize_pattern(raw: str) -> str:
    s = raw.strip()
    if s.startswith("[") and s.endswith("]"):
        s = s[1:-1]
    return s


def split_method(pattern: str) -> PatternMethod:
    path, sep, method = pattern.rpartition(":")
    if not sep or "/" in method:
        return PatternMethod(pattern, None)
    return PatternMethod(path, method.strip().upper())


def match(pattern: str, path: str) -> tuple[bool, int]:
    if pattern == path:
        return True, EXACT_MATCH_BONUS + len(path)

    pattern_segments = pattern.removeprefix("/").split("/")
    path_segments = path.removeprefix("/").split("/")

    specificity = 0
    j = 0
    for segment in pattern_segments:
        if segment == "**":
            return True, specificity + RECURSIVE_WILDCARD
        if j >= len(path_segments):
            return False, 0
        if segment == "*":
            specificity += SINGLE_WILDCARD
        elif segment == path_segments[j]:
            specificity += LITERAL_SEGMENT
        else:
            return False, 0
        j += 1

    if j != len(path_segments):
        return False, 0
    return True, specificity


def match_with_method(pattern: str, method: str, path: str) -> tuple[bool, int]:
    """Match a raw resource-map key against a request method and path."""
    split = split_method(normalize_pattern(pattern))
    if split.method is not None and split.method != method.upper():
        return False, 0
    return match(split.pattern, path)


def select_best(
    patterns: Iterable[str],
    path: str,
    matcher: Callable[[str], tuple[bool, int]],
) -> str | None:
    """Return the single pattern with the greatest specificity, or None.

    Raises AmbiguousRuleError when more than one pattern shares the top score.
    """
    best: list[str] = []
    best_specificity = -1
    for pattern in patterns:
        matched, specificity = matcher(pattern)
        if not matched:
            continue
        if specificity > best_specificity:
            best = [pattern]
            best_specificity = specificity
        elif specificity == best_specificity:
            best.append(pattern)

    if not best:
        return None
    if len(best) > 1:
        raise AmbiguousRuleError(path, best, best_specificity)
    return best[0]
