"""
Filter — Decide whether a remote repository is mirrored at all.

Patterns are compared against the full clone URL, either literally or as
shell-style globs. Exclude always wins over include.
"""

from __future__ import annotations

from fnmatch import fnmatchcase
from typing import Iterable

from ..models.source import Source


def _class_char(pattern: str, i: int) -> int:
    """Index after one character-class member, or -1 if malformed."""
    if i >= len(pattern) or pattern[i] in "-]":
        return -1
    if pattern[i] == "\\":
        i += 1
        if i >= len(pattern):
            return -1
    return i + 1


def is_valid_pattern(pattern: str) -> bool:
    """
    Check glob syntax the strict way.

    fnmatch reads an unclosed ``[`` or a trailing ``\\`` literally; here
    those, and empty or inverted-dash classes, are malformed.
    """
    i, n = 0, len(pattern)
    while i < n:
        c = pattern[i]
        if c == "\\":
            if i + 1 >= n:
                return False
            i += 2
        elif c == "[":
            i += 1
            if i < n and pattern[i] in "!^":
                i += 1
            ranges = 0
            while not (i < n and pattern[i] == "]" and ranges > 0):
                i = _class_char(pattern, i)
                if i < 0:
                    return False
                if i < n and pattern[i] == "-":
                    i = _class_char(pattern, i + 1)
                    if i < 0:
                        return False
                ranges += 1
            i += 1
        else:
            i += 1
    return True


def matches(patterns: Iterable[str], value: str) -> bool:
    """
    True if value equals, or glob-matches, any of the patterns.

    A malformed pattern can still match by equality but never as a glob.
    """
    for pattern in patterns:
        if pattern == value:
            return True
        if is_valid_pattern(pattern) and fnmatchcase(value, pattern):
            return True
    return False


def should_skip(source: Source, remote: str) -> bool:
    """True if the remote URL is filtered out by the source's patterns."""
    if matches(source.exclude, remote):
        return True
    if source.include and not matches(source.include, remote):
        return True
    return False
