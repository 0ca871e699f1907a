"""Glob pattern matching for content group include/exclude lists.

Patterns are matched against slash separated paths relative to a group's
source folder:

- ``**`` matches zero or more directories, or anything when it ends the pattern
- ``*`` matches any run of characters within one path segment
- ``?`` matches a single character within one path segment
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from functools import lru_cache


@lru_cache(maxsize=256)
def glob_to_regex(pattern: str) -> re.Pattern[str]:
    """Compile a glob pattern into an anchored regular expression."""
    segments = [s for s in pattern.replace("\\", "/").strip("/").split("/") if s not in ("", ".")]
    if not segments:
        return re.compile(r"\A\Z")

    parts: list[str] = []
    last = len(segments) - 1
    for idx, segment in enumerate(segments):
        if segment == "**":
            # trailing ** matches every remaining path, leading/middle ones any directory depth
            parts.append(".*" if idx == last else "(?:[^/]+/)*")
            continue
        regex = ""
        for ch in segment:
            if ch == "*":
                regex += "[^/]*"
            elif ch == "?":
                regex += "[^/]"
            else:
                regex += re.escape(ch)
        parts.append(regex if idx == last else regex + "/")

    return re.compile(r"\A" + "".join(parts) + r"\Z")


def matches_any(relative_path: str, patterns: Iterable[str]) -> bool:
    return any(glob_to_regex(p).match(relative_path) for p in patterns)


def is_selected(relative_path: str, includes: Iterable[str], excludes: Iterable[str] = ()) -> bool:
    """True when the path matches an include pattern and no exclude pattern."""
    return matches_any(relative_path, includes) and not matches_any(relative_path, excludes)


__all__ = ["glob_to_regex", "is_selected", "matches_any"]
