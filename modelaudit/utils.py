"""
modelaudit - Utility Functions & Helpers
========================================
Name inflection used to derive default table names, and the run counters
the CLI reports once validation finishes.
"""

from __future__ import annotations

import functools
import re
import time
from dataclasses import dataclass, field
from typing import Dict, List, Optional

_CAMEL_TO_SNAKE_RE1: re.Pattern[str] = re.compile(r"([A-Z]+)([A-Z][a-z])")
_CAMEL_TO_SNAKE_RE2: re.Pattern[str] = re.compile(r"([a-z0-9])([A-Z])")
_NON_ALPHANUM_RE: re.Pattern[str] = re.compile(r"[^a-zA-Z0-9]")
_MULTI_UNDERSCORE_RE: re.Pattern[str] = re.compile(r"_{2,}")
_LEADING_TRAILING_UNDERSCORE_RE: re.Pattern[str] = re.compile(r"^_+|_+$")

_IRREGULAR_PLURALS: Dict[str, str] = {
    "person": "people",
    "child": "children",
    "man": "men",
    "woman": "women",
    "mouse": "mice",
    "datum": "data",
    "index": "indices",
    "status": "statuses",
    "address": "addresses",
    "analysis": "analyses",
}


@functools.lru_cache(maxsize=None)
def to_snake_case(name: str) -> str:
    """
    Convert any string to snake_case.

    Examples:
        >>> to_snake_case("OrderLine")
        'order_line'
        >>> to_snake_case("HTTPRequestLog")
        'http_request_log'
    """
    if not name:
        return ""
    s: str = _CAMEL_TO_SNAKE_RE1.sub(r"\1_\2", name)
    s = _CAMEL_TO_SNAKE_RE2.sub(r"\1_\2", s)
    s = _NON_ALPHANUM_RE.sub("_", s)
    s = _MULTI_UNDERSCORE_RE.sub("_", s)
    s = _LEADING_TRAILING_UNDERSCORE_RE.sub("", s)
    return s.lower()


@functools.lru_cache(maxsize=None)
def to_plural(name: str) -> str:
    """
    Naive English pluralisation, enough for conventional table names.

    Only the last ``_``-separated word is inflected: ``order_line`` ->
    ``order_lines``. Words ending in ``-us`` and ``-is`` are singular
    (``bus`` -> ``buses``, ``axis`` -> ``axes``); any other word ending in a
    single ``s`` is taken as already plural, so ``news`` stays ``news``.
    """
    if not name:
        return ""

    head, sep, word = name.rpartition("_")
    lower: str = word.lower()

    if lower in _IRREGULAR_PLURALS:
        return head + sep + _IRREGULAR_PLURALS[lower]
    if lower.endswith("is") and len(word) > 2:
        return name[:-2] + "es"
    if lower.endswith(("sh", "ch", "x", "z", "ss", "us")):
        return name + "es"
    if lower.endswith("s"):
        return name
    if lower.endswith("y") and len(word) > 1 and lower[-2] not in "aeiou":
        return name[:-1] + "ies"
    return name + "s"


def default_table_name(class_name: str) -> str:
    """``OrderLine`` -> ``order_lines``."""
    return to_plural(to_snake_case(class_name))


@dataclass
class RunStats:
    """
    Model and issue counts for one CLI run, plus its wall time.

    The clock starts when the instance is created; ``stop`` freezes it.
    """

    models: int = 0
    issues: int = 0
    started: float = field(default_factory=time.perf_counter)
    finished: Optional[float] = None

    def record(self, issue_count: int) -> None:
        self.models += 1
        self.issues += issue_count

    def stop(self) -> "RunStats":
        if self.finished is None:
            self.finished = time.perf_counter()
        return self

    @property
    def elapsed(self) -> float:
        end: float = self.finished if self.finished is not None else time.perf_counter()
        return end - self.started

    def summary(self) -> str:
        return f"Checked {self.models} model(s) in {self.elapsed:.3f}s, {self.issues} issue(s)."


__all__: List[str] = ["to_snake_case", "to_plural", "default_table_name", "RunStats"]
