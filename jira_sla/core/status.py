"""Workflow label normalization and classification utilities.

All label comparisons are case-insensitive and whitespace tolerant. The label
sets themselves live in config.py (INTAKE_STATUS, ACTIVE_STATUSES,
DONE_STATUS, PAUSE_STATUSES, DEPENDENCY_TOKENS, PAUSE_DEPENDENCIES).
"""

from __future__ import annotations

from collections.abc import Iterable

from .config import (
    ACTIVE_STATUSES,
    CAUSAL_LINK_FIELD,
    CAUSAL_LINK_MARKER,
    DEPENDENCY_TOKENS,
    DONE_STATUS,
    INTAKE_STATUS,
    PAUSE_DEPENDENCIES,
    PAUSE_STATUSES,
    REJECTED_STATUS,
)


def _fold(value: str | None) -> str:
    if not value:
        return ""
    return " ".join(str(value).split()).casefold()


def _folded_set(values: Iterable[str]) -> frozenset[str]:
    return frozenset(_fold(v) for v in values)


ACTIVE_STATUSES_FOLDED = _folded_set(ACTIVE_STATUSES)
PAUSE_STATUSES_FOLDED = _folded_set(PAUSE_STATUSES)
DEPENDENCY_TOKENS_FOLDED = _folded_set(DEPENDENCY_TOKENS)
PAUSE_DEPENDENCIES_FOLDED = _folded_set(PAUSE_DEPENDENCIES)


def same_label(a: str | None, b: str | None) -> bool:
    return bool(a) and _fold(a) == _fold(b)


def is_intake_status(value: str | None) -> bool:
    return same_label(value, INTAKE_STATUS)


def is_active_status(value: str | None) -> bool:
    return _fold(value) in ACTIVE_STATUSES_FOLDED


def is_done_status(value: str | None) -> bool:
    return same_label(value, DONE_STATUS)


def is_rejected_status(value: str | None) -> bool:
    return same_label(value, REJECTED_STATUS)


def is_pause_status(value: str | None) -> bool:
    return _fold(value) in PAUSE_STATUSES_FOLDED


def is_dependency_token(value: str | None) -> bool:
    return _fold(value) in DEPENDENCY_TOKENS_FOLDED


def is_pause_dependency(value: str | None) -> bool:
    return _fold(value) in PAUSE_DEPENDENCIES_FOLDED


def is_paused(status: str | None, dependency: str | None) -> bool:
    """True when either the status or the dependency label suspends the clock."""
    return is_pause_status(status) or is_pause_dependency(dependency)


def is_causal_link(field_name: str | None, value: str | None) -> bool:
    """Check whether a changelog item records the creation of a causal link.

    Examples
    --------
    >>> is_causal_link("Link", "This issue is caused by OPS-12")
    True
    >>> is_causal_link("Link", "This issue relates to OPS-12")
    False
    """
    if _fold(field_name) != CAUSAL_LINK_FIELD:
        return False
    return CAUSAL_LINK_MARKER in _fold(value)
