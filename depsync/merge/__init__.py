"""Configuration merge engine."""

from __future__ import annotations

from .engine import (
    DEFAULT_INTERVAL,
    DEFAULT_LABELS,
    DEFAULT_PR_LIMIT,
    MergeEngine,
    default_rule,
    merge,
)
from .policies import FIELD_POLICIES, MergePolicy, apply_policy, merge_rule, union_in_order

__all__ = [
    "DEFAULT_INTERVAL",
    "DEFAULT_LABELS",
    "DEFAULT_PR_LIMIT",
    "FIELD_POLICIES",
    "MergeEngine",
    "MergePolicy",
    "apply_policy",
    "default_rule",
    "merge",
    "merge_rule",
    "union_in_order",
]
