"""Per-field merge policies applied when reconciling a rule with its template."""

from __future__ import annotations

import copy
from dataclasses import fields
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping

from ..models import UpdateRule


class MergePolicy(str, Enum):
    """How a single field of an existing rule combines with the template value."""

    PRESERVE = "preserve"
    MERGE = "merge"
    REPLACE = "replace"
    REPLACE_IF_SET = "replace-if-set"
    DEEP_MERGE = "deep-merge"
    FILL_IF_ABSENT = "fill-if-absent"


FIELD_POLICIES: Mapping[str, MergePolicy] = MappingProxyType(
    {
        "package_ecosystem": MergePolicy.PRESERVE,
        "directory": MergePolicy.PRESERVE,
        "schedule": MergePolicy.REPLACE,
        "open_pull_requests_limit": MergePolicy.REPLACE_IF_SET,
        "labels": MergePolicy.MERGE,
        "reviewers": MergePolicy.MERGE,
        "assignees": MergePolicy.MERGE,
        "milestone": MergePolicy.PRESERVE,
        "groups": MergePolicy.DEEP_MERGE,
        "versioning_strategy": MergePolicy.REPLACE_IF_SET,
        "commit_message": MergePolicy.FILL_IF_ABSENT,
        "target_branch": MergePolicy.PRESERVE,
        "vendor": MergePolicy.PRESERVE,
        "insecure_external_code_execution": MergePolicy.PRESERVE,
        "rebase_strategy": MergePolicy.PRESERVE,
        "ignore": MergePolicy.PRESERVE,
        "allow": MergePolicy.PRESERVE,
        "registries": MergePolicy.PRESERVE,
    }
)


def union_in_order(existing: Iterable[str], template: Iterable[str]) -> List[str]:
    """Existing items first, then unseen template items, without duplicates."""
    seen: set[str] = set()
    result: List[str] = []
    for item in (*existing, *template):
        if item not in seen:
            seen.add(item)
            result.append(item)
    return result


def _is_set(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, int) and not isinstance(value, bool):
        return value > 0
    if isinstance(value, str):
        return bool(value)
    return True


def apply_policy(policy: MergePolicy, existing: Any, template: Any) -> Any:
    """Return the merged value of one field. Inputs are never mutated."""
    if policy is MergePolicy.PRESERVE:
        chosen = existing
    elif policy is MergePolicy.REPLACE:
        chosen = template
    elif policy is MergePolicy.REPLACE_IF_SET:
        chosen = template if _is_set(template) else existing
    elif policy is MergePolicy.FILL_IF_ABSENT:
        chosen = existing if existing is not None else template
    elif policy is MergePolicy.MERGE:
        return union_in_order(existing or [], template or [])
    elif policy is MergePolicy.DEEP_MERGE:
        merged: Dict[str, Any] = copy.deepcopy(dict(existing or {}))
        merged.update(copy.deepcopy(dict(template or {})))
        return merged
    else:  # pragma: no cover - enum is exhaustive
        raise ValueError(f"Unknown merge policy: {policy}")
    return copy.deepcopy(chosen)


def merge_rule(existing: UpdateRule, template: UpdateRule) -> UpdateRule:
    """Combine an existing rule with one template rule, field by field."""
    values = {
        spec.name: apply_policy(
            FIELD_POLICIES[spec.name],
            getattr(existing, spec.name),
            getattr(template, spec.name),
        )
        for spec in fields(UpdateRule)
    }
    return UpdateRule(**values)


__all__ = [
    "FIELD_POLICIES",
    "MergePolicy",
    "apply_policy",
    "merge_rule",
    "union_in_order",
]
