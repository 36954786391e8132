"""Tests for per-field merge policies."""

from __future__ import annotations

from dataclasses import fields

from depsync.merge.policies import (
    FIELD_POLICIES,
    MergePolicy,
    apply_policy,
    merge_rule,
    union_in_order,
)
from depsync.models import CommitMessage, GroupConfig, Schedule, UpdateRule


def test_every_rule_field_has_a_policy() -> None:
    assert set(FIELD_POLICIES) == {spec.name for spec in fields(UpdateRule)}


def test_union_in_order_keeps_existing_first_without_duplicates() -> None:
    assert union_in_order(["team", "dependencies"], ["dependencies", "npm"]) == [
        "team",
        "dependencies",
        "npm",
    ]
    assert union_in_order([], []) == []


def test_replace_if_set_ignores_zero_and_empty_template_values() -> None:
    assert apply_policy(MergePolicy.REPLACE_IF_SET, 3, 0) == 3
    assert apply_policy(MergePolicy.REPLACE_IF_SET, 3, 7) == 7
    assert apply_policy(MergePolicy.REPLACE_IF_SET, "increase", "") == "increase"
    assert apply_policy(MergePolicy.REPLACE_IF_SET, "", "widen") == "widen"


def test_fill_if_absent_only_fills_missing_values() -> None:
    existing = CommitMessage(prefix="chore")
    template = CommitMessage(prefix="deps")
    assert apply_policy(MergePolicy.FILL_IF_ABSENT, existing, template) == existing
    assert apply_policy(MergePolicy.FILL_IF_ABSENT, None, template) == template


def test_deep_merge_lets_template_groups_win_per_name() -> None:
    existing = {"dev": GroupConfig(patterns=["eslint*"]), "local": GroupConfig(patterns=["x"])}
    template = {"dev": GroupConfig(patterns=["*"], dependency_type="development")}

    merged = apply_policy(MergePolicy.DEEP_MERGE, existing, template)

    assert merged["dev"] == GroupConfig(patterns=["*"], dependency_type="development")
    assert merged["local"] == GroupConfig(patterns=["x"])
    assert existing["dev"].patterns == ["eslint*"]


def test_apply_policy_returns_independent_copies() -> None:
    template = Schedule(interval="weekly")
    chosen = apply_policy(MergePolicy.REPLACE, Schedule(interval="daily"), template)
    chosen.interval = "monthly"
    assert template.interval == "weekly"


def test_merge_rule_applies_field_policies() -> None:
    existing = UpdateRule(
        package_ecosystem="npm",
        directory="/web",
        schedule=Schedule(interval="daily"),
        open_pull_requests_limit=3,
        labels=["team-web"],
        reviewers=["alice"],
        milestone=4,
        target_branch="develop",
        versioning_strategy="increase",
    )
    template = UpdateRule(
        package_ecosystem="npm",
        directory="/",
        schedule=Schedule(interval="weekly", day="monday"),
        open_pull_requests_limit=0,
        labels=["dependencies"],
        reviewers=["alice", "bob"],
        milestone=9,
        target_branch="main",
        commit_message=CommitMessage(prefix="deps"),
    )

    merged = merge_rule(existing, template)

    assert merged.package_ecosystem == "npm"
    assert merged.directory == "/web"
    assert merged.schedule == Schedule(interval="weekly", day="monday")
    assert merged.open_pull_requests_limit == 3
    assert merged.labels == ["team-web", "dependencies"]
    assert merged.reviewers == ["alice", "bob"]
    assert merged.milestone == 4
    assert merged.target_branch == "develop"
    assert merged.versioning_strategy == "increase"
    assert merged.commit_message == CommitMessage(prefix="deps")


def test_merge_rule_does_not_mutate_inputs() -> None:
    existing = UpdateRule(package_ecosystem="pip", labels=["a"])
    template = UpdateRule(package_ecosystem="pip", labels=["b"])

    merge_rule(existing, template)

    assert existing.labels == ["a"]
    assert template.labels == ["b"]
