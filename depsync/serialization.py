"""YAML wire format for ``dependabot.yml`` documents."""

from __future__ import annotations

import re
from typing import Any, Dict, Optional

import yaml

from .models import (
    ROOT_DIRECTORY,
    AllowCondition,
    CommitMessage,
    DependabotConfig,
    GroupConfig,
    IgnoreCondition,
    Schedule,
    UpdateRule,
)
from .utils import as_bool, as_dict, as_dict_list, as_int, as_str, as_str_list

_YAML11_ONLY_TAGS = frozenset(
    {
        "tag:yaml.org,2002:bool",
        "tag:yaml.org,2002:int",
        "tag:yaml.org,2002:float",
        "tag:yaml.org,2002:timestamp",
    }
)


class ConfigParseFailed(RuntimeError):
    """Raised when an existing Dependabot document cannot be parsed."""


class DependabotLoader(yaml.SafeLoader):
    """SafeLoader limited to YAML 1.2 core-schema scalars.

    GitHub reads dependabot.yml as YAML 1.2: ``time: 10:30`` is a string and
    ``on``/``yes`` are plain words. Only ``true``/``false`` and decimal or hex
    integers resolve to non-string types here; everything else stays text.
    """


DependabotLoader.yaml_implicit_resolvers = {
    first: [(tag, regexp) for tag, regexp in resolvers if tag not in _YAML11_ONLY_TAGS]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}
DependabotLoader.add_implicit_resolver(
    "tag:yaml.org,2002:bool",
    re.compile(r"^(?:true|True|TRUE|false|False|FALSE)$"),
    list("tTfF"),
)
DependabotLoader.add_implicit_resolver(
    "tag:yaml.org,2002:int",
    re.compile(r"^(?:[-+]?(?:0|[1-9][0-9]*)|0x[0-9a-fA-F]+)$"),
    list("-+0123456789"),
)


def parse_config(text: str) -> Optional[DependabotConfig]:
    """Parse YAML text into a document, returning None for an empty file."""
    try:
        data = yaml.load(text, Loader=DependabotLoader)
    except yaml.YAMLError as exc:
        raise ConfigParseFailed(f"Invalid YAML in Dependabot config: {exc}") from exc
    if data is None:
        return None
    if not isinstance(data, dict):
        raise ConfigParseFailed("Dependabot config must contain a mapping at the root")
    return config_from_dict(data)


def dump_config(config: DependabotConfig, indent: int = 2) -> str:
    """Render a document as YAML with Dependabot key names."""
    return yaml.safe_dump(
        config_to_dict(config),
        indent=indent,
        sort_keys=False,
        default_flow_style=False,
        allow_unicode=True,
    )


def config_from_dict(data: Dict[str, Any]) -> DependabotConfig:
    version = as_int(data.get("version"))
    updates = [_update_from_dict(item) for item in as_dict_list(data.get("updates"))]
    return DependabotConfig(version=version if version is not None else 0, updates=updates)


def config_to_dict(config: DependabotConfig) -> Dict[str, Any]:
    return {
        "version": config.version,
        "updates": [_update_to_dict(rule) for rule in config.updates],
    }


def _update_from_dict(data: Dict[str, Any]) -> UpdateRule:
    schedule_data = as_dict(data.get("schedule"))
    commit_data = data.get("commit-message")
    groups: Dict[str, GroupConfig] = {}
    for name, raw in as_dict(data.get("groups")).items():
        group = as_dict(raw)
        groups[str(name)] = GroupConfig(
            dependency_type=as_str(group.get("dependency-type")) or "",
            patterns=as_str_list(group.get("patterns")),
            exclude_patterns=as_str_list(group.get("exclude-patterns")),
            update_types=as_str_list(group.get("update-types")),
        )

    return UpdateRule(
        package_ecosystem=as_str(data.get("package-ecosystem")) or "",
        directory=as_str(data.get("directory")) or ROOT_DIRECTORY,
        schedule=Schedule(
            interval=as_str(schedule_data.get("interval")) or "",
            day=as_str(schedule_data.get("day")) or "",
            time=as_str(schedule_data.get("time")) or "",
            timezone=as_str(schedule_data.get("timezone")) or "",
        ),
        open_pull_requests_limit=as_int(data.get("open-pull-requests-limit")) or 0,
        labels=as_str_list(data.get("labels")),
        reviewers=as_str_list(data.get("reviewers")),
        assignees=as_str_list(data.get("assignees")),
        milestone=as_int(data.get("milestone")) or 0,
        groups=groups,
        versioning_strategy=as_str(data.get("versioning-strategy")) or "",
        commit_message=_commit_message_from(commit_data),
        target_branch=as_str(data.get("target-branch")) or "",
        vendor=as_bool(data.get("vendor")) or False,
        insecure_external_code_execution=as_str_list(
            data.get("insecure-external-code-execution")
        ),
        rebase_strategy=as_str(data.get("rebase-strategy")) or "",
        ignore=[
            IgnoreCondition(
                dependency_name=as_str(item.get("dependency-name")) or "",
                versions=as_str_list(item.get("versions")),
                update_types=as_str_list(item.get("update-types")),
            )
            for item in as_dict_list(data.get("ignore"))
        ],
        allow=[
            AllowCondition(
                dependency_name=as_str(item.get("dependency-name")) or "",
                dependency_type=as_str(item.get("dependency-type")) or "",
            )
            for item in as_dict_list(data.get("allow"))
        ],
        registries=as_str_list(data.get("registries")),
    )


def _commit_message_from(value: Any) -> Optional[CommitMessage]:
    if not isinstance(value, dict):
        return None
    message = CommitMessage(
        prefix=as_str(value.get("prefix")) or "",
        prefix_development=as_str(value.get("prefix-development")) or "",
        include=as_str(value.get("include")) or "",
    )
    # An all-empty block is dropped on dump, so it must read back as absent.
    if not (message.prefix or message.prefix_development or message.include):
        return None
    return message


def _update_to_dict(rule: UpdateRule) -> Dict[str, Any]:
    # Empty optional fields are omitted so rendered files stay minimal.
    data: Dict[str, Any] = {
        "package-ecosystem": rule.package_ecosystem,
        "directory": rule.directory,
        "schedule": _compact(
            {
                "interval": rule.schedule.interval,
                "day": rule.schedule.day,
                "time": rule.schedule.time,
                "timezone": rule.schedule.timezone,
            },
            keep=("interval",),
        ),
    }
    optional: Dict[str, Any] = {
        "open-pull-requests-limit": rule.open_pull_requests_limit,
        "labels": list(rule.labels),
        "reviewers": list(rule.reviewers),
        "assignees": list(rule.assignees),
        "milestone": rule.milestone,
        "groups": {
            name: _compact(
                {
                    "dependency-type": group.dependency_type,
                    "patterns": list(group.patterns),
                    "exclude-patterns": list(group.exclude_patterns),
                    "update-types": list(group.update_types),
                }
            )
            for name, group in sorted(rule.groups.items())
        },
        "versioning-strategy": rule.versioning_strategy,
        "commit-message": (
            _compact(
                {
                    "prefix": rule.commit_message.prefix,
                    "prefix-development": rule.commit_message.prefix_development,
                    "include": rule.commit_message.include,
                }
            )
            if rule.commit_message is not None
            else None
        ),
        "target-branch": rule.target_branch,
        "vendor": rule.vendor,
        "insecure-external-code-execution": list(rule.insecure_external_code_execution),
        "rebase-strategy": rule.rebase_strategy,
        "ignore": [
            _compact(
                {
                    "dependency-name": item.dependency_name,
                    "versions": list(item.versions),
                    "update-types": list(item.update_types),
                }
            )
            for item in rule.ignore
        ],
        "allow": [
            _compact(
                {
                    "dependency-name": item.dependency_name,
                    "dependency-type": item.dependency_type,
                }
            )
            for item in rule.allow
        ],
        "registries": list(rule.registries),
    }
    data.update(_compact(optional))
    return data


def _compact(values: Dict[str, Any], keep: tuple[str, ...] = ()) -> Dict[str, Any]:
    return {
        key: value
        for key, value in values.items()
        if key in keep or not _is_empty(value)
    }


def _is_empty(value: Any) -> bool:
    if value is None or value is False:
        return True
    if isinstance(value, (str, list, dict)) and not value:
        return True
    return isinstance(value, int) and not isinstance(value, bool) and value == 0


__all__ = [
    "ConfigParseFailed",
    "DependabotLoader",
    "config_from_dict",
    "config_to_dict",
    "dump_config",
    "parse_config",
]
