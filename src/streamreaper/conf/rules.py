from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True, slots=True)
class ResourceValue:
    name: str | None
    tags: dict[str, str] | None = None


def _compile(pattern: str) -> re.Pattern[str]:
    try:
        return re.compile(pattern)
    except re.error as e:
        raise ValueError(f"Invalid regex {pattern!r}: {e}") from e


@dataclass(frozen=True, slots=True)
class FilterRule:
    names_regex: tuple[re.Pattern[str], ...] = ()
    tags: dict[str, re.Pattern[str]] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None) -> FilterRule:
        data = data or {}
        names = [_compile(str(p)) for p in (data.get("names_regex") or [])]
        tags = {str(k): _compile(str(v)) for k, v in (data.get("tags") or {}).items()}
        return cls(names_regex=tuple(names), tags=tags)

    def matches_name(self, name: str | None) -> bool:
        if name is None:
            return False
        return any(p.search(name) for p in self.names_regex)

    def matches_tags(self, tags: Mapping[str, str] | None) -> bool:
        if not tags:
            return False
        return any(key in tags and p.search(tags[key]) for key, p in self.tags.items())


@dataclass(frozen=True, slots=True)
class ResourceRules:
    """Include/exclude rules evaluated once per discovered resource.

    Exclusions win over inclusions. An empty include rule means "everything".
    """

    include: FilterRule = field(default_factory=FilterRule)
    exclude: FilterRule = field(default_factory=FilterRule)

    @classmethod
    def from_config(cls, section: Any) -> ResourceRules:
        if section is None:
            return cls()
        data = section.to_dict() if hasattr(section, "to_dict") else dict(section)
        return cls(
            include=FilterRule.from_mapping(data.get("include")),
            exclude=FilterRule.from_mapping(data.get("exclude")),
        )

    @property
    def uses_tags(self) -> bool:
        return bool(self.include.tags or self.exclude.tags)

    def should_include(self, value: ResourceValue) -> bool:
        if self.exclude.matches_name(value.name):
            return False
        if self.exclude.matches_tags(value.tags):
            return False
        if self.include.names_regex and not self.include.matches_name(value.name):
            return False
        if self.include.tags and not self.include.matches_tags(value.tags):
            return False
        return True
