from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from ..models import CommitType


@dataclass(frozen=True)
class Predicate:
    name: str
    params: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class RuleDef:
    id: str
    commit_type: CommitType
    predicate: Predicate
    breaking: bool = False
    description: str | None = None


@dataclass(frozen=True)
class RulesetDef:
    ruleset_id: str
    version: int
    description: str | None = None
    rules: tuple[RuleDef, ...] = field(default_factory=tuple)
