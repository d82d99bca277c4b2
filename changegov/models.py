"""Data models for change descriptions and their classification."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Literal


class CommitType(str, Enum):
    """Closed set of commit types shared with downstream automation."""

    FIX = "fix"
    FEAT = "feat"
    DOCS = "docs"
    STYLE = "style"
    REFACTOR = "refactor"
    TEST = "test"
    CHORE = "chore"
    BUILD = "build"
    CI = "ci"
    PERF = "perf"


BumpKind = Literal["major", "minor", "patch"]


@dataclass(frozen=True)
class ChangeDescriptor:
    """A caller's description of one change.

    Only `summary` is required. `commit_type` is the caller's answer when the
    rule table cannot decide (or decides wrongly); `target_version` forces the
    resulting version instead of the computed bump.
    """

    summary: str
    scope: str | None = None
    breaking: bool = False
    target_version: str | None = None

    commit_type: CommitType | None = None
    subject: str | None = None  # explicit subject text, otherwise derived
    body: str | None = None  # free text, wrapped at 72 columns
    issues: tuple[str, ...] = field(default_factory=tuple)
    breaking_note: str | None = None  # BREAKING CHANGE footer text

    def __post_init__(self) -> None:
        if not self.summary or not self.summary.strip():
            raise ValueError("summary must be a non-empty string")
        if isinstance(self.commit_type, str) and not isinstance(self.commit_type, CommitType):
            object.__setattr__(self, "commit_type", CommitType(self.commit_type))
        if not isinstance(self.issues, tuple):
            object.__setattr__(self, "issues", tuple(self.issues))


@dataclass(frozen=True)
class Classification:
    """The (commit type, breaking) pair assigned to a change."""

    commit_type: CommitType
    breaking: bool = False
    rule_id: str | None = None  # which rule matched, None for explicit types

    def __str__(self) -> str:
        return f"{self.commit_type.value}{'!' if self.breaking else ''}"

    def to_dict(self) -> dict:
        return {
            "type": self.commit_type.value,
            "breaking": self.breaking,
            "rule_id": self.rule_id,
        }
