"""
Semantic version transitions.

A transition raises exactly one component and zeroes everything to its
right. Nothing here has side effects, so decisions can be computed
speculatively (dry runs) before anything is recorded.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from .errors import InvalidVersion
from .models import BumpKind, Classification, CommitType

logger = logging.getLogger(__name__)

_VERSION_RE = re.compile(r"^v?(\d+)\.(\d+)\.(\d+)$")

# Index of the component each bump kind raises.
_BUMP_INDEX: dict[str, int] = {"major": 0, "minor": 1, "patch": 2}


@dataclass(frozen=True, order=True)
class Version:
    major: int
    minor: int
    patch: int

    def __post_init__(self) -> None:
        for part in (self.major, self.minor, self.patch):
            if not isinstance(part, int) or isinstance(part, bool) or part < 0:
                raise InvalidVersion((self.major, self.minor, self.patch), "components must be non-negative integers")

    @classmethod
    def parse(cls, text: str) -> Version:
        """Parse `MAJOR.MINOR.PATCH` (a single leading `v` is tolerated)."""
        if not isinstance(text, str):
            raise InvalidVersion(text, "expected a string")
        match = _VERSION_RE.match(text.strip())
        if match is None:
            raise InvalidVersion(text)
        major, minor, patch = (int(g) for g in match.groups())
        return cls(major, minor, patch)

    def as_tuple(self) -> tuple[int, int, int]:
        return (self.major, self.minor, self.patch)

    def bumped(self, kind: BumpKind) -> Version:
        if kind == "major":
            return Version(self.major + 1, 0, 0)
        if kind == "minor":
            return Version(self.major, self.minor + 1, 0)
        if kind == "patch":
            return Version(self.major, self.minor, self.patch + 1)
        raise ValueError(f"Unknown bump kind: {kind}")

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}"


@dataclass(frozen=True)
class VersionDecision:
    """A computed version transition and the classification behind it."""

    previous: Version
    new: Version
    kind: BumpKind
    classification: Classification
    overridden: bool = False

    def to_dict(self) -> dict:
        return {
            "previous": str(self.previous),
            "new": str(self.new),
            "kind": self.kind,
            "classification": self.classification.to_dict(),
            "overridden": self.overridden,
        }


def coerce_version(value: Version | str) -> Version:
    if isinstance(value, Version):
        return value
    return Version.parse(value)


def bump_kind(classification: Classification) -> BumpKind:
    """Map a classification to the component it raises."""
    if classification.breaking:
        return "major"
    if classification.commit_type is CommitType.FEAT:
        return "minor"
    return "patch"


def bump(current: Version | str, classification: Classification) -> Version:
    """Compute the next version for a classified change."""
    return coerce_version(current).bumped(bump_kind(classification))


def transition_kind(previous: Version, new: Version) -> BumpKind | None:
    """Return the bump kind `previous -> new` represents, or None if illegal.

    Legal means: one component grows, the ones to its left are unchanged and
    the ones to its right are zero.
    """
    old = previous.as_tuple()
    nxt = new.as_tuple()
    for idx, kind in enumerate(("major", "minor", "patch")):
        if nxt[idx] == old[idx]:
            continue
        if nxt[idx] < old[idx]:
            return None
        if any(part != 0 for part in nxt[idx + 1 :]):
            return None
        return kind  # type: ignore[return-value]
    return None


def decide(
    current: Version | str,
    classification: Classification,
    target: Version | str | None = None,
) -> VersionDecision:
    """Decide the version transition for a change.

    An explicit `target` replaces the computed bump, but it must still be a
    legal transition and at least as significant as the computed one (a
    breaking change cannot ship as a minor release).
    """
    previous = coerce_version(current)
    kind = bump_kind(classification)

    if target is None:
        new = previous.bumped(kind)
        logger.debug("version %s -> %s (%s, %s)", previous, new, kind, classification)
        return VersionDecision(previous=previous, new=new, kind=kind, classification=classification)

    requested = coerce_version(target)
    requested_kind = transition_kind(previous, requested)
    if requested_kind is None:
        raise InvalidVersion(str(requested), f"not a legal transition from {previous}")
    if _BUMP_INDEX[requested_kind] > _BUMP_INDEX[kind]:
        raise InvalidVersion(
            str(requested),
            f"{classification} requires at least a {kind} bump from {previous}",
        )

    logger.debug("version %s -> %s (override, %s)", previous, requested, requested_kind)
    return VersionDecision(
        previous=previous,
        new=requested,
        kind=requested_kind,
        classification=classification,
        overridden=True,
    )
