from __future__ import annotations

import itertools

import pytest

from changegov.errors import InvalidVersion
from changegov.models import Classification, CommitType
from changegov.version import Version, bump, bump_kind, decide, transition_kind


FEAT = Classification(CommitType.FEAT)
FIX = Classification(CommitType.FIX)
DOCS = Classification(CommitType.DOCS)


@pytest.mark.parametrize(
    ("current", "classification", "expected"),
    [
        ("1.4.2", FEAT, "1.5.0"),
        ("1.5.0", FIX, "1.5.1"),
        ("1.5.1", Classification(CommitType.FIX, breaking=True), "2.0.0"),
        ("0.9.0", FIX, "0.9.1"),
        ("3.2.1", Classification(CommitType.FEAT, breaking=True), "4.0.0"),
        ("2.0.0", DOCS, "2.0.1"),
    ],
)
def test_bump_examples(current: str, classification: Classification, expected: str) -> None:
    assert str(bump(current, classification)) == expected


def test_parse_accepts_leading_v() -> None:
    assert Version.parse("v1.2.3") == Version(1, 2, 3)
    assert Version.parse(" 10.0.7 ") == Version(10, 0, 7)


@pytest.mark.parametrize("text", ["", "1.2", "1.2.3.4", "a.b.c", "-1.2.3", "1.2.3-rc1", "1..3", "v"])
def test_parse_rejects_malformed(text: str) -> None:
    with pytest.raises(InvalidVersion):
        Version.parse(text)


def test_negative_component_rejected() -> None:
    with pytest.raises(InvalidVersion):
        Version(1, -1, 0)


def test_invalid_version_is_a_value_error() -> None:
    with pytest.raises(ValueError):
        bump("not-a-version", FIX)


def test_every_bump_raises_one_component_and_zeroes_the_right() -> None:
    versions = [Version(*parts) for parts in itertools.product((0, 1, 7), repeat=3)]
    classifications = [
        Classification(t, breaking=b) for t in CommitType for b in (False, True)
    ]
    for current in versions:
        for classification in classifications:
            new = bump(current, classification)
            old_parts, new_parts = current.as_tuple(), new.as_tuple()
            raised = [i for i in range(3) if new_parts[i] != old_parts[i]]
            assert len(raised) == 1
            idx = raised[0]
            assert new_parts[idx] == old_parts[idx] + 1
            assert all(p == 0 for p in new_parts[idx + 1 :])
            assert new > current


def test_bump_kind_mapping() -> None:
    assert bump_kind(Classification(CommitType.CHORE, breaking=True)) == "major"
    assert bump_kind(FEAT) == "minor"
    for commit_type in CommitType:
        if commit_type is not CommitType.FEAT:
            assert bump_kind(Classification(commit_type)) == "patch"


def test_transition_kind() -> None:
    base = Version(1, 4, 2)
    assert transition_kind(base, Version(2, 0, 0)) == "major"
    assert transition_kind(base, Version(1, 5, 0)) == "minor"
    assert transition_kind(base, Version(1, 4, 3)) == "patch"
    assert transition_kind(base, Version(1, 4, 2)) is None
    assert transition_kind(base, Version(1, 5, 1)) is None
    assert transition_kind(base, Version(1, 3, 0)) is None
    assert transition_kind(base, Version(1, 4, 4)) == "patch"


def test_decide_without_target() -> None:
    decision = decide("1.4.2", FEAT)
    assert decision.previous == Version(1, 4, 2)
    assert decision.new == Version(1, 5, 0)
    assert decision.kind == "minor"
    assert not decision.overridden


def test_decide_accepts_more_significant_target() -> None:
    decision = decide("0.9.0", FIX, "1.0.0")
    assert decision.new == Version(1, 0, 0)
    assert decision.kind == "major"
    assert decision.overridden
    assert decision.to_dict()["new"] == "1.0.0"


@pytest.mark.parametrize("target", ["1.4.3", "1.5.1", "1.4.2", "1.3.0", "banana"])
def test_decide_rejects_bad_target(target: str) -> None:
    with pytest.raises(InvalidVersion):
        decide("1.4.2", FEAT, target)


def test_breaking_change_cannot_ship_as_minor() -> None:
    with pytest.raises(InvalidVersion, match="requires at least a major"):
        decide("1.4.2", Classification(CommitType.FEAT, breaking=True), "1.5.0")
