"""
Commit message rendering and validation.

Messages follow `<type>(<scope>)<!>: <subject>`, a blank line, the body, a
blank line and the footer. The builder accepts or rejects a message as a
whole; it never truncates or rewrites what it is given.
"""

from __future__ import annotations

import re
import textwrap
from dataclasses import dataclass, field
from typing import Iterable, Sequence

from .errors import (
    BodyLineTooLong,
    CommitMessageError,
    ForbiddenCharacter,
    InvalidSubject,
    MessageTooLong,
    SubjectTooLong,
)
from .models import Classification

SUBJECT_MAX = 50
BODY_LINE_MAX = 72
MESSAGE_MAX = 500  # exclusive

FORBIDDEN_CHARS = frozenset("$`!\\|&;")
BREAKING_FOOTER = "BREAKING CHANGE:"

_SCOPE_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._/-]*$")
_ISSUE_RE = re.compile(r"^#?(\d+)$")
_DOUBLE_QUOTED_RE = re.compile(r'"[^"]*"')
_SINGLE_QUOTED_RE = re.compile(r"(?<!\w)'[^']*'(?!\w)")


@dataclass(frozen=True)
class CommitMessage:
    """A validated commit message. `subject` is the full header line."""

    classification: Classification
    subject: str
    body: tuple[str, ...] = field(default_factory=tuple)
    footer: tuple[str, ...] = field(default_factory=tuple)

    @property
    def breaking(self) -> bool:
        return self.classification.breaking

    def render(self) -> str:
        """Serialize to the literal text handed to version control."""
        parts = [self.subject]
        if self.body:
            parts.append("\n".join(self.body))
        if self.footer:
            parts.append("\n".join(self.footer))
        return "\n\n".join(parts)

    def __str__(self) -> str:
        return self.render()

    def to_dict(self) -> dict:
        return {
            "type": self.classification.commit_type.value,
            "breaking": self.breaking,
            "subject": self.subject,
            "body": list(self.body),
            "footer": list(self.footer),
            "text": self.render(),
        }


def has_nested_quotes(text: str) -> bool:
    """True if a quoted span contains the other kind of quote."""
    if any("'" in m.group(0) for m in _DOUBLE_QUOTED_RE.finditer(text)):
        return True
    return any('"' in m.group(0) for m in _SINGLE_QUOTED_RE.finditer(text))


def _check_text(field_name: str, text: str, line: int | None = None) -> list[CommitMessageError]:
    problems: list[CommitMessageError] = []
    for ch in sorted({c for c in text if c in FORBIDDEN_CHARS}):
        problems.append(ForbiddenCharacter(field_name, f"forbidden character {ch!r}", line=line))
    if has_nested_quotes(text):
        problems.append(ForbiddenCharacter(field_name, "nested quotes", line=line))
    return problems


def format_header(classification: Classification, scope: str | None, subject_text: str) -> str:
    scope_part = f"({scope})" if scope else ""
    marker = "!" if classification.breaking else ""
    return f"{classification.commit_type.value}{scope_part}{marker}: {subject_text}"


def normalize_issue_ref(ref: str) -> str | None:
    match = _ISSUE_RE.match(str(ref).strip())
    return f"#{match.group(1)}" if match else None


class CommitMessageBuilder:
    """Render and validate commit messages against fixed limits."""

    def __init__(
        self,
        *,
        subject_max: int = SUBJECT_MAX,
        body_line_max: int = BODY_LINE_MAX,
        message_max: int = MESSAGE_MAX,
    ):
        self.subject_max = subject_max
        self.body_line_max = body_line_max
        self.message_max = message_max

    def validate(
        self,
        classification: Classification,
        scope: str | None,
        subject_text: str,
        body_lines: Sequence[str] = (),
        issue_refs: Sequence[str] = (),
        *,
        breaking_note: str | None = None,
    ) -> list[CommitMessageError]:
        """Collect every constraint violation; an empty list means valid."""
        problems: list[CommitMessageError] = []

        if not subject_text or not subject_text.strip():
            problems.append(InvalidSubject("subject", "subject is empty"))
        else:
            if "\n" in subject_text or "\r" in subject_text:
                problems.append(InvalidSubject("subject", "subject must be a single line"))
            if subject_text.rstrip().endswith("."):
                problems.append(InvalidSubject("subject", "subject must not end with a period"))
            if subject_text != subject_text.strip():
                problems.append(InvalidSubject("subject", "subject has leading or trailing whitespace"))
            problems.extend(_check_text("subject", subject_text))

        if scope is not None:
            if not _SCOPE_RE.match(scope):
                problems.append(InvalidSubject("scope", f"invalid scope {scope!r}"))
            problems.extend(_check_text("scope", scope))

        header = format_header(classification, scope, subject_text or "")
        if len(header) > self.subject_max:
            problems.append(SubjectTooLong("subject", f"{len(header)} characters (max {self.subject_max})"))

        for idx, line in enumerate(body_lines, start=1):
            if "\n" in line:
                problems.append(CommitMessageError("body", "body lines must not contain newlines", line=idx))
            if len(line) > self.body_line_max:
                problems.append(BodyLineTooLong("body", f"{len(line)} characters (max {self.body_line_max})", line=idx))
            if line.startswith(BREAKING_FOOTER):
                problems.append(CommitMessageError("body", f"{BREAKING_FOOTER} belongs in the footer", line=idx))
            problems.extend(_check_text("body", line, line=idx))

        if breaking_note is not None:
            if not classification.breaking:
                problems.append(CommitMessageError("footer", "breaking note given for a non-breaking change"))
            if "\n" in breaking_note:
                problems.append(CommitMessageError("footer", "breaking note must be a single line"))
            problems.extend(_check_text("footer", breaking_note))

        for ref in issue_refs:
            if normalize_issue_ref(ref) is None:
                problems.append(InvalidSubject("issue_refs", f"invalid issue reference {ref!r}"))

        size = len(self._compose(classification, scope, subject_text, body_lines, issue_refs, breaking_note).render())
        if size >= self.message_max:
            problems.append(MessageTooLong("message", f"{size} characters (must be under {self.message_max})"))

        return problems

    def _compose(
        self,
        classification: Classification,
        scope: str | None,
        subject_text: str,
        body_lines: Sequence[str],
        issue_refs: Sequence[str],
        breaking_note: str | None,
    ) -> CommitMessage:
        return CommitMessage(
            classification=classification,
            subject=format_header(classification, scope, subject_text or ""),
            body=tuple(body_lines),
            footer=self.render_footer(classification, subject_text or "", issue_refs, breaking_note),
        )

    def render_footer(
        self,
        classification: Classification,
        subject_text: str,
        issue_refs: Iterable[str] = (),
        breaking_note: str | None = None,
    ) -> tuple[str, ...]:
        lines: list[str] = []
        if classification.breaking:
            lines.append(f"{BREAKING_FOOTER} {breaking_note or subject_text}")
        refs = [normalize_issue_ref(r) for r in issue_refs]
        refs = [r for r in refs if r]
        if refs:
            lines.append("Refs: " + ", ".join(refs))
        return tuple(lines)

    def build(
        self,
        classification: Classification,
        scope: str | None,
        subject_text: str,
        body_lines: Sequence[str] = (),
        issue_refs: Sequence[str] = (),
        *,
        breaking_note: str | None = None,
    ) -> CommitMessage:
        """Build a commit message or raise the first violation found.

        The raised error's `violations` attribute lists every violation.
        """
        problems = self.validate(
            classification,
            scope,
            subject_text,
            body_lines,
            issue_refs,
            breaking_note=breaking_note,
        )
        if not problems:
            return self._compose(classification, scope, subject_text, body_lines, issue_refs, breaking_note)

        first = problems[0]
        first.violations = tuple(problems)
        raise first


def build_commit_message(
    classification: Classification,
    scope: str | None,
    subject_text: str,
    body_lines: Sequence[str] = (),
    issue_refs: Sequence[str] = (),
    *,
    breaking_note: str | None = None,
) -> CommitMessage:
    return CommitMessageBuilder().build(
        classification,
        scope,
        subject_text,
        body_lines,
        issue_refs,
        breaking_note=breaking_note,
    )


# -----------------------------------------------------------------------------
# Input preparation
# -----------------------------------------------------------------------------


def wrap_body(text: str | None, width: int = BODY_LINE_MAX) -> list[str]:
    """Wrap free-text paragraphs at `width` columns.

    Paragraphs are separated by blank lines. Words longer than `width` are
    left whole so the builder can reject them instead of splitting them.
    """
    if not text or not text.strip():
        return []
    lines: list[str] = []
    for para in re.split(r"\n\s*\n", text.strip()):
        if lines:
            lines.append("")
        lines.extend(
            textwrap.wrap(
                " ".join(para.split()),
                width=width,
                break_long_words=False,
                break_on_hyphens=False,
            )
        )
    return lines


_IMPERATIVE: dict[str, str] = {
    "adds": "add", "added": "add", "adding": "add",
    "fixes": "fix", "fixed": "fix", "fixing": "fix",
    "removes": "remove", "removed": "remove", "removing": "remove",
    "renames": "rename", "renamed": "rename", "renaming": "rename",
    "updates": "update", "updated": "update", "updating": "update",
    "improves": "improve", "improved": "improve", "improving": "improve",
    "drops": "drop", "dropped": "drop", "dropping": "drop",
    "deletes": "delete", "deleted": "delete", "deleting": "delete",
    "introduces": "introduce", "introduced": "introduce", "introducing": "introduce",
    "changes": "change", "changed": "change", "changing": "change",
    "moves": "move", "moved": "move", "moving": "move",
    "refactors": "refactor", "refactored": "refactor", "refactoring": "refactor",
    "extracts": "extract", "extracted": "extract", "extracting": "extract",
    "bumps": "bump", "bumped": "bump", "bumping": "bump",
    "documents": "document", "documented": "document", "documenting": "document",
    "supports": "support", "supported": "support", "supporting": "support",
    "replaces": "replace", "replaced": "replace", "replacing": "replace",
    "corrects": "correct", "corrected": "correct", "correcting": "correct",
    "handles": "handle", "handled": "handle", "handling": "handle",
    "simplifies": "simplify", "simplified": "simplify", "simplifying": "simplify",
    "makes": "make", "made": "make", "uses": "use", "used": "use",
    "allows": "allow", "allowed": "allow",
}
_BASE_VERBS = frozenset(_IMPERATIVE.values())
_ARTICLES = frozenset({"a", "an", "the"})


def derive_subject(summary: str) -> str:
    """Turn a change summary into an imperative, unquoted subject.

    "Removed the `--legacy` flag." becomes "remove legacy flag".
    """
    # Apostrophes inside words ("don't") stay; quoting around words goes.
    text = re.sub(r"[`\"]|(?<!\w)'|'(?!\w)", "", summary)
    text = text.replace("&", " and ")
    text = re.sub(r"[$!\\|;]", "", text)

    words: list[str] = []
    for word in text.split():
        if word.startswith("-") and len(word.lstrip("-")) > 0:
            word = word.lstrip("-")
        if word.lower() in _ARTICLES:
            continue
        words.append(word)
    if not words:
        return ""

    first = words[0].lower()
    if first in _IMPERATIVE:
        words[0] = _IMPERATIVE[first]
    elif first in _BASE_VERBS:
        words[0] = first
    return " ".join(words).rstrip(" .")
