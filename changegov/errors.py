"""
Typed failures raised by the governance engine.

Every failure is local to one request: the caller can re-describe the
change, fix the version field or edit the message and try again. Nothing
here is meant to abort the host process.
"""

from __future__ import annotations


class GovernanceError(Exception):
    """Base class for all engine failures."""


class ClassificationAmbiguous(GovernanceError, ValueError):
    """No classification rule matched the change description."""

    def __init__(self, summary: str):
        self.summary = summary
        super().__init__(
            f"Could not classify change {summary!r}; pass an explicit commit type"
        )


class InvalidVersion(GovernanceError, ValueError):
    """A version string is malformed or a requested transition is illegal."""

    def __init__(self, value: object, reason: str = "expected MAJOR.MINOR.PATCH"):
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid version {value!r}: {reason}")


class CommitMessageError(GovernanceError, ValueError):
    """A commit message violates a formatting constraint.

    `field` names the offending part (subject, scope, body, footer,
    issue_refs, message). `violations` holds every violation found while
    validating, this one first.
    """

    def __init__(
        self,
        field: str,
        detail: str,
        *,
        line: int | None = None,
    ):
        self.field = field
        self.detail = detail
        self.line = line
        self.violations: tuple[CommitMessageError, ...] = (self,)
        where = f"{field}" if line is None else f"{field} line {line}"
        super().__init__(f"{where}: {detail}")


class SubjectTooLong(CommitMessageError):
    pass


class BodyLineTooLong(CommitMessageError):
    pass


class ForbiddenCharacter(CommitMessageError):
    pass


class MessageTooLong(CommitMessageError):
    pass


class InvalidSubject(CommitMessageError):
    """Empty, multi-line or period-terminated subject, or a malformed scope/ref."""


class InvalidEntry(GovernanceError, ValueError):
    """A changelog entry that cannot be written or parsed as given."""


class LedgerUnavailable(GovernanceError):
    """The changelog store cannot be read, written or locked."""

    def __init__(self, path: object, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Changelog ledger unavailable at {path}: {reason}")


class RulesetError(GovernanceError, ValueError):
    """A classification ruleset file is malformed."""


class ConfigError(GovernanceError, ValueError):
    """The project configuration file is malformed."""
