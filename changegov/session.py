"""
Governance session: one change in, one version decision, commit message
and changelog entry out.

Everything up to the changelog append is pure computation. A failure in
any step propagates before the append, so a failed request never leaves a
partial record behind.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import NamedTuple

from .audit_log import log_operation
from .classify import ChangeClassifier, load_ruleset
from .config import GovernanceConfig
from .ledger import ChangelogEntry, ChangelogLedger
from .message import BREAKING_FOOTER, CommitMessage, CommitMessageBuilder, derive_subject, wrap_body
from .models import ChangeDescriptor, Classification
from .version import Version, VersionDecision, decide

logger = logging.getLogger(__name__)


class RecordOutcome(NamedTuple):
    version: Version
    message: CommitMessage
    entry: ChangelogEntry


@dataclass(frozen=True)
class GovernancePlan:
    """Everything `record` would write, computed without writing it."""

    decision: VersionDecision
    message: CommitMessage
    entry: ChangelogEntry

    @property
    def classification(self) -> Classification:
        return self.decision.classification

    def to_outcome(self) -> RecordOutcome:
        return RecordOutcome(version=self.decision.new, message=self.message, entry=self.entry)

    def to_dict(self) -> dict:
        return {
            "version": self.decision.to_dict(),
            "message": self.message.to_dict(),
            "entry": self.entry.to_dict(),
        }


class GovernanceSession:
    """Orchestrates classify -> bump -> message -> changelog entry.

    The session owns its ledger; `record` is the only method with side
    effects.
    """

    def __init__(
        self,
        ledger: ChangelogLedger,
        *,
        classifier: ChangeClassifier | None = None,
        builder: CommitMessageBuilder | None = None,
        audit_dir: Path | None = None,
    ):
        self.ledger = ledger
        self.classifier = classifier or ChangeClassifier()
        self.builder = builder or CommitMessageBuilder()
        self.audit_dir = audit_dir

    @classmethod
    def from_config(cls, config: GovernanceConfig) -> GovernanceSession:
        project_rules = load_ruleset(config.rules) if config.rules else None
        ledger = ChangelogLedger(
            config.changelog,
            marker=config.marker,
            lock_path=config.state_dir / "changelog.lock",
            lock_timeout=config.lock_timeout,
        )
        return cls(
            ledger,
            classifier=ChangeClassifier.from_rulesets(project_rules),
            audit_dir=config.state_dir,
        )

    def compose_message(self, descriptor: ChangeDescriptor, classification: Classification) -> CommitMessage:
        subject_text = descriptor.subject if descriptor.subject is not None else derive_subject(descriptor.summary)
        return self.builder.build(
            classification,
            descriptor.scope,
            subject_text,
            wrap_body(descriptor.body, self.builder.body_line_max),
            descriptor.issues,
            breaking_note=descriptor.breaking_note if classification.breaking else None,
        )

    def preview(
        self,
        descriptor: ChangeDescriptor,
        current_version: Version | str,
        timestamp: datetime | None = None,
        label: str | None = None,
    ) -> GovernancePlan:
        """Compute the full outcome of `record` without touching the ledger."""
        classification = self.classifier.classify(descriptor)
        decision = decide(current_version, classification, descriptor.target_version)
        message = self.compose_message(descriptor, classification)

        bullets = [message.subject]
        bullets.extend(line for line in message.footer if line.startswith(BREAKING_FOOTER))
        entry = ChangelogEntry(
            timestamp=timestamp or datetime.now(),
            bullets=tuple(bullets),
            label=label if label is not None else f"v{decision.new}",
        )
        return GovernancePlan(decision=decision, message=message, entry=entry)

    def record(
        self,
        descriptor: ChangeDescriptor,
        current_version: Version | str,
        timestamp: datetime | None = None,
        label: str | None = None,
    ) -> RecordOutcome:
        """Classify, decide, build and append as one unit of work."""
        plan = self.preview(descriptor, current_version, timestamp, label)
        self.ledger.append(plan.entry)
        logger.info(
            "recorded %s: %s -> %s",
            plan.message.subject,
            plan.decision.previous,
            plan.decision.new,
        )

        if self.audit_dir is not None:
            try:
                log_operation(
                    self.audit_dir,
                    "record",
                    version_before=str(plan.decision.previous),
                    version_after=str(plan.decision.new),
                    commit_type=plan.classification.commit_type.value,
                    breaking=plan.classification.breaking,
                    subject=plan.message.subject,
                    metadata={"changelog": str(self.ledger.path), "label": plan.entry.label},
                )
            except OSError as exc:
                # Changelog entry is already written at this point.
                logger.warning("failed to write audit log in %s: %s", self.audit_dir, exc)

        return plan.to_outcome()
