"""Classification, version and commit message commands."""

from __future__ import annotations

import json
from datetime import datetime

from rich.console import Console

from ..classify import ChangeClassifier, load_ruleset
from ..config import GovernanceConfig
from ..errors import CommitMessageError, GovernanceError
from ..manifest import read_manifest_version
from ..models import ChangeDescriptor, Classification, CommitType
from ..session import GovernanceSession
from ..version import Version, coerce_version, decide


def _report_error(err: Console, exc: GovernanceError) -> int:
    err.print(str(exc), style="bold red", markup=False)
    if isinstance(exc, CommitMessageError) and len(exc.violations) > 1:
        for other in exc.violations[1:]:
            err.print(f"  also: {other}", style="red", markup=False)
    return 1


def _classifier(config: GovernanceConfig) -> ChangeClassifier:
    project_rules = load_ruleset(config.rules) if config.rules else None
    return ChangeClassifier.from_rulesets(project_rules)


def run_classify(config: GovernanceConfig, descriptor: ChangeDescriptor, *, output_json: bool = False) -> int:
    err = Console(stderr=True)
    try:
        classification = _classifier(config).classify(descriptor)
    except GovernanceError as exc:
        return _report_error(err, exc)

    if output_json:
        print(json.dumps(classification.to_dict(), indent=2))
        return 0

    print(str(classification))
    if classification.rule_id:
        err.print(f"  Rule: {classification.rule_id}", style="dim")
    return 0


def run_bump(current: str, commit_type: str, *, breaking: bool = False, target: str | None = None) -> int:
    err = Console(stderr=True)
    classification = Classification(commit_type=CommitType(commit_type), breaking=breaking)
    try:
        decision = decide(current, classification, target)
    except GovernanceError as exc:
        return _report_error(err, exc)

    print(str(decision.new))
    err.print(f"  {decision.previous} -> {decision.new} ({decision.kind})", style="dim")
    return 0


def _current_version(config: GovernanceConfig, current: str | None) -> Version:
    if current is not None:
        return coerce_version(current)
    return read_manifest_version(config.manifest)


def run_message(config: GovernanceConfig, descriptor: ChangeDescriptor, *, output_json: bool = False) -> int:
    err = Console(stderr=True)
    try:
        session = GovernanceSession.from_config(config)
        classification = session.classifier.classify(descriptor)
        message = session.compose_message(descriptor, classification)
    except GovernanceError as exc:
        return _report_error(err, exc)

    if output_json:
        print(json.dumps(message.to_dict(), indent=2))
    else:
        print(message.render())
    return 0


def run_record(
    config: GovernanceConfig,
    descriptor: ChangeDescriptor,
    *,
    current: str | None = None,
    label: str | None = None,
    timestamp: datetime | None = None,
    dry_run: bool = False,
    output_json: bool = False,
) -> int:
    """Record a change: version decision, commit message and changelog entry."""
    err = Console(stderr=True)
    try:
        session = GovernanceSession.from_config(config)
        current_version = _current_version(config, current)
        plan = session.preview(descriptor, current_version, timestamp, label)
        if not dry_run:
            session.record(descriptor, current_version, plan.entry.timestamp, plan.entry.label)
    except GovernanceError as exc:
        return _report_error(err, exc)

    if output_json:
        data = plan.to_dict()
        data["dry_run"] = dry_run
        print(json.dumps(data, indent=2))
        return 0

    status = "Would record" if dry_run else "Recorded"
    err.print(f"{status}: {plan.message.subject}", style="yellow" if dry_run else "green")
    err.print(f"  Version: {plan.decision.previous} -> {plan.decision.new} ({plan.decision.kind})")
    if plan.classification.rule_id:
        err.print(f"  Rule: {plan.classification.rule_id}", style="dim")
    if not dry_run:
        err.print(f"  Changelog: {session.ledger.path}", style="dim")
    print(plan.message.render())
    return 0
