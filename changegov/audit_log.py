"""
Audit log of state-changing governance operations.

Every changelog append is recorded here as one JSON line, so the history of
version decisions can be reconstructed independently of the changelog text.

This module provides:
- Structured logging of recorded changes (version transition, commit type)
- Reading back the most recent entries
- Human-readable formatting
"""

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

AUDIT_LOG_NAME = "audit.log"


@dataclass
class AuditEntry:
    """A single audit log entry."""
    timestamp: str
    operation: str
    version_before: str | None = None
    version_after: str | None = None
    commit_type: str | None = None
    breaking: bool = False
    subject: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "timestamp": self.timestamp,
            "operation": self.operation,
            "version_before": self.version_before,
            "version_after": self.version_after,
            "commit_type": self.commit_type,
            "breaking": self.breaking,
            "subject": self.subject,
            "metadata": self.metadata,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "AuditEntry":
        """Create from dictionary."""
        return cls(
            timestamp=data["timestamp"],
            operation=data["operation"],
            version_before=data.get("version_before"),
            version_after=data.get("version_after"),
            commit_type=data.get("commit_type"),
            breaking=bool(data.get("breaking", False)),
            subject=data.get("subject"),
            metadata=data.get("metadata", {}),
        )


def get_audit_log_path(state_dir: Path) -> Path:
    """Get the path to the audit log file."""
    return state_dir / AUDIT_LOG_NAME


def log_operation(
    state_dir: Path,
    operation: str,
    *,
    version_before: str | None = None,
    version_after: str | None = None,
    commit_type: str | None = None,
    breaking: bool = False,
    subject: str | None = None,
    metadata: dict[str, Any] | None = None,
) -> AuditEntry:
    """
    Log an operation to the audit log.

    Args:
        state_dir: Directory holding engine state (e.g. .changegov)
        operation: Name of the operation (e.g., "record")
        version_before: Version the change started from
        version_after: Version the change produced
        commit_type: Commit type of the change
        breaking: Whether the change was breaking
        subject: Commit header line
        metadata: Additional context (e.g., changelog path, label)

    Returns:
        The created audit entry
    """
    entry = AuditEntry(
        timestamp=datetime.now(timezone.utc).isoformat(),
        operation=operation,
        version_before=version_before,
        version_after=version_after,
        commit_type=commit_type,
        breaking=breaking,
        subject=subject,
        metadata=metadata or {},
    )

    log_path = get_audit_log_path(state_dir)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    # Append as JSON Lines format (one JSON object per line)
    with log_path.open("a", encoding="utf-8") as f:
        f.write(json.dumps(entry.to_dict()) + "\n")

    return entry


def read_audit_log(state_dir: Path, last_n: int | None = None) -> list[AuditEntry]:
    """
    Read entries from the audit log.

    Args:
        state_dir: Directory holding engine state
        last_n: If specified, return only the last N entries

    Returns:
        List of audit entries (oldest first)
    """
    log_path = get_audit_log_path(state_dir)
    if not log_path.exists():
        return []

    entries = []
    with log_path.open("r", encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if line:
                try:
                    data = json.loads(line)
                    entries.append(AuditEntry.from_dict(data))
                except (json.JSONDecodeError, KeyError):
                    continue  # Skip malformed lines

    if last_n is not None:
        return entries[-last_n:] if last_n > 0 else []
    return entries


def format_audit_entry(entry: AuditEntry) -> str:
    """Format an audit entry for human-readable display."""
    lines = [
        f"[{entry.timestamp}] {entry.operation}",
    ]

    if entry.version_before or entry.version_after:
        lines.append(f"  Version: {entry.version_before or '?'} -> {entry.version_after or '?'}")

    if entry.commit_type:
        marker = "!" if entry.breaking else ""
        lines.append(f"  Type: {entry.commit_type}{marker}")

    if entry.subject:
        lines.append(f"  Subject: {entry.subject}")

    if entry.metadata:
        for key, value in entry.metadata.items():
            lines.append(f"  {key}: {value}")

    return "\n".join(lines)
