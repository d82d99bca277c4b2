"""
Changelog entries and their Markdown form.

An entry is a heading line with date, 24h time and an optional
parenthetical label, followed by bullet lines:

    ### 2026-10-17 14:32 (v4.0.0)
    - feat!: remove legacy flag
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime

from ..errors import InvalidEntry

ENTRY_HEADING_LEVEL = 3
ENTRY_HEADING_PREFIX = "#" * ENTRY_HEADING_LEVEL + " "
BULLET_PREFIX = "- "
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M"

_HEADING_RE = re.compile(r"^### (\d{4}-\d{2}-\d{2} \d{2}:\d{2})(?: \((.+)\))?$")


def _is_single_line(text: str) -> bool:
    return "\n" not in text and "\r" not in text


@dataclass(frozen=True)
class ChangelogEntry:
    """One dated changelog record. Created once, never edited."""

    timestamp: datetime
    bullets: tuple[str, ...] = field(default_factory=tuple)
    label: str | None = None

    def __post_init__(self) -> None:
        # Minute resolution without zone is all the text form carries.
        ts = self.timestamp.replace(second=0, microsecond=0, tzinfo=None)
        object.__setattr__(self, "timestamp", ts)

        bullets = tuple(self.bullets)
        if not bullets:
            raise InvalidEntry("a changelog entry needs at least one bullet")
        for bullet in bullets:
            if not bullet or bullet != bullet.strip() or not _is_single_line(bullet):
                raise InvalidEntry(f"invalid bullet {bullet!r}: must be a non-empty trimmed single line")
        object.__setattr__(self, "bullets", bullets)

        if self.label is not None:
            label = self.label.strip()
            if not _is_single_line(label):
                raise InvalidEntry("label must be a single line")
            object.__setattr__(self, "label", label or None)

    @property
    def heading(self) -> str:
        stamp = self.timestamp.strftime(TIMESTAMP_FORMAT)
        suffix = f" ({self.label})" if self.label else ""
        return f"{ENTRY_HEADING_PREFIX}{stamp}{suffix}"

    def to_markdown(self) -> str:
        lines = [self.heading]
        lines.extend(f"{BULLET_PREFIX}{b}" for b in self.bullets)
        return "\n".join(lines) + "\n"

    @classmethod
    def parse(cls, text: str) -> ChangelogEntry:
        """Parse a single entry block produced by `to_markdown`."""
        lines = [line.rstrip() for line in text.strip().splitlines()]
        if not lines:
            raise InvalidEntry("empty changelog entry")
        heading = parse_heading(lines[0])
        if heading is None:
            raise InvalidEntry(f"not a changelog entry heading: {lines[0]!r}")
        timestamp, label = heading

        bullets: list[str] = []
        for line in lines[1:]:
            if not line:
                continue
            if not line.startswith(BULLET_PREFIX):
                raise InvalidEntry(f"unexpected line in changelog entry: {line!r}")
            bullets.append(line[len(BULLET_PREFIX) :].strip())
        return cls(timestamp=timestamp, bullets=tuple(bullets), label=label)

    def to_dict(self) -> dict:
        return {
            "timestamp": self.timestamp.strftime(TIMESTAMP_FORMAT),
            "label": self.label,
            "bullets": list(self.bullets),
        }


def parse_heading(line: str) -> tuple[datetime, str | None] | None:
    """Return (timestamp, label) for an entry heading line, else None."""
    match = _HEADING_RE.match(line.rstrip())
    if match is None:
        return None
    try:
        timestamp = datetime.strptime(match.group(1), TIMESTAMP_FORMAT)
    except ValueError:
        return None
    return timestamp, match.group(2)
