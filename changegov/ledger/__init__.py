"""
Changelog ledger for recorded changes.

Components:
- entry: Changelog entries and their Markdown heading/bullet form
- ledger: Append-only, newest-first storage under a fixed section marker

Design principles:
- Append-only: entries are never rewritten or removed
- Single insertion point: new entries go directly after the section marker
- Lazy: a missing file or section is created on first append
"""

from .entry import ChangelogEntry
from .ledger import DEFAULT_MARKER, ChangelogLedger, check_marker

__all__ = [
    "ChangelogEntry",
    "ChangelogLedger",
    "DEFAULT_MARKER",
    "check_marker",
]
