"""
Append-only changelog ledger.

Stores changelog entries in a Markdown file under a fixed section marker,
newest first. Key property: the only write is a prepend at the head of the
section; bytes belonging to earlier entries are never rewritten.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from ..errors import LedgerUnavailable
from .entry import BULLET_PREFIX, ENTRY_HEADING_LEVEL, ChangelogEntry, parse_heading

logger = logging.getLogger(__name__)

DEFAULT_MARKER = "## Changelog"


def _heading_level(line: str) -> int:
    stripped = line.lstrip()
    level = len(stripped) - len(stripped.lstrip("#"))
    if level and stripped[level : level + 1] == " ":
        return level
    return 0


def check_marker(marker: str) -> str:
    """Return the stripped marker, or raise ValueError if it cannot hold entries.

    Entry headings are level 3, so the section marker must be level 1 or 2.
    """
    marker = marker.strip()
    level = _heading_level(marker)
    if level == 0:
        raise ValueError(f"marker must be a Markdown heading, got {marker!r}")
    if level >= ENTRY_HEADING_LEVEL:
        raise ValueError(f"marker must be a level 1 or 2 heading (entries are level {ENTRY_HEADING_LEVEL}), got {marker!r}")
    return marker


def _pid_alive(pid: int) -> bool:
    if pid <= 0:
        return False
    try:
        os.kill(pid, 0)
        return True
    except ProcessLookupError:
        return False
    except OSError:
        return True


class ChangelogLedger:
    """Append-only, reverse-chronological changelog.

    INVARIANT: This class NEVER modifies existing entries.
    The only write operation is append(), which inserts at the head.
    """

    def __init__(
        self,
        path: Path,
        *,
        marker: str = DEFAULT_MARKER,
        lock_path: Path | None = None,
        lock_timeout: float = 10.0,
        lock_stale_seconds: float = 300.0,
    ):
        """Initialize a ledger backed by a Markdown file.

        Args:
            path: Changelog file (created on first append if missing)
            marker: Heading line that opens the changelog section
            lock_path: Single-writer lock file (defaults next to the changelog)
            lock_timeout: Seconds to wait for the lock before giving up
            lock_stale_seconds: Age after which an abandoned lock is broken
        """
        marker = check_marker(marker)
        self.path = Path(path)
        self.marker = marker
        self.lock_path = lock_path or self.path.with_name(self.path.name + ".lock")
        self.lock_timeout = lock_timeout
        self.lock_stale_seconds = lock_stale_seconds

    # --- Storage ---

    def _read_text(self) -> str | None:
        try:
            return self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise LedgerUnavailable(self.path, str(exc)) from exc

    def _write_text(self, content: str) -> None:
        """Write through a temp file and replace, so readers never see half a file."""
        tmp_path: Path | None = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=f".{self.path.name}.tmp.", dir=str(self.path.parent))
            tmp_path = Path(tmp_name)
            with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
                f.write(content)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, self.path)
        except OSError as exc:
            raise LedgerUnavailable(self.path, str(exc)) from exc
        finally:
            if tmp_path is not None and tmp_path.exists():
                tmp_path.unlink()

    def _lock_is_stale(self) -> bool:
        try:
            meta = json.loads(self.lock_path.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            return False
        if not isinstance(meta, dict):
            return True
        created = meta.get("created_epoch")
        if isinstance(created, (int, float)) and time.time() - float(created) > self.lock_stale_seconds:
            return True
        pid = meta.get("pid")
        return isinstance(pid, int) and not _pid_alive(pid)

    @contextmanager
    def _locked(self) -> Iterator[None]:
        """Hold the single-writer lock; released on every exit path."""
        token = f"{os.getpid()}-{time.time_ns()}"
        deadline = time.monotonic() + self.lock_timeout
        while True:
            try:
                self.lock_path.parent.mkdir(parents=True, exist_ok=True)
                fd = os.open(self.lock_path, os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o644)
            except FileExistsError:
                if self._lock_is_stale():
                    logger.warning("breaking stale changelog lock %s", self.lock_path)
                    self.lock_path.unlink(missing_ok=True)
                    continue
                if time.monotonic() >= deadline:
                    raise LedgerUnavailable(self.path, f"timed out waiting for lock {self.lock_path}") from None
                time.sleep(0.05)
                continue
            except OSError as exc:
                raise LedgerUnavailable(self.path, f"cannot create lock {self.lock_path}: {exc}") from exc
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump({"token": token, "pid": os.getpid(), "created_epoch": time.time()}, f)
            break

        try:
            yield
        finally:
            self._release(token)

    def _release(self, token: str) -> None:
        """Remove the lock file only if it still carries our token."""
        try:
            meta = json.loads(self.lock_path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return
        except (OSError, ValueError):
            meta = None
        if isinstance(meta, dict) and meta.get("token") == token:
            self.lock_path.unlink(missing_ok=True)
        else:
            logger.warning("changelog lock %s is no longer ours; leaving it in place", self.lock_path)

    # --- Section handling ---

    def _find_marker(self, lines: list[str]) -> int | None:
        for idx, line in enumerate(lines):
            if line.rstrip("\r\n").rstrip() == self.marker:
                return idx
        return None

    def _with_section(self, text: str) -> str:
        """Return `text` with the section marker present, synthesizing it if needed."""
        if self._find_marker(text.splitlines(keepends=True)) is not None:
            return text
        logger.info("changelog section %r missing in %s; creating it", self.marker, self.path)
        if not text.strip():
            return self.marker + "\n"
        sep = "\n" if text.endswith("\n") else "\n\n"
        return text + sep + self.marker + "\n"

    def _section_lines(self, text: str) -> list[str]:
        lines = text.splitlines()
        start = self._find_marker(lines)
        if start is None:
            return []
        level = _heading_level(self.marker)
        section: list[str] = []
        for line in lines[start + 1 :]:
            line_level = _heading_level(line)
            if line_level and line_level <= level:
                break
            section.append(line)
        return section

    # --- Public API ---

    def append(self, entry: ChangelogEntry) -> None:
        """Prepend an entry to the changelog section.

        This is the only write operation. Earlier entries are left byte for
        byte as they were.
        """
        block = entry.to_markdown()
        with self._locked():
            text = self._with_section(self._read_text() or "")
            lines = text.splitlines(keepends=True)
            idx = self._find_marker(lines)
            assert idx is not None
            if not lines[idx].endswith("\n"):
                lines[idx] += "\n"
            rest = lines[idx + 1 :]
            # Exactly one blank line between the marker and the newest entry.
            lines[idx + 1 :] = ["\n", block] + rest
            self._write_text("".join(lines))
        logger.info("appended changelog entry %s to %s", entry.heading, self.path)

    def iter_entries(self) -> Iterator[ChangelogEntry]:
        """Iterate entries newest first."""
        text = self._read_text()
        if text is None:
            return

        current: tuple | None = None
        bullets: list[str] = []

        def flush() -> ChangelogEntry | None:
            if current is None:
                return None
            if not bullets:
                logger.warning("skipping changelog entry without bullets: %s %s", *current)
                return None
            return ChangelogEntry(timestamp=current[0], bullets=tuple(bullets), label=current[1])

        for line in self._section_lines(text):
            heading = parse_heading(line)
            if heading is not None:
                entry = flush()
                if entry is not None:
                    yield entry
                current, bullets = heading, []
            elif current is not None and line.startswith(BULLET_PREFIX):
                bullet = line[len(BULLET_PREFIX) :].strip()
                if bullet:
                    bullets.append(bullet)

        entry = flush()
        if entry is not None:
            yield entry

    def render(self) -> tuple[ChangelogEntry, ...]:
        """All entries, newest first."""
        return tuple(self.iter_entries())

    def count(self) -> int:
        return sum(1 for _ in self.iter_entries())

    def latest(self) -> ChangelogEntry | None:
        return next(self.iter_entries(), None)
