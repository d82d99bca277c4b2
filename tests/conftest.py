"""Pytest configuration and fixtures."""

from datetime import datetime
from pathlib import Path

import pytest

from changegov.config import GovernanceConfig
from changegov.ledger import ChangelogLedger
from changegov.session import GovernanceSession


@pytest.fixture
def changelog_path(tmp_path: Path) -> Path:
    """Changelog file inside a scratch project (not created yet)."""
    return tmp_path / "CHANGELOG.md"


@pytest.fixture
def ledger(changelog_path: Path) -> ChangelogLedger:
    return ChangelogLedger(changelog_path, lock_timeout=0.2)


@pytest.fixture
def session(ledger: ChangelogLedger, tmp_path: Path) -> GovernanceSession:
    """Session over the scratch ledger, auditing into .changegov."""
    return GovernanceSession(ledger, audit_dir=tmp_path / ".changegov")


@pytest.fixture
def project_config(tmp_path: Path) -> GovernanceConfig:
    """Default configuration rooted at the scratch project."""
    return GovernanceConfig.defaults(tmp_path)


@pytest.fixture
def fixed_time() -> datetime:
    return datetime(2026, 10, 17, 14, 32)
