from __future__ import annotations

from pathlib import Path

import pytest

from changegov.config import GovernanceConfig, find_config, load_config
from changegov.errors import ConfigError, InvalidVersion
from changegov.manifest import read_manifest_version, read_project_version
from changegov.version import Version


def _write(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")


def test_defaults_without_config_file(tmp_path: Path) -> None:
    config = load_config(root=tmp_path)
    root = tmp_path.resolve()
    assert config == GovernanceConfig.defaults(tmp_path)
    assert config.changelog == root / "CHANGELOG.md"
    assert config.manifest == root / "pyproject.toml"
    assert config.state_dir == root / ".changegov"
    assert config.marker == "## Changelog"
    assert config.rules is None


def test_config_file_paths_resolve_against_its_directory(tmp_path: Path) -> None:
    _write(
        tmp_path / "changegov.yml",
        "changelog: docs/CHANGES.md\n"
        "marker: '## History'\n"
        "rules: rules.toml\n"
        "state_dir: .state\n"
        "lock_timeout: 2.5\n",
    )
    nested = tmp_path / "src" / "pkg"
    nested.mkdir(parents=True)

    assert find_config(nested) == (tmp_path / "changegov.yml").resolve()

    config = load_config(root=nested)
    root = tmp_path.resolve()
    assert config.root == root
    assert config.changelog == root / "docs" / "CHANGES.md"
    assert config.rules == root / "rules.toml"
    assert config.state_dir == root / ".state"
    assert config.marker == "## History"
    assert config.lock_timeout == 2.5


def test_explicit_config_path(tmp_path: Path) -> None:
    config_path = tmp_path / "conf" / "governance.yml"
    _write(config_path, "changelog: ../CHANGELOG.md\n")
    config = load_config(config_path)
    assert config.changelog == config_path.parent.resolve() / ".." / "CHANGELOG.md"


def test_empty_config_file_means_defaults(tmp_path: Path) -> None:
    _write(tmp_path / ".changegov.yml", "")
    assert load_config(root=tmp_path) == GovernanceConfig.defaults(tmp_path)


@pytest.mark.parametrize(
    ("body", "message"),
    [
        ("changelg: CHANGELOG.md\n", "Unknown config keys: changelg"),
        ("marker: Changelog\n", "marker must be a Markdown heading"),
        ("marker: '### Changes'\n", "level 1 or 2"),
        ("lock_timeout: -1\n", "lock_timeout"),
        ("lock_timeout: soon\n", "lock_timeout"),
        ("changelog: ''\n", "changelog must be a non-empty path"),
        ("- a\n- b\n", "top level must be a mapping"),
        ("changelog: [unclosed\n", "Invalid YAML"),
    ],
)
def test_config_errors(tmp_path: Path, body: str, message: str) -> None:
    _write(tmp_path / "changegov.yml", body)
    with pytest.raises(ConfigError, match=message):
        load_config(root=tmp_path)


def test_read_manifest_version(tmp_path: Path) -> None:
    pyproject = tmp_path / "pyproject.toml"
    _write(pyproject, '[project]\nname = "demo"\nversion = "0.9.0"\n')
    assert read_project_version(pyproject) == "0.9.0"
    assert read_manifest_version(pyproject) == Version(0, 9, 0)


@pytest.mark.parametrize(
    "body",
    [
        '[project]\nname = "demo"\n',
        '[project]\nname = "demo"\nversion = "1.0"\n',
        "[project\n",
    ],
)
def test_manifest_errors(tmp_path: Path, body: str) -> None:
    pyproject = tmp_path / "pyproject.toml"
    _write(pyproject, body)
    with pytest.raises(InvalidVersion):
        read_manifest_version(pyproject)


def test_missing_manifest(tmp_path: Path) -> None:
    with pytest.raises(InvalidVersion, match="not found"):
        read_manifest_version(tmp_path / "pyproject.toml")
