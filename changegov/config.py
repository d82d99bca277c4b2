"""Project configuration (changegov.yml)."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from .errors import ConfigError
from .ledger import DEFAULT_MARKER, check_marker

CONFIG_FILENAMES = ("changegov.yml", "changegov.yaml", ".changegov.yml")

_KNOWN_KEYS = {"changelog", "marker", "manifest", "rules", "state_dir", "lock_timeout"}


@dataclass(frozen=True)
class GovernanceConfig:
    root: Path
    changelog: Path
    manifest: Path
    state_dir: Path
    marker: str = DEFAULT_MARKER
    rules: Path | None = None
    lock_timeout: float = 10.0

    @classmethod
    def defaults(cls, root: Path) -> GovernanceConfig:
        root = root.resolve()
        return cls(
            root=root,
            changelog=root / "CHANGELOG.md",
            manifest=root / "pyproject.toml",
            state_dir=root / ".changegov",
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any], root: Path) -> GovernanceConfig:
        unknown = sorted(set(data) - _KNOWN_KEYS)
        if unknown:
            raise ConfigError(f"Unknown config keys: {', '.join(unknown)}")

        base = cls.defaults(root)

        def path_value(key: str, default: Path | None) -> Path | None:
            value = data.get(key)
            if value is None:
                return default
            if not isinstance(value, str) or not value.strip():
                raise ConfigError(f"{key} must be a non-empty path string")
            p = Path(value.strip()).expanduser()
            return p if p.is_absolute() else base.root / p

        marker = data.get("marker", base.marker)
        if not isinstance(marker, str):
            raise ConfigError("marker must be a Markdown heading line, e.g. '## Changelog'")
        try:
            marker = check_marker(marker)
        except ValueError as exc:
            raise ConfigError(str(exc)) from exc

        lock_timeout = data.get("lock_timeout", base.lock_timeout)
        if isinstance(lock_timeout, bool) or not isinstance(lock_timeout, (int, float)) or lock_timeout < 0:
            raise ConfigError("lock_timeout must be a non-negative number of seconds")

        return cls(
            root=base.root,
            changelog=path_value("changelog", base.changelog),  # type: ignore[arg-type]
            manifest=path_value("manifest", base.manifest),  # type: ignore[arg-type]
            state_dir=path_value("state_dir", base.state_dir),  # type: ignore[arg-type]
            marker=marker,
            rules=path_value("rules", None),
            lock_timeout=float(lock_timeout),
        )


def find_config(start: Path) -> Path | None:
    """Find a config file by walking up from `start`."""
    cur = start.resolve()
    for p in (cur, *cur.parents):
        for name in CONFIG_FILENAMES:
            candidate = p / name
            if candidate.is_file():
                return candidate
    return None


def load_config(config_path: Path | None = None, *, root: Path | None = None) -> GovernanceConfig:
    """Load configuration.

    With no explicit file, look for one from `root` (or the working
    directory) upwards; if none exists, use defaults rooted there.
    Relative paths in the file resolve against the file's directory.
    """
    start = root or Path.cwd()
    path = config_path or find_config(start)
    if path is None:
        return GovernanceConfig.defaults(start)

    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise ConfigError(f"Cannot read config {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in {path}: {exc}") from exc

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"{path}: top level must be a mapping")
    return GovernanceConfig.from_dict(data, path.parent)
