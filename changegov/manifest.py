"""Read the current version from a project manifest."""

from __future__ import annotations

import tomllib
from pathlib import Path

from .errors import InvalidVersion
from .version import Version


def read_project_version(pyproject_path: Path) -> str:
    """Return `project.version` from a pyproject.toml as written."""
    try:
        data = tomllib.loads(pyproject_path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        raise InvalidVersion(None, f"manifest {pyproject_path} not found") from None
    except (OSError, tomllib.TOMLDecodeError) as exc:
        raise InvalidVersion(None, f"cannot read manifest {pyproject_path}: {exc}") from exc

    version = data.get("project", {}).get("version")
    if not isinstance(version, str) or not version.strip():
        raise InvalidVersion(version, f"project.version not found in {pyproject_path}")
    return version


def read_manifest_version(pyproject_path: Path) -> Version:
    return Version.parse(read_project_version(pyproject_path))
