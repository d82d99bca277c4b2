from __future__ import annotations

import re
import tomllib
from importlib import resources
from pathlib import Path
from typing import Any

from ..errors import RulesetError
from ..models import CommitType
from .predicates import PREDICATES
from .schema import Predicate, RuleDef, RulesetDef

DEFAULT_RULES_RESOURCE = "default_rules.toml"


def _coerce_dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def parse_ruleset(data: dict[str, Any], *, source: str = "<ruleset>") -> RulesetDef:
    """Build a ruleset from decoded TOML data.

    Rules are data, predicates are code: every rule names a registered
    predicate and the commit type it assigns when the predicate matches.
    """
    ruleset_id = str(data.get("ruleset_id", "")).strip()
    if not ruleset_id:
        raise RulesetError(f"{source}: ruleset_id is required")

    try:
        version = int(data.get("version", 0))
    except (TypeError, ValueError):
        version = 0
    if version <= 0:
        raise RulesetError(f"{source}: version must be a positive integer")

    rules: list[RuleDef] = []
    seen: set[str] = set()
    for idx, raw in enumerate(data.get("rules", [])):
        if not isinstance(raw, dict):
            raise RulesetError(f"{source}: rules[{idx}] must be a table")

        rule_id = str(raw.get("id", "")).strip()
        if not rule_id:
            raise RulesetError(f"{source}: rules[{idx}] is missing an id")
        if rule_id in seen:
            raise RulesetError(f"{source}: duplicate rule id {rule_id!r}")
        seen.add(rule_id)

        type_name = str(raw.get("type", "")).strip().lower()
        try:
            commit_type = CommitType(type_name)
        except ValueError:
            allowed = ", ".join(t.value for t in CommitType)
            raise RulesetError(f"{source}: rule {rule_id!r} has unknown type {type_name!r} (allowed: {allowed})") from None

        pred_raw = _coerce_dict(raw.get("predicate"))
        pred_name = str(pred_raw.get("name", "")).strip()
        if pred_name not in PREDICATES:
            raise RulesetError(f"{source}: rule {rule_id!r} uses unknown predicate {pred_name!r}")
        pred_params = _coerce_dict(pred_raw.get("params"))

        pattern = pred_params.get("pattern")
        if isinstance(pattern, str):
            try:
                re.compile(pattern)
            except re.error as exc:
                raise RulesetError(f"{source}: rule {rule_id!r} has an invalid pattern: {exc}") from exc

        description = raw.get("description")
        rules.append(
            RuleDef(
                id=rule_id,
                commit_type=commit_type,
                predicate=Predicate(name=pred_name, params=pred_params),
                breaking=bool(raw.get("breaking", False)),
                description=str(description) if isinstance(description, str) else None,
            )
        )

    return RulesetDef(
        ruleset_id=ruleset_id,
        version=version,
        description=(str(data.get("description")) if isinstance(data.get("description"), str) else None),
        rules=tuple(rules),
    )


def load_ruleset(path: Path) -> RulesetDef:
    """Load a ruleset from a TOML file."""
    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise RulesetError(f"{path}: cannot read ruleset: {exc}") from exc
    except tomllib.TOMLDecodeError as exc:
        raise RulesetError(f"{path}: invalid TOML: {exc}") from exc
    return parse_ruleset(data, source=str(path))


def load_default_ruleset() -> RulesetDef:
    """Load the built-in rule table shipped with the package."""
    text = resources.files(__package__).joinpath(DEFAULT_RULES_RESOURCE).read_text(encoding="utf-8")
    return parse_ruleset(tomllib.loads(text), source=DEFAULT_RULES_RESOURCE)
