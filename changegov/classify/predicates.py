from __future__ import annotations

import re
from functools import lru_cache
from typing import Callable

from ..models import ChangeDescriptor
from .schema import RuleDef

PredicateFn = Callable[[ChangeDescriptor, RuleDef], bool]

_QUOTES_RE = re.compile(r"[`'\"]")


def normalize_text(text: str) -> str:
    """Lowercase and drop quoting so `--flag` and --flag match alike."""
    return " ".join(_QUOTES_RE.sub(" ", text).lower().split())


@lru_cache(maxsize=512)
def _phrase_re(phrase: str) -> re.Pattern[str]:
    return re.compile(r"(?<!\w)" + re.escape(phrase.lower().strip()) + r"(?!\w)")


@lru_cache(maxsize=256)
def compile_pattern(pattern: str) -> re.Pattern[str]:
    return re.compile(pattern, flags=re.IGNORECASE)


def _str_list(value: object) -> list[str]:
    if isinstance(value, str):
        return [value]
    if isinstance(value, (list, tuple)):
        return [str(v) for v in value if str(v).strip()]
    return []


def _excluded(text: str, rule: RuleDef) -> bool:
    return any(_phrase_re(p).search(text) for p in _str_list(rule.predicate.params.get("unless")))


def predicate_keywords(descriptor: ChangeDescriptor, rule: RuleDef) -> bool:
    """Match when any whole word/phrase in `any` occurs in the summary."""
    text = normalize_text(descriptor.summary)
    if _excluded(text, rule):
        return False
    return any(_phrase_re(p).search(text) for p in _str_list(rule.predicate.params.get("any")))


def predicate_pattern(descriptor: ChangeDescriptor, rule: RuleDef) -> bool:
    """Match when the `pattern` regex is found in the summary."""
    text = normalize_text(descriptor.summary)
    if _excluded(text, rule):
        return False
    pattern = rule.predicate.params.get("pattern")
    if not isinstance(pattern, str) or not pattern:
        return False
    return compile_pattern(pattern).search(text) is not None


def predicate_scope_in(descriptor: ChangeDescriptor, rule: RuleDef) -> bool:
    """Match when the descriptor's scope label is one of `scopes`."""
    if not descriptor.scope:
        return False
    scopes = {s.lower().strip() for s in _str_list(rule.predicate.params.get("scopes"))}
    return descriptor.scope.lower().strip() in scopes


PREDICATES: dict[str, PredicateFn] = {
    "keywords": predicate_keywords,
    "pattern": predicate_pattern,
    "scope_in": predicate_scope_in,
}
