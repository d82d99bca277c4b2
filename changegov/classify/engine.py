from __future__ import annotations

import logging
import re
from functools import lru_cache
from typing import Iterable, Sequence

from ..errors import ClassificationAmbiguous
from ..models import ChangeDescriptor, Classification
from .load import load_default_ruleset
from .predicates import PREDICATES, normalize_text
from .schema import RuleDef, RulesetDef

logger = logging.getLogger(__name__)

# Statements of incompatibility that make a change breaking whatever its type.
_INCOMPATIBLE_RES = tuple(
    re.compile(p)
    for p in (
        r"\bbreaking changes?\b",
        r"\b(backwards?[- ])?incompatible\b",
        r"(?:^|(?<=[,;:] )|(?<=\band ))(change[sd]?|changing)\b.*\b(signature|return type|wire format|file format|output format|schema)\b",
        r"\b(signature|return type|wire format|file format|output format|schema) change\b",
    )
)

# A negation right before a statement cancels it: "no breaking change",
# "not backwards incompatible", "non-breaking change".
_NEGATED_RE = re.compile(r"\b(no|not|non|without|never)(\s+(a|an|any|the))?[\s-]+(backwards?[- ])?$")

# Summaries that describe documentation about a change, not the change.
_DOCS_LEAD_RE = re.compile(
    r"^(document(s|ed|ing)?|describe[sd]?|describing|explain(s|ed|ing)?|mention(s|ed|ing)?)\b"
)


@lru_cache(maxsize=1)
def default_rules() -> tuple[RuleDef, ...]:
    return load_default_ruleset().rules


def _matches(rule: RuleDef, descriptor: ChangeDescriptor) -> bool:
    fn = PREDICATES.get(rule.predicate.name)
    if fn is None:
        return False
    return fn(descriptor, rule)


def states_incompatibility(text: str) -> bool:
    """True if the text itself says the change is incompatible."""
    normalized = normalize_text(text)
    if _DOCS_LEAD_RE.match(normalized):
        return False
    for pattern in _INCOMPATIBLE_RES:
        for match in pattern.finditer(normalized):
            if _NEGATED_RE.search(normalized[: match.start()]) is None:
                return True
    return False


class ChangeClassifier:
    """Ordered rule table mapping change descriptions to classifications.

    Rules are evaluated in order and the first match decides the commit
    type. Breaking-ness is decided separately: the descriptor's own flag, any
    matching rule marked breaking, or an explicit statement of
    incompatibility in the summary.
    """

    def __init__(self, rules: Iterable[RuleDef] | None = None):
        self.rules: tuple[RuleDef, ...] = tuple(rules) if rules is not None else default_rules()

    @classmethod
    def from_rulesets(cls, *rulesets: RulesetDef | None, include_defaults: bool = True) -> ChangeClassifier:
        """Chain rulesets in priority order, built-in rules last."""
        rules: list[RuleDef] = []
        for ruleset in rulesets:
            if ruleset is not None:
                rules.extend(ruleset.rules)
        if include_defaults:
            rules.extend(default_rules())
        return cls(rules)

    def match(self, descriptor: ChangeDescriptor) -> RuleDef | None:
        """Return the first rule whose predicate matches, if any."""
        for rule in self.rules:
            if _matches(rule, descriptor):
                return rule
        return None

    def is_breaking(self, descriptor: ChangeDescriptor, matched: RuleDef | None = None) -> bool:
        if descriptor.breaking:
            return True
        if matched is not None and matched.breaking:
            return True
        if any(rule.breaking and _matches(rule, descriptor) for rule in self.rules):
            return True
        return states_incompatibility(descriptor.summary)

    def classify(self, descriptor: ChangeDescriptor) -> Classification:
        if descriptor.commit_type is not None:
            breaking = self.is_breaking(descriptor)
            logger.debug("explicit type %s for %r (breaking=%s)", descriptor.commit_type.value, descriptor.summary, breaking)
            return Classification(commit_type=descriptor.commit_type, breaking=breaking)

        rule = self.match(descriptor)
        if rule is None:
            logger.debug("no rule matched %r", descriptor.summary)
            raise ClassificationAmbiguous(descriptor.summary)

        breaking = self.is_breaking(descriptor, rule)
        logger.debug("rule %s matched %r (breaking=%s)", rule.id, descriptor.summary, breaking)
        return Classification(commit_type=rule.commit_type, breaking=breaking, rule_id=rule.id)


def classify(
    descriptor: ChangeDescriptor,
    rules: Sequence[RuleDef] | RulesetDef | None = None,
) -> Classification:
    """Classify a change with the given rules (built-in table by default)."""
    if isinstance(rules, RulesetDef):
        rules = rules.rules
    return ChangeClassifier(rules).classify(descriptor)
