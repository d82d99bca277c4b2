"""Change classification (rules as data, predicates as code)."""

from .engine import ChangeClassifier, classify, default_rules
from .load import load_default_ruleset, load_ruleset

__all__ = [
    "ChangeClassifier",
    "classify",
    "default_rules",
    "load_default_ruleset",
    "load_ruleset",
]
