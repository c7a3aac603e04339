# services/pattern_rules.py
"""
Ordered (pattern, extractor) cascades.

A cascade is a tuple of PatternRule evaluated in order. Each rule walks its matches in
document order and hands them to its extractor; the first value an extractor accepts
wins. Rule order is the tie-break: a more specific rule listed earlier always beats a
later one, regardless of where its match sits in the text.
"""

import re
from dataclasses import dataclass
from typing import Callable, Iterable, Optional, Pattern

# Receives a match, returns the extracted value or None to keep looking.
Extractor = Callable[['re.Match'], Optional[str]]


@dataclass(frozen=True)
class PatternRule:
    name: str
    pattern: Pattern
    extract: Extractor
    first_only: bool = True  # only the leftmost match is considered


@dataclass(frozen=True)
class RuleHit:
    rule_name: str
    value: str


def rule(name: str, regex: str, extract: Extractor, flags: int = 0, first_only: bool = True) -> PatternRule:
    return PatternRule(name=name, pattern=re.compile(regex, flags), extract=extract, first_only=first_only)


def group(index: int = 1) -> Extractor:
    """Extractor returning one capture group, stripped, or None when empty."""
    def _extract(match):
        value = match.group(index)
        value = value.strip() if value else ''
        return value or None
    return _extract


def first_match(rules: Iterable[PatternRule], text: str) -> Optional[RuleHit]:
    for candidate in rules:
        for match in candidate.pattern.finditer(text):
            value = candidate.extract(match)
            if value:
                return RuleHit(candidate.name, value)
            if candidate.first_only:
                break
    return None
