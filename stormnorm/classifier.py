"""
Event classifier
================

Storm event labels are free text typed by many people over many decades
("TSTM WIND", "Thunderstorm Winds", "FLASH FLOODING/FLOOD", "ligntning").
`classify` maps any label onto one of a fixed set of canonical categories.

How it works:
- The label is lowercased.
- `RULES` is an ORDERED tuple of (category, substring patterns).
- Every rule is tested against the label. A matching rule overwrites the
  running result, so the LAST matching rule wins:
      "Heavy Rain and Flooding" -> rain (rule 2) -> flood (rule 8) => flood
      "Thunderstorm Wind"       -> wind (rule 1) -> thunderstorm (rule 5)
- No match at all gives `OTHER`.

Reordering `RULES` changes results for any label that hits more than one
rule, so the table is versioned with `RULESET_VERSION`.
"""

from __future__ import annotations
from dataclasses import dataclass
from functools import reduce
from typing import FrozenSet, Tuple

RULESET_VERSION = "1"

OTHER = "other"


@dataclass(frozen=True)
class Rule:
    """One canonical category and the substrings that select it."""
    label: str
    patterns: FrozenSet[str]

    def matches(self, text: str) -> bool:
        return any(p in text for p in self.patterns)


def _rule(label: str, *patterns: str) -> Rule:
    return Rule(label=label, patterns=frozenset(patterns))


RULES: Tuple[Rule, ...] = (
    _rule("wind", "wind", "wnd", "gust"),
    _rule("rain", "rain", "precipitation", "precipatation"),
    _rule("lightning", "lightning", "ligntning", "lighting"),
    _rule("hail", "hail"),
    _rule("thunderstorm", "thunderstorm", "tstm"),
    _rule("cold", "cold", "wind chill", "windchill", "freeze", "frost", "low temp", "cool", "record low"),
    _rule("winter weather / blizzard", "winter", "wintry", "ice", "blizzard", "snow", "freezing rain", "sleet"),
    _rule("flood", "flood", "fld", "rising water", "floood"),
    _rule("storm surge/tsunami", "storm surge", "tsunami"),
    _rule("rip current/high surf", "rip current", "surf", "seas"),
    _rule("avalanche/slide", "avalanche", "avalance", "mudslide", "slide", "landslump"),
    _rule("tornado", "tornado", "torndao"),
    _rule("hurricane", "hurricane", "typhoon"),
    _rule("tropical storm/depression", "tropical storm", "tropical depression"),
    _rule("wildfire", "wildfire", "forest fire", "wild fire", "brush fire", "grass fire"),
    _rule("heat", "heat", "warm", "high temp", "hot", "record high"),
    _rule("drought", "drought"),
)

CATEGORIES: Tuple[str, ...] = tuple(r.label for r in RULES)


def _normalize(raw_label: object) -> str:
    # None / NaN from the source table behave like an empty label
    if not isinstance(raw_label, str):
        return ""
    return raw_label.lower()


def classify(raw_label: object) -> str:
    """Return the canonical category for a raw event label (never fails)."""
    text = _normalize(raw_label)
    return reduce(lambda acc, rule: rule.label if rule.matches(text) else acc, RULES, OTHER)


def matching_rules(raw_label: object) -> Tuple[str, ...]:
    """Every rule label that matches, in rule order. The last one is what `classify` returns."""
    text = _normalize(raw_label)
    return tuple(r.label for r in RULES if r.matches(text))
