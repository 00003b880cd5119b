"""
Weighted rule evaluation.

A classifier is an ordered list of rules. Each rule is a gate predicate plus
weighted signals; when the gate passes, the rule's confidence is the sum of
the weights of the signals that fire, capped at 1.0. Rules can be added,
removed or reordered without touching call sites.

This is hand-tuned heuristics, not a statistical model.

Usage:
    farming = Rule(
        name="REFUND_FARMING",
        gate=lambda ctx: ctx.recent_requests >= 5,
        signals=(
            Signal("high_approval_rate", lambda ctx: ctx.approval_rate >= 0.8, 0.85),
            Signal("all_approved", lambda ctx: ctx.approval_rate == 1.0, 0.1),
        ),
    )
    rules = RuleSet([farming])
    hit = rules.best_hit(context)
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any, Generic, TypeVar

C = TypeVar("C")


@dataclass(frozen=True)
class Signal(Generic[C]):
    """One weighted observation inside a rule."""

    name: str
    predicate: Callable[[C], bool]
    weight: float


@dataclass(frozen=True)
class Rule(Generic[C]):
    """
    A named gate plus weighted signals.

    Attributes:
        name: Label recorded when the rule fires (e.g. ROMANCE_MANIPULATION)
        signals: Weighted signals summed into the confidence
        gate: Precondition; the rule never fires when it returns False
        metadata: Free-form values copied onto the hit (category, severity)
    """

    name: str
    signals: Sequence[Signal[C]]
    gate: Callable[[C], bool] = lambda _ctx: True
    metadata: dict[str, Any] = field(default_factory=dict)

    def evaluate(self, context: C) -> RuleHit | None:
        if not self.gate(context):
            return None

        matched = [signal for signal in self.signals if signal.predicate(context)]
        if not matched:
            return None

        confidence = min(1.0, sum(signal.weight for signal in matched))
        return RuleHit(
            rule=self.name,
            confidence=round(confidence, 4),
            signals=[signal.name for signal in matched],
            metadata=dict(self.metadata),
        )


@dataclass
class RuleHit:
    """Outcome of a rule that fired."""

    rule: str
    confidence: float
    signals: list[str]
    metadata: dict[str, Any] = field(default_factory=dict)


class RuleSet(Generic[C]):
    """Ordered collection of rules evaluated against one context."""

    def __init__(self, rules: Iterable[Rule[C]]):
        self.rules: list[Rule[C]] = list(rules)

    def __iter__(self):
        return iter(self.rules)

    def __len__(self) -> int:
        return len(self.rules)

    def evaluate(self, context: C) -> list[RuleHit]:
        """Return every hit, in rule order."""
        hits = []
        for rule in self.rules:
            hit = rule.evaluate(context)
            if hit is not None:
                hits.append(hit)
        return hits

    def best_hit(self, context: C) -> RuleHit | None:
        """
        Return the highest-confidence hit.

        Ties go to the rule listed first.
        """
        best: RuleHit | None = None
        for hit in self.evaluate(context):
            if best is None or hit.confidence > best.confidence:
                best = hit
        return best


@lru_cache(maxsize=512)
def keyword_pattern(keyword: str) -> re.Pattern[str]:
    """
    Whole-word, case-insensitive pattern for a keyword or phrase.

    "liar" matches "what a liar!" but not "familiar"; the words of a phrase
    may be separated by any run of whitespace.
    """
    words = (re.escape(word) for word in keyword.split())
    return re.compile(r"\b" + r"\s+".join(words) + r"\b", re.IGNORECASE)


def contains_any(text: str, keywords: Iterable[str]) -> bool:
    """Whole-word match against a keyword list."""
    text = text or ""
    return any(keyword_pattern(keyword).search(text) for keyword in keywords)


def count_matches(text: str, keywords: Iterable[str]) -> int:
    """Number of distinct keywords found in text."""
    text = text or ""
    return sum(1 for keyword in keywords if keyword_pattern(keyword).search(text))
