"""
Manipulation patterns screened in messages sent to creators.

Each pattern is a Rule over a MessageContext. A pattern matches when any of
its keywords or its regex is found; the screening confidence is the mean
severity weight of everything that matched, not the per-rule confidence.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from core.rules import Rule, RuleSet, Signal, contains_any
from safety.types import PatternSeverity, SafetyDimension, SafetyEventType


@dataclass(frozen=True)
class MessageContext:
    text: str


def _pattern(
    name: str,
    *,
    keywords: tuple[str, ...],
    severity: str,
    event_type: str,
    dimension: str,
    regex: str | None = None,
) -> Rule[MessageContext]:
    signals = [Signal("keyword", lambda ctx: contains_any(ctx.text, keywords), 1.0)]
    if regex is not None:
        compiled = re.compile(regex, re.IGNORECASE)
        signals.append(Signal("regex", lambda ctx: bool(compiled.search(ctx.text)), 1.0))
    return Rule(
        name=name,
        signals=signals,
        metadata={
            "severity": severity,
            "event_type": event_type,
            "dimension": dimension,
        },
    )


GUILT_TRIP = _pattern(
    "GUILT_TRIP",
    keywords=(
        "after everything i've done",
        "after all i spent",
        "i thought you cared",
        "you don't care about me",
        "i spent so much on you",
        "you're ignoring me",
    ),
    severity=PatternSeverity.MEDIUM,
    event_type=SafetyEventType.EMOTIONAL_FOR_TOKENS,
    dimension=SafetyDimension.TONE_AND_BOUNDARIES,
)

FAKE_ULTIMATUM = _pattern(
    "FAKE_ULTIMATUM",
    keywords=(
        "last chance",
        "or i'm leaving",
        "or i'll never talk to you again",
        "or i unsubscribe",
    ),
    regex=r"\bif you don'?t\b.{0,40}\b(pay|send|reply|answer|call)\b",
    severity=PatternSeverity.HIGH,
    event_type=SafetyEventType.PAYMENT_PRESSURE,
    dimension=SafetyDimension.PAYMENT_ETHICS,
)

REPUTATION_THREAT = _pattern(
    "REPUTATION_THREAT",
    keywords=(
        "i'll expose you",
        "i will expose you",
        "tell everyone",
        "leak your",
        "ruin your reputation",
        "post your pictures",
    ),
    severity=PatternSeverity.CRITICAL,
    event_type=SafetyEventType.THREATS,
    dimension=SafetyDimension.PLATFORM_SAFETY,
)

PARASOCIAL_LEVERAGE = _pattern(
    "PARASOCIAL_LEVERAGE",
    keywords=(
        "you're my girlfriend",
        "you're my boyfriend",
        "you belong to me",
        "we have something special",
        "only one who understands me",
    ),
    severity=PatternSeverity.MEDIUM,
    event_type=SafetyEventType.EMOTIONAL_FOR_TOKENS,
    dimension=SafetyDimension.RESPECTING_CONSENT,
)

FEAR_MANIPULATION = _pattern(
    "FEAR_MANIPULATION",
    keywords=(
        "you'll regret",
        "you will regret",
        "something bad will happen",
        "watch your back",
        "i know where you live",
    ),
    severity=PatternSeverity.HIGH,
    event_type=SafetyEventType.THREATS,
    dimension=SafetyDimension.PLATFORM_SAFETY,
)

MANIPULATION_PATTERNS: RuleSet[MessageContext] = RuleSet(
    [
        GUILT_TRIP,
        FAKE_ULTIMATUM,
        REPUTATION_THREAT,
        PARASOCIAL_LEVERAGE,
        FEAR_MANIPULATION,
    ]
)
