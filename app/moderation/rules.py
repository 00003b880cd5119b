"""
Comment abuse rules.

One rule per abuse category. A rule's confidence times 100 is the comment's
severity; the strongest category wins.
"""

from __future__ import annotations

from dataclasses import dataclass

from core.rules import Rule, RuleSet, Signal, contains_any, count_matches, keyword_pattern
from moderation.types import AbuseCategory

HARASSMENT_KEYWORDS = (
    "you're pathetic",
    "you are pathetic",
    "nobody likes you",
    "you're ugly",
    "you are ugly",
    "loser",
    "shut up",
    "worthless",
)
HATE_KEYWORDS = (
    "go back to your country",
    "your kind",
    "subhuman",
    "people like you don't belong",
)
THREAT_KEYWORDS = (
    "i will hurt you",
    "i'll hurt you",
    "i'll find you",
    "i will find you",
    "you're dead",
    "kill you",
)
DEFAMATION_KEYWORDS = (
    "scammer",
    "is a fraud",
    "criminal",
    "steals from",
    "liar",
)
ENCOURAGING_HARM_KEYWORDS = (
    "kill yourself",
    "hurt yourself",
    "end your life",
    "nobody would miss you",
)


@dataclass(frozen=True)
class CommentContext:
    text: str

    @property
    def is_shouting(self) -> bool:
        letters = [char for char in self.text if char.isalpha()]
        return len(letters) >= 10 and all(char.isupper() for char in letters)


def _category_rule(
    category: str,
    keywords: tuple[str, ...],
    base: float,
    repeated: float,
) -> Rule[CommentContext]:
    return Rule(
        name=category,
        gate=lambda ctx: contains_any(ctx.text, keywords),
        signals=(
            Signal("keyword", lambda ctx: True, base),
            Signal("repeated_keywords", lambda ctx: count_matches(ctx.text, keywords) >= 2, repeated),
            Signal("shouting", lambda ctx: ctx.is_shouting, 0.05),
        ),
    )


COMMENT_ABUSE_RULES: RuleSet[CommentContext] = RuleSet(
    [
        _category_rule(AbuseCategory.ENCOURAGING_HARM, ENCOURAGING_HARM_KEYWORDS, 0.9, 0.1),
        _category_rule(AbuseCategory.THREATS, THREAT_KEYWORDS, 0.8, 0.15),
        _category_rule(AbuseCategory.HATE, HATE_KEYWORDS, 0.7, 0.15),
        _category_rule(AbuseCategory.HARASSMENT, HARASSMENT_KEYWORDS, 0.45, 0.2),
        _category_rule(AbuseCategory.DEFAMATION, DEFAMATION_KEYWORDS, 0.35, 0.15),
    ]
)


def score_comment(text: str) -> tuple[str, int, list[str]] | None:
    """Return (category, severity 0-100, signals) for the strongest match."""
    hit = COMMENT_ABUSE_RULES.best_hit(CommentContext(text=text))
    if hit is None:
        return None
    return hit.rule, round(hit.confidence * 100), hit.signals


def defamation_claims(text: str) -> list[str]:
    """Defamation keywords found in text, in keyword-list order."""
    return [keyword for keyword in DEFAMATION_KEYWORDS if keyword_pattern(keyword).search(text)]
