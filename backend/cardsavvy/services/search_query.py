"""Builds the web-search query sent alongside each chat request.

Rules are checked in order and the first match wins. Keep the keyword lists
narrow: this is a heuristic, not a classifier.
"""
import re
from collections.abc import Callable

BASE_QUERY = "latest Indian credit cards"

TRUSTED_SITES = (
    "bankbazaar.com",
    "paisabazaar.com",
    "cardinsider.com",
    "cardexpert.in",
)

SITE_RESTRICTION = " OR ".join(f"site:{site}" for site in TRUSTED_SITES)

_COMPARE_SPLIT = re.compile(r"\bvs\b\.?|\bversus\b|\bcompare\b|\band\b")
_COMPARE_HINT = re.compile(r"\bvs\b|\bversus\b|compare")


def _mentions(*keywords: str) -> Callable[[str], bool]:
    return lambda text: any(k in text for k in keywords)


def _comparison_phrase(text: str) -> str:
    entities = [p.strip(" ,?.!") for p in _COMPARE_SPLIT.split(text)]
    entities = [e for e in entities if e]
    if not entities:
        return "credit card comparison India"
    return f"compare {' vs '.join(entities)} credit card India"


# (predicate, phrase builder) in priority order
QUERY_RULES: list[tuple[Callable[[str], bool], Callable[[str], str]]] = [
    (lambda text: bool(_COMPARE_HINT.search(text)), _comparison_phrase),
    (_mentions("cashback", "cash back"), lambda _: "best cashback credit cards India"),
    (
        _mentions("travel", "lounge"),
        lambda _: "best travel credit cards India airport lounge access",
    ),
    (_mentions("premium", "lifestyle"), lambda _: "premium lifestyle credit cards India"),
    (_mentions("business"), lambda _: "business credit cards India"),
    (
        _mentions("first card", "first credit card", "beginner", "new to credit"),
        lambda _: "best credit cards for beginners India",
    ),
    (_mentions("reward"), lambda _: "best rewards credit cards India"),
]


def enhance_search_query(message: str) -> str:
    """Derive a domain-restricted search query from the latest user message."""
    text = message.lower().strip()
    parts = [BASE_QUERY]

    for matches, phrase in QUERY_RULES:
        if matches(text):
            parts.append(phrase(text))
            break

    parts.append(f"({SITE_RESTRICTION})")
    return " ".join(parts)
