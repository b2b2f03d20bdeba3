# summify_search/domain/services/text_analysis.py
# Pure domain services: no I/O, deterministic, no external libraries.
"""Keyword helpers shared by lexical matching and the enrichment fallback."""

from __future__ import annotations

import re
from collections.abc import Sequence

STOP_WORDS = frozenset(
    {
        "the",
        "and",
        "or",
        "but",
        "in",
        "on",
        "at",
        "to",
        "for",
        "of",
        "with",
        "by",
        "how",
        "what",
        "why",
        "when",
        "where",
    }
)

# Fixed candidate vocabulary for locally derived topics.
TOPIC_VOCABULARY: tuple[str, ...] = (
    "Leadership",
    "Strategy",
    "Management",
    "Communication",
    "Innovation",
    "Performance",
    "Development",
    "Planning",
    "Execution",
    "Growth",
    "Culture",
    "Motivation",
    "Teamwork",
    "Decision Making",
    "Productivity",
)

MAX_FALLBACK_TOPICS = 5

_NON_WORD = re.compile(r"[^\w]")


def contains(haystack: str | None, needle: str) -> bool:
    """Case-insensitive substring test (ILIKE '%needle%')."""
    if not needle:
        return False
    return needle.casefold() in (haystack or "").casefold()


def query_terms(query: str) -> list[str]:
    """Meaningful lowercase terms of a query: stop words and 1-2 letter words dropped."""
    terms: list[str] = []
    for raw in query.casefold().split():
        term = _NON_WORD.sub("", raw)
        if len(term) > 2 and term not in STOP_WORDS and term not in terms:
            terms.append(term)
    return terms


def matched_terms(query: str, *texts: str) -> list[str]:
    """Query terms present in any of ``texts``, in query order."""
    corpus = " ".join(t for t in texts if t).casefold()
    return [t for t in query_terms(query) if t in corpus]


def keyword_overlap(query: str, *texts: str) -> float:
    """Fraction of meaningful query terms found in ``texts`` (0.0 when the query has none)."""
    terms = query_terms(query)
    if not terms:
        return 0.0
    return len(matched_terms(query, *texts)) / len(terms)


def extract_snippet(
    text: str, query: str, before: int = 100, after: int = 300, fallback_len: int = 300
) -> str:
    """
    Snippet centred on the first query word found in ``text``.

    Falls back to the opening ``fallback_len`` characters when no query word occurs.
    """
    if not text:
        return ""
    lowered = text.casefold()
    for word in query.casefold().split():
        idx = lowered.find(word)
        if idx != -1:
            start = max(0, idx - before)
            end = min(len(text), idx + after)
            prefix = "..." if start > 0 else ""
            suffix = "..." if end < len(text) else ""
            return f"{prefix}{text[start:end].strip()}{suffix}"
    if len(text) <= fallback_len:
        return text
    return text[:fallback_len].rstrip() + "..."


def _has_phrase(text: str, phrase: str) -> bool:
    pattern = r"\b" + r"\s+".join(re.escape(p) for p in phrase.casefold().split()) + r"\b"
    return re.search(pattern, text) is not None


def vocabulary_topics(
    text: str,
    query: str = "",
    vocabulary: Sequence[str] = TOPIC_VOCABULARY,
    limit: int = MAX_FALLBACK_TOPICS,
) -> list[str]:
    """
    Vocabulary entries that occur (as whole words) in ``text``.

    Entries also named by the query come first; the rest keep vocabulary order.
    Every returned topic is guaranteed to be present in ``text``.
    """
    lowered = (text or "").casefold()
    present = [topic for topic in vocabulary if _has_phrase(lowered, topic)]
    q = query.casefold()
    present.sort(key=lambda topic: 0 if _has_phrase(q, topic) else 1)
    return present[:limit]


def fallback_explanation(query: str, title: str, text: str, depth: str = "basic") -> str:
    """Deterministic relevance explanation built from keyword overlap."""
    found = matched_terms(query, title, text)
    quoted = '", "'.join(found)
    if depth == "premium":
        if found:
            plural = "s" if len(found) > 1 else ""
            return (
                f'Found {len(found)} relevant term{plural} ("{quoted}") in "{title}" related to '
                f'"{query}". This chapter provides relevant context and examples for deeper '
                "understanding."
            )
        return (
            f'Chapter content aligns with the search "{query}". It offers comprehensive '
            "information and insights for research and learning."
        )
    if depth == "advanced":
        if found:
            top = '", "'.join(found[:2])
            return (
                f'Matches key terms from your search ("{top}") in the context of "{query}". '
                "This chapter provides detailed insights relevant to your research."
            )
        return (
            f'This chapter is related to "{query}" and contains in-depth content relevant '
            "to your research."
        )
    if found:
        return (
            f'Found relevant content for "{query}" in this chapter. It contains information '
            "matching your search terms."
        )
    return f'This chapter is relevant to your search for "{query}".'
