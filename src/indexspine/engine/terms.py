"""Term accumulation: merge tags and content terms into one count map."""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable


def accumulate_terms(
    terms: Iterable[str] | None,
    tags: Iterable[str] | None = None,
) -> dict[str, int]:
    """Build ``{term: occurrences}`` for one document.

    Tags are literal terms: lowercased, but not length- or alpha-filtered.
    Empty tags are skipped. Content terms are expected to come from
    :meth:`Tokenizer.tokenize` and are lowercased again defensively.

    >>> accumulate_terms(["quick", "fox", "quick"], tags=["Animals", "animals"])
    {'animals': 2, 'quick': 2, 'fox': 1}
    """
    counts: Counter[str] = Counter()

    for tag in tags or ():
        if tag:
            counts[tag.lower()] += 1

    for term in terms or ():
        if term:
            counts[term.lower()] += 1

    return dict(counts)


__all__ = [
    "accumulate_terms",
]
