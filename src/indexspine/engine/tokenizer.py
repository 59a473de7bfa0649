"""Tokenizer: byte payload to normalized terms.

Splits a UTF-8 payload on a configurable delimiter set and reduces each
fragment to a lowercase, ASCII-letters-only term.

Filtering order per fragment (all applied to the *raw* fragment before
alpha reduction, except the last):

1. shorter than ``min_length``          → dropped
2. lowercase form in ``ignore_words``   → dropped
3. no ASCII letters left after cleaning → dropped

Example::

    >>> list(Tokenizer().tokenize(b"The Quick, Quick fox! fox."))
    ['quick', 'quick', 'fox', 'fox']

The output is a generator: one lazy pass over the input, not restartable.
"""

from __future__ import annotations

import re
import string
from collections.abc import Iterable, Iterator

from indexspine.core.errors import ConfigError

_CONTROL_CHARACTERS = "".join(chr(i) for i in range(32)) + chr(127)

DEFAULT_DELIMITERS = (
    " \t\r\n\v\f"
    + _CONTROL_CHARACTERS
    + ".,;:!?'\"`()[]{}<>/\\|*&^%$#@~+=_-"
)

DEFAULT_IGNORE_WORDS: tuple[str, ...] = (
    "a", "about", "above", "after", "again", "against", "all", "am", "an",
    "and", "any", "are", "as", "at", "be", "because", "been", "before",
    "being", "below", "between", "both", "but", "by", "can", "did", "do",
    "does", "doing", "down", "during", "each", "few", "for", "from",
    "further", "had", "has", "have", "having", "he", "her", "here", "hers",
    "herself", "him", "himself", "his", "how", "i", "if", "in", "into",
    "is", "it", "its", "itself", "just", "me", "more", "most", "my",
    "myself", "no", "nor", "not", "now", "of", "off", "on", "once", "only",
    "or", "other", "our", "ours", "ourselves", "out", "over", "own", "same",
    "she", "should", "so", "some", "such", "than", "that", "the", "their",
    "theirs", "them", "themselves", "then", "there", "these", "they",
    "this", "those", "through", "to", "too", "under", "until", "up", "very",
    "was", "we", "were", "what", "when", "where", "which", "while", "who",
    "whom", "why", "will", "with", "would", "you", "your", "yours",
    "yourself", "yourselves",
)

_ASCII_LETTERS = frozenset(string.ascii_letters)


def alpha_only(value: str) -> str:
    """Drop every character outside ``A-Z`` / ``a-z``."""
    return "".join(ch for ch in value if ch in _ASCII_LETTERS)


class Tokenizer:
    """Configurable splitter producing normalized terms.

    Args:
        min_length: Shortest raw fragment kept (must be >= 1).
        delimiters: Characters that separate terms (must be non-empty).
        ignore_words: Stop words, matched case-insensitively. ``None`` means none.

    Raises:
        ConfigError: On an empty delimiter set or ``min_length < 1``.
    """

    def __init__(
        self,
        min_length: int = 3,
        delimiters: Iterable[str] | str = DEFAULT_DELIMITERS,
        ignore_words: Iterable[str] | None = DEFAULT_IGNORE_WORDS,
    ) -> None:
        if min_length < 1:
            raise ConfigError(f"Term minimum length must be greater than zero, got {min_length}")

        delimiter_set = frozenset("".join(delimiters))
        if not delimiter_set:
            raise ConfigError("Term delimiter set must not be empty")

        self.min_length = min_length
        self.delimiters = delimiter_set
        self.ignore_words = frozenset(w.lower() for w in (ignore_words or ()) if w)
        escaped = "".join(re.escape(ch) for ch in sorted(delimiter_set))
        self._fragment_re = re.compile(f"[^{escaped}]+")

    def fragments(self, text: str) -> Iterator[str]:
        """Yield non-empty fragments between delimiters."""
        for match in self._fragment_re.finditer(text):
            yield match.group(0)

    def tokenize(self, data: bytes | str | None) -> Iterator[str]:
        """Yield normalized terms from ``data``."""
        if not data:
            return
        text = data.decode("utf-8", errors="replace") if isinstance(data, (bytes, bytearray)) else data

        for fragment in self.fragments(text):
            if len(fragment) < self.min_length:
                continue
            if fragment.lower() in self.ignore_words:
                continue
            term = alpha_only(fragment)
            if not term:
                continue
            yield term.lower()

    __call__ = tokenize

    def __repr__(self) -> str:
        return (
            f"Tokenizer(min_length={self.min_length}, "
            f"delimiters={len(self.delimiters)}, ignore_words={len(self.ignore_words)})"
        )


__all__ = [
    "DEFAULT_DELIMITERS",
    "DEFAULT_IGNORE_WORDS",
    "Tokenizer",
    "alpha_only",
]
