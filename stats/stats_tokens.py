"""
IRC Statistics - Token Counters
================================
Frequency maps for URL-shaped and word-shaped tokens with an on-demand,
count-descending "top N" view.
"""

from __future__ import annotations

import re
from typing import Dict, List, NamedTuple, Optional, Pattern

URL_RE = re.compile(
    r"^(http|https)://"
    r"|[a-z0-9]+([\-\.]{1}[a-z0-9]+)*\.[a-z]{2,6}(:[0-9]{1,5})?(/.*)?$"
)

# anything carrying at least one letter or digit that is not URL-shaped
_WORD_RE = re.compile(r"[^\W_]")


class TopToken(NamedTuple):
    token: str
    count: int


class TokenCounter:
    """
    Counts occurrences of arbitrary string tokens.

    ``all`` is the full frequency map and the only state that is persisted;
    ``top(n)`` sorts a copy of it every time it is called.
    """

    def __init__(self, pattern: Optional[Pattern[str]] = None, exclude: Optional[Pattern[str]] = None):
        self.pattern = pattern
        self.exclude = exclude
        self.all: Dict[str, int] = {}

    def __len__(self) -> int:
        return len(self.all)

    def __contains__(self, token: str) -> bool:
        return token in self.all

    def count(self, token: str) -> int:
        return self.all.get(token, 0)

    def record(self, token: str) -> None:
        """Increment ``token`` by one, creating it at 1."""
        self.all[token] = self.all.get(token, 0) + 1

    def matches(self, word: str) -> bool:
        if self.pattern is not None and self.pattern.search(word) is None:
            return False
        if self.exclude is not None and self.exclude.search(word) is not None:
            return False
        return True

    def add_message(self, message) -> None:
        """Record every whitespace-delimited word of ``message.text`` that qualifies."""
        if not message.text:
            return
        for word in message.text.split():
            if self.matches(word):
                self.record(word)

    def top(self, n: int) -> List[TopToken]:
        """
        The ``n`` most frequent tokens, highest count first.

        ``n`` is clamped to the number of distinct tokens, so the result may
        be shorter than asked for. Equal counts keep first-seen order.
        """
        if n <= 0 or not self.all:
            return []
        ranked = sorted(self.all.items(), key=lambda item: item[1], reverse=True)
        return [TopToken(token, count) for token, count in ranked[:n]]

    def __repr__(self) -> str:
        return f"TokenCounter(tokens={len(self.all)})"


def new_url_counter() -> TokenCounter:
    return TokenCounter(URL_RE)


def new_word_counter() -> TokenCounter:
    return TokenCounter(_WORD_RE, exclude=URL_RE)
