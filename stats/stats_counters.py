"""Scalar per-message tallies shared by every aggregate."""

from dataclasses import dataclass


def count_suffixes(text: str, suffix: str) -> int:
    """Number of whitespace-delimited words in ``text`` ending with ``suffix``."""
    return sum(1 for word in text.split() if word.endswith(suffix))


def is_all_caps(text: str) -> bool:
    """True when ``text`` has an uppercase letter and no lowercase one."""
    has_upper = False
    for c in text:
        if c.islower():
            return False
        if c.isupper():
            has_upper = True
    return has_upper


@dataclass
class TextCounters:
    words: int = 0
    letters: int = 0
    lines: int = 0
    questions: int = 0
    exclamations: int = 0
    all_caps: int = 0

    def add_message(self, message) -> None:
        text = message.text or ""
        self.lines += 1
        self.words += len(text.split())
        self.letters += len(text.replace(" ", ""))
        self.questions += count_suffixes(text, "?")
        self.exclamations += count_suffixes(text, "!")
        if is_all_caps(text):
            self.all_caps += 1

    def words_per_line(self) -> float:
        if self.lines == 0:
            return 0.0
        return self.words / self.lines

    def letters_per_line(self) -> float:
        if self.lines == 0:
            return 0.0
        return self.letters / self.lines
