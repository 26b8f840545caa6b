"""
Splitting raw text into words and words into initial symbols.
"""

from collections.abc import Iterator
from typing import Final

import regex as re

from .errors import ConfigError
from .types import Symbol

NEWLINE: Final[str] = "\n"

# merges never cross a whitespace boundary, so words are maximal non-space runs
WORD_PAT = re.compile(r"\S+")
# same, but every line break is a piece of its own
LINE_PAT = re.compile(r"\n|\S+")


def iter_words(text: str, boundary: str | None = None, newlines: bool = False) -> Iterator:
    """
    Yield ``(match, first)`` per whitespace-delimited word of ``text``.

    ``first`` tells whether the word opens the text (or a line, when
    ``newlines`` is set) and so carries no boundary marker. Without a marker
    every word counts as first. With ``newlines`` each line break is yielded
    as an unmarked word of its own.
    """
    first = True
    for match in (LINE_PAT if newlines else WORD_PAT).finditer(text):
        is_break = newlines and match.group(0) == NEWLINE
        yield match, first or is_break or boundary is None
        first = is_break


def has_whitespace(s: str) -> bool:
    """Return ``True`` if ``s`` would not survive word splitting as one word."""
    return WORD_PAT.fullmatch(s) is None


def word_symbols(word: str, boundary: str | None = None, first: bool = True) -> list[Symbol]:
    """
    Split a word into single-character symbols.

    Every word but the first of a text is prefixed with the boundary marker
    when one is configured.
    """
    symbols = list(word)
    if boundary is not None and not first:
        symbols.insert(0, boundary)
    return symbols


def check_special_tokens(special_tokens: list[str] | tuple[str, ...] | set[str]) -> list[str]:
    """
    Validate special tokens and drop duplicates while keeping their order.

    :raises ConfigError: If a token is empty or contains whitespace.
    """
    seen: dict[str, None] = {}
    for tok in special_tokens:
        if not isinstance(tok, str) or has_whitespace(tok):
            raise ConfigError(
                f"special token must be a non-empty string without whitespace: {tok!r}"
            )
        seen.setdefault(tok, None)
    return list(seen)


def check_boundary(boundary: str | None) -> None:
    """
    Validate the word boundary marker.

    :raises ConfigError: If the marker is not a single non-whitespace character.
    """
    if boundary is None:
        return
    if len(boundary) != 1 or has_whitespace(boundary):
        raise ConfigError(
            f"boundary marker must be a single non-whitespace character: {boundary!r}"
        )
