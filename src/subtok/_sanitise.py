"""
Utilities for converting symbols to and from single-field displayable strings.
"""

import unicodedata

import regex as re

_ESCAPE_PAT = re.compile(r"\\(\\|u[0-9a-fA-F]{4}|U[0-9a-fA-F]{8})?")


def _needs_escape(c: str) -> bool:
    # control, format, unassigned, surrogate and private-use codes start with
    # "C"; separators start with "Z"
    return c.isspace() or unicodedata.category(c)[0] in "CZ"


def escape_symbol(s: str) -> str:
    """
    Escape a symbol so it contains no whitespace or control characters.

    Backslashes are doubled and every other unsafe character becomes
    ``\\uXXXX`` (or ``\\UXXXXXXXX`` outside the basic multilingual plane), so
    :func:`unescape_symbol` restores the exact original string.
    """
    cleaned = []
    for c in s:
        if c == "\\":
            cleaned.append("\\\\")
        elif _needs_escape(c):
            code = ord(c)
            cleaned.append(f"\\u{code:04x}" if code <= 0xFFFF else f"\\U{code:08x}")
        else:
            cleaned.append(c)
    return "".join(cleaned)


def unescape_symbol(s: str) -> str:
    """
    Reverse :func:`escape_symbol`.

    :raises ValueError: If ``s`` contains an invalid escape sequence.
    """

    def repl(m: re.Match) -> str:
        seq = m.group(1)
        if seq is None:
            raise ValueError(f"invalid escape sequence at offset {m.start()} in {s!r}")
        if seq == "\\":
            return "\\"
        return chr(int(seq[1:], 16))

    return _ESCAPE_PAT.sub(repl, s)
