"""Token id to text decoding."""

import logging
from typing import TYPE_CHECKING

from ._decorators import timed
from .errors import UnknownIdError
from .types import TokenId

if TYPE_CHECKING:
    from .model import Model


def decode(model: "Model", ids: list[TokenId]) -> str:
    """
    Decode a sequence of token ids back into text.

    Without a boundary marker whitespace between words is not modelled and
    words are joined directly. With one, every marker becomes a single space
    and line break tokens come back as line breaks.

    :raises UnknownIdError: If any id is not in the vocabulary.
    """
    boundary = model.boundary
    parts: list[str] = []
    for tok in ids:
        symbol = model.vocab.symbol_of(tok)
        if symbol is None:
            raise UnknownIdError("failed to decode", token_id=tok)
        if boundary is not None and not model.vocab.is_special(symbol):
            symbol = symbol.replace(boundary, " ")
        parts.append(symbol)
    return "".join(parts)


@timed(level=logging.DEBUG)
def decode_batch(model: "Model", batch: list[list[TokenId]]) -> list[str]:
    """Decode multiple token sequences, preserving input order."""
    return [decode(model, ids) for ids in batch]
