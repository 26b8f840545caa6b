"""Text to token id encoding with a learned merge list."""

import logging
from typing import TYPE_CHECKING

from ._bpe import merge_pair
from ._decorators import timed
from ._symbols import NEWLINE, iter_words, word_symbols
from .errors import UnknownSymbolError
from .types import Symbol, TokenId

if TYPE_CHECKING:
    from .model import Model

log = logging.getLogger(__name__)


def apply_merges(model: "Model", symbols: list[Symbol]) -> list[Symbol]:
    """
    Apply learned merges to one word's symbols in ascending rank order.

    At each step the lowest-rank rule matching any adjacent pair is applied to
    every non-overlapping occurrence, which reproduces what training did to
    the same word.
    """
    while len(symbols) >= 2:
        best: tuple[Symbol, Symbol] | None = None
        best_rank: int | None = None
        for pair in zip(symbols, symbols[1:]):
            rank = model.rank_of(pair)
            if rank is not None and (best_rank is None or rank < best_rank):
                best, best_rank = pair, rank
        # no learned merge applies anymore
        if best is None:
            break
        symbols = merge_pair(symbols, best)
    return symbols


def merge_word(model: "Model", word: str, first: bool) -> tuple[Symbol, ...]:
    """Return the symbols of ``word`` after all applicable merges."""
    return tuple(apply_merges(model, word_symbols(word, model.boundary, first)))


def encode(model: "Model", text: str) -> list[TokenId]:
    """
    Encode text into a sequence of token ids.

    Words are whitespace-delimited and encoded independently. A word equal to
    a special token is emitted as that token's id without merging. Characters
    missing from the vocabulary map to the model's unknown token. Line breaks
    are kept as their own token when the model has a boundary marker and
    learned one, otherwise they separate words like any other whitespace.

    :param model: Trained or loaded model.
    :param text: Text to encode.
    :returns: Token ids in word order.
    :raises UnknownSymbolError: If a character is not in the vocabulary and
        the model reserves no unknown token.
    """
    vocab = model.vocab
    boundary = model.boundary
    unk_id = model.unk_id
    specials = vocab.special_tokens
    newlines = boundary is not None and NEWLINE in vocab

    ids: list[TokenId] = []
    for match, first in iter_words(text, boundary, newlines):
        word = match.group(0)

        if word in specials:
            # keep the word boundary in front of the special token
            if not first:
                ids.append(vocab.id_of(boundary))
            ids.append(vocab.id_of(word))
            continue

        for symbol in model.merged(word, first):
            tok = vocab.id_of(symbol)
            if tok is None:
                if unk_id is None:
                    raise UnknownSymbolError(
                        "symbol not in vocabulary and no unknown token reserved",
                        symbol=symbol,
                        position=match.start() + word.find(symbol),
                    )
                log.debug(f"unknown symbol {symbol!r} encoded as {model.unk_token!r}")
                tok = unk_id
            ids.append(tok)
    return ids


@timed(level=logging.DEBUG)
def encode_batch(model: "Model", texts: list[str]) -> list[list[TokenId]]:
    """Encode multiple texts, preserving input order."""
    return [encode(model, text) for text in texts]
