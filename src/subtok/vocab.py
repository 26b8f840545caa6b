"""
Bidirectional symbol <-> token id table.
"""

import logging
from collections.abc import Iterable, Iterator

from .errors import VocabularyError
from .types import Symbol, TokenId

log = logging.getLogger(__name__)


class Vocabulary:
    """
    Symbol to id bijection with ids assigned contiguously from 0.

    Symbols are added in the order they are introduced (alphabet, special
    tokens, then merges). Once frozen the table is read-only.
    """

    def __init__(self) -> None:
        # token id -> symbol, index is the id
        self._symbols: list[Symbol] = []
        # symbol -> token id
        self._ids: dict[Symbol, TokenId] = {}
        self._special: set[Symbol] = set()
        self._frozen = False

    @classmethod
    def from_entries(cls, entries: Iterable[tuple[Symbol, bool]]) -> "Vocabulary":
        """Build a frozen vocabulary from ``(symbol, is_special)`` pairs in id order."""
        vocab = cls()
        for symbol, special in entries:
            vocab.add(symbol, special=special)
        vocab.freeze()
        return vocab

    def add(self, symbol: Symbol, special: bool = False) -> TokenId:
        """
        Register a new symbol under the next free id.

        :raises VocabularyError: If the vocabulary is frozen, the symbol is empty
            or already registered.
        """
        if self._frozen:
            raise VocabularyError("vocabulary is frozen", symbol=symbol)
        if not symbol:
            raise VocabularyError("symbol must be a non-empty string", symbol=symbol)
        if symbol in self._ids:
            raise VocabularyError(
                "symbol already registered", symbol=symbol, token_id=self._ids[symbol]
            )
        tok = len(self._symbols)
        self._symbols.append(symbol)
        self._ids[symbol] = tok
        if special:
            self._special.add(symbol)
        return tok

    def freeze(self) -> None:
        """Make the vocabulary read-only."""
        self._frozen = True
        log.debug(f"froze vocabulary with {len(self)} tokens ({len(self._special)} special)")

    @property
    def frozen(self) -> bool:
        return self._frozen

    def id_of(self, symbol: Symbol) -> TokenId | None:
        """Return the id of ``symbol`` or ``None`` if it is not registered."""
        return self._ids.get(symbol)

    def symbol_of(self, tok: TokenId) -> Symbol | None:
        """Return the symbol for ``tok`` or ``None`` if the id is out of range."""
        if 0 <= tok < len(self._symbols):
            return self._symbols[tok]
        return None

    def is_special(self, symbol: Symbol) -> bool:
        return symbol in self._special

    @property
    def special_tokens(self) -> frozenset[Symbol]:
        return frozenset(self._special)

    def entries(self) -> Iterator[tuple[TokenId, Symbol, bool]]:
        """Yield ``(id, symbol, is_special)`` in ascending id order."""
        for tok, symbol in enumerate(self._symbols):
            yield tok, symbol, symbol in self._special

    def __len__(self) -> int:
        return len(self._symbols)

    def __contains__(self, symbol: object) -> bool:
        return symbol in self._ids

    def __iter__(self) -> Iterator[Symbol]:
        return iter(self._symbols)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Vocabulary):
            return NotImplemented
        return self._symbols == other._symbols and self._special == other._special

    def __hash__(self) -> int:
        return hash((tuple(self._symbols), frozenset(self._special)))

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(size={len(self)}, special={len(self._special)})"
