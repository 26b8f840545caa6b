"""
Core types for subword tokenization.
"""

from typing import NamedTuple, TypeAlias

Symbol: TypeAlias = str
TokenId: TypeAlias = int
SymbolPair: TypeAlias = tuple[Symbol, Symbol]


class MergeRule(NamedTuple):
    """A learned rewrite of two adjacent symbols into their concatenation."""

    left: Symbol
    right: Symbol
    rank: int

    @property
    def pair(self) -> SymbolPair:
        return (self.left, self.right)

    @property
    def result(self) -> Symbol:
        return self.left + self.right
