"""
Immutable tokenizer model: a vocabulary together with its ordered merge list.
"""

import functools
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Final

from .errors import VocabularyError
from .types import MergeRule, Symbol, SymbolPair, TokenId
from .vocab import Vocabulary

# distinct words whose merged symbols are memoised per model
WORD_CACHE_SIZE: Final[int] = 4096


@dataclass(frozen=True)
class Model:
    """
    Learned BPE model shared read-only by encode, decode and persistence.

    The vocabulary and merge list are validated against each other on
    construction, so every ``Model`` in circulation satisfies:

    - ids run alphabet characters first, then special tokens, then merge
      results in rank order,
    - each merge rule's operands are single characters or results of earlier
      rules, and no operand is a special token,
    - ranks run ``0..n-1`` in list order and results are unique,
    - every non-special symbol longer than one character is produced by
      exactly one merge rule.
    """

    vocab: Vocabulary
    merges: tuple[MergeRule, ...] = ()
    unk_token: Symbol | None = None
    boundary: Symbol | None = None
    # (left, right) -> rank, used by the encoder to pick the earliest merge
    _ranks: dict[SymbolPair, int] = field(
        init=False, repr=False, compare=False, default_factory=dict
    )
    # (word, first) -> symbols after merging, a bounded LRU filled by the encoder
    _merged: Callable[[str, bool], tuple[Symbol, ...]] = field(
        init=False, repr=False, compare=False
    )

    def __post_init__(self) -> None:
        from .encoder import merge_word

        object.__setattr__(self, "merges", tuple(self.merges))
        self._validate()
        self._ranks.update({rule.pair: rule.rank for rule in self.merges})
        self.vocab.freeze()

        @functools.lru_cache(maxsize=WORD_CACHE_SIZE)
        def merged(word: str, first: bool) -> tuple[Symbol, ...]:
            return merge_word(self, word, first)

        object.__setattr__(self, "_merged", merged)

    def _validate(self) -> None:
        """
        Check the vocabulary/merge-list invariants.

        :raises VocabularyError: On the first violated invariant.
        """
        vocab = self.vocab
        # id of the first merge result
        base = len(vocab) - len(self.merges)
        if base < 0:
            raise VocabularyError(
                f"{len(self.merges)} merge rules for {len(vocab)} vocabulary entries"
            )

        seen_special = False
        for tok, symbol, special in vocab.entries():
            if tok >= base:
                break
            if special:
                seen_special = True
            elif len(symbol) > 1:
                raise VocabularyError(
                    "symbol is neither a single character nor a merge result",
                    symbol=symbol,
                    token_id=tok,
                )
            elif seen_special:
                raise VocabularyError(
                    "alphabet character listed after special tokens",
                    symbol=symbol,
                    token_id=tok,
                )

        results: set[Symbol] = set()
        for expected_rank, rule in enumerate(self.merges):
            if rule.rank != expected_rank:
                raise VocabularyError(
                    f"merge rank {rule.rank} out of order (expected {expected_rank})"
                )
            for operand in rule.pair:
                if operand not in vocab:
                    raise VocabularyError(
                        f"merge {expected_rank} references unknown symbol", symbol=operand
                    )
                if vocab.is_special(operand):
                    raise VocabularyError(
                        f"merge {expected_rank} uses a special token", symbol=operand
                    )
                if len(operand) > 1 and operand not in results:
                    raise VocabularyError(
                        f"merge {expected_rank} uses a symbol no earlier merge produced",
                        symbol=operand,
                    )
            result = rule.result
            if result not in vocab:
                raise VocabularyError(
                    f"merge {expected_rank} result missing from vocabulary", symbol=result
                )
            if vocab.is_special(result):
                raise VocabularyError(
                    f"merge {expected_rank} result is a special token", symbol=result
                )
            if result in results:
                raise VocabularyError(
                    f"merge {expected_rank} result produced twice", symbol=result
                )
            if vocab.id_of(result) != base + expected_rank:
                raise VocabularyError(
                    f"merge {expected_rank} result out of id order "
                    f"(expected id {base + expected_rank})",
                    symbol=result,
                    token_id=vocab.id_of(result),
                )
            results.add(result)

        if self.unk_token is not None and not vocab.is_special(self.unk_token):
            raise VocabularyError(
                "unknown token is not a registered special token", symbol=self.unk_token
            )
        if self.boundary is not None:
            if len(self.boundary) != 1 or self.boundary not in vocab:
                raise VocabularyError(
                    "boundary marker is not a registered character", symbol=self.boundary
                )
            if vocab.is_special(self.boundary):
                raise VocabularyError(
                    "boundary marker cannot be a special token", symbol=self.boundary
                )

    @property
    def unk_id(self) -> TokenId | None:
        """Id reserved for unknown characters, if any."""
        if self.unk_token is None:
            return None
        return self.vocab.id_of(self.unk_token)

    @property
    def special_tokens(self) -> frozenset[Symbol]:
        return self.vocab.special_tokens

    def rank_of(self, pair: SymbolPair) -> int | None:
        """Return the rank of the merge rule for ``pair``, or ``None``."""
        return self._ranks.get(pair)

    def merged(self, word: str, first: bool = True) -> tuple[Symbol, ...]:
        """Return the symbols ``word`` encodes to, memoised per model."""
        return self._merged(word, first)

    def vocab_size(self) -> int:
        """Return the number of tokens in the vocabulary."""
        return len(self.vocab)

    def encode(self, text: str) -> list[TokenId]:
        """Encode text into a sequence of token ids."""
        from .encoder import encode

        return encode(self, text)

    def decode(self, ids: list[TokenId]) -> str:
        """Decode a sequence of token ids back into text."""
        from .decoder import decode

        return decode(self, ids)

    def save(self, file_prefix: str | Path) -> None:
        """Write the model to ``<file_prefix>.vocab`` and ``<file_prefix>.merges``."""
        from .persistence import save

        save(self, file_prefix)

    @classmethod
    def load(cls, file_prefix: str | Path) -> "Model":
        """Read a model previously written with :meth:`save`."""
        from .persistence import load

        return load(file_prefix)
