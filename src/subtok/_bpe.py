"""
Core Byte Pair Encoding (BPE) operations over symbol sequences.
"""

from collections import Counter
from collections.abc import Iterable

from .types import Symbol, SymbolPair


def count_pairs(
    words: Iterable[tuple[list[Symbol], int]],
    special: set[Symbol] | frozenset[Symbol] = frozenset(),
) -> Counter[SymbolPair]:
    """
    Count adjacent symbol pairs across all words.

    Each word is given with the number of times it occurs in the corpus, so a
    single scan per distinct word counts every occurrence. Pairs where either
    side is a special symbol are never counted.

    :param words: ``(symbols, frequency)`` for every distinct word.
    :param special: Symbols excluded from merging.
    :return: Pair frequencies; pairs with zero count are absent.
    """
    counts: Counter[SymbolPair] = Counter()
    for symbols, freq in words:
        for pair in zip(symbols, symbols[1:]):
            if pair[0] in special or pair[1] in special:
                continue
            counts[pair] += freq
    return counts


def select_pair(counts: Counter[SymbolPair]) -> SymbolPair | None:
    """
    Pick the most frequent pair, or ``None`` if there is nothing to merge.

    Ties go to the lexicographically smallest concatenation ``left + right``;
    pairs that concatenate to the same string are ordered by ``(left, right)``.
    """
    best: SymbolPair | None = None
    best_key: tuple[int, str, SymbolPair] | None = None
    for pair, freq in counts.items():
        if freq <= 0:
            continue
        key = (-freq, pair[0] + pair[1], pair)
        if best_key is None or key < best_key:
            best, best_key = pair, key
    return best


def merge_pair(symbols: list[Symbol], target: SymbolPair) -> list[Symbol]:
    """
    Merge all occurrences of a target pair into its concatenation.

    Scans left to right; once a pair is merged, scanning resumes after the
    merged symbol, so overlapping occurrences (``a a a``) merge only once.
    """
    if len(symbols) < 2:
        return symbols

    new_sym = target[0] + target[1]
    merged: list[Symbol] = []

    i = 0
    n = len(symbols)
    while i < n:
        # check if we can form a pair and it matches the target
        if i < n - 1 and symbols[i] == target[0] and symbols[i + 1] == target[1]:
            merged.append(new_sym)
            i += 2
        else:
            merged.append(symbols[i])
            i += 1

    return merged
