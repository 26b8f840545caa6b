"""Character-level BPE training."""

import logging
from collections import Counter
from collections.abc import Iterable

from ._bpe import count_pairs, merge_pair, select_pair
from ._decorators import timed
from ._symbols import check_boundary, check_special_tokens, iter_words, word_symbols
from .errors import ConfigError
from .model import Model
from .types import MergeRule, Symbol
from .vocab import Vocabulary

log = logging.getLogger(__name__)


def _word_counts(corpus: str, special: set[str], boundary: str | None) -> Counter[tuple[str, bool]]:
    """
    Count distinct words of the corpus.

    Words are keyed by ``(word, first)``: with a boundary marker, the first
    word of each line is symbolized without the marker and all others with it,
    and every line break is counted as a word of its own.
    """
    counts: Counter[tuple[str, bool]] = Counter()
    for match, first in iter_words(corpus, boundary, newlines=boundary is not None):
        word = match.group(0)
        # special tokens carry no boundary marker and are never split
        if word in special:
            first = True
        counts[(word, first)] += 1
    return counts


def _symbolize(word: str, first: bool, special: set[str], boundary: str | None) -> list[Symbol]:
    if word in special:
        return [word]
    return word_symbols(word, boundary, first)


@timed()
def train(
    corpus: str | list[str],
    vocab_size: int,
    special_tokens: Iterable[str] = (),
    *,
    unk_token: str | None = None,
    boundary: str | None = None,
    verbose: bool = False,
) -> Model:
    """
    Learn a BPE vocabulary and merge list from raw text.

    The initial vocabulary holds every distinct character of the corpus (in
    code point order) followed by the special tokens. Merges are then learned
    one at a time until ``vocab_size`` is reached or no pair is left to merge;
    stopping early is not an error.

    :param corpus: Training text as a single string or list of strings.
    :param vocab_size: Target vocabulary size including alphabet and special tokens.
    :param special_tokens: Tokens registered as-is and excluded from merging.
    :param unk_token: Special token reserved for characters unseen in training.
        Appended to ``special_tokens`` if it is not already listed.
    :param boundary: Single character marking word starts so decode can restore
        spaces between words. Line breaks then become a symbol of their own.
    :param verbose: Log each learned merge when ``True``.
    :returns: Trained, immutable model.
    :raises ConfigError: If the special tokens or boundary marker are malformed,
        or if ``vocab_size`` cannot hold the alphabet and special tokens.
    """
    # handle list input
    if isinstance(corpus, list):
        corpus = "\n".join(corpus)

    if isinstance(special_tokens, str):
        special_tokens = [special_tokens]
    # sets have no stable order, ids must not depend on hashing
    elif isinstance(special_tokens, (set, frozenset)):
        special_tokens = sorted(special_tokens)
    specials = check_special_tokens(list(special_tokens))
    if unk_token is not None:
        specials = check_special_tokens([*specials, unk_token])
    check_boundary(boundary)
    if boundary is not None and boundary in specials:
        raise ConfigError(f"boundary marker {boundary!r} is also a special token")
    special_set = set(specials)

    counts = _word_counts(corpus, special_set, boundary)
    # per distinct word: symbol sequence and frequency, the mutable training state
    words: list[tuple[list[Symbol], int]] = [
        (_symbolize(word, first, special_set, boundary), freq)
        for (word, first), freq in counts.items()
    ]

    alphabet: set[str] = set()
    for word, _ in counts:
        if word not in special_set:
            alphabet.update(word)
    if boundary is not None:
        alphabet.add(boundary)
    # a single-character special token takes precedence over the plain character
    alphabet -= special_set

    min_size = len(alphabet) + len(specials)
    if vocab_size < min_size:
        raise ConfigError(
            "vocab size too small for alphabet and special tokens",
            vocab_size=vocab_size,
            min_size=min_size,
        )

    vocab = Vocabulary()
    for ch in sorted(alphabet):
        vocab.add(ch)
    for tok in specials:
        vocab.add(tok, special=True)

    log.debug(
        f"initial vocabulary: {len(alphabet)} characters, {len(specials)} special tokens, "
        f"{len(words)} distinct words"
    )

    n_merges = vocab_size - len(vocab)
    merges: list[MergeRule] = []

    while len(vocab) < vocab_size:
        pair_counts = count_pairs(words, special_set)
        # a result already in the vocabulary would break the symbol/id bijection
        for taken in [p for p in pair_counts if p[0] + p[1] in vocab]:
            del pair_counts[taken]
        pair = select_pair(pair_counts)
        if pair is None:
            log.warning(
                f"no more symbol pairs to merge after {len(merges)} merges "
                f"(requested {n_merges}) stopping early"
            )
            break

        rule = MergeRule(pair[0], pair[1], len(merges))
        words = [(merge_pair(symbols, pair), freq) for symbols, freq in words]
        vocab.add(rule.result)
        merges.append(rule)

        if verbose:
            log.info(
                "merge %d/%d: %s -> %r (freq %d)",
                len(merges),
                n_merges,
                pair,
                rule.result,
                pair_counts[pair],
            )

    log.info(f"training finished: {len(merges)} merges, {len(vocab)} total tokens")

    return Model(
        vocab=vocab,
        merges=tuple(merges),
        unk_token=unk_token,
        boundary=boundary,
    )


__all__ = ["train"]
