"""
Import of pretrained GPT-2 style ``vocab.json`` and ``merges.txt`` files.

``vocab.json`` maps every token string to an id. ``merges.txt`` lists one
``left right`` pair per line, optionally after a ``#version`` line, with the
rank given by line order. GPT-2 marks word starts with ``Ġ``, which is used as
the boundary marker by default.
"""

import json
import logging
from pathlib import Path
from typing import Final

from .errors import MalformedModelError, ModelLoadError, VocabularyError
from .model import Model
from .types import MergeRule, Symbol
from .vocab import Vocabulary

GPT2_BOUNDARY: Final[str] = "Ġ"

log = logging.getLogger(__name__)


def _read_vocab(path: Path) -> dict[Symbol, int]:
    with path.open("r", encoding="utf-8") as f:
        try:
            loaded = json.load(f)
        except json.JSONDecodeError as e:
            raise MalformedModelError(
                f"invalid vocabulary json: {e.msg}", model_path=str(path), line_no=e.lineno
            ) from e
    if not isinstance(loaded, dict) or not all(
        isinstance(k, str) and isinstance(v, int) for k, v in loaded.items()
    ):
        raise MalformedModelError(
            "vocabulary json must map token strings to integer ids", model_path=str(path)
        )
    return loaded


def _read_merges(path: Path, file_vocab: dict[Symbol, int]) -> list[MergeRule]:
    merges: list[MergeRule] = []
    skipped = 0
    with path.open("r", encoding="utf-8") as f:
        for line_no, line in enumerate(f, start=1):
            if line_no == 1 and line.startswith("#version"):
                continue
            fields = line.split()
            if not fields:
                continue
            if len(fields) != 2:
                raise MalformedModelError(
                    f"expected 'left right' (got {line.strip()!r})",
                    model_path=str(path),
                    line_no=line_no,
                )
            left, right = fields
            # pairs over tokens the vocabulary lacks can never fire
            if left not in file_vocab or right not in file_vocab:
                skipped += 1
                continue
            merges.append(MergeRule(left, right, len(merges)))
    if skipped:
        log.warning(f"skipped {skipped} merge rules over tokens missing from the vocabulary")
    return merges


def load_gpt2(
    vocab_path: str | Path,
    merges_path: str | Path,
    *,
    boundary: str | None = GPT2_BOUNDARY,
    unk_token: str | None = None,
) -> Model:
    """
    Build a model from a GPT-2 style vocabulary and merge list.

    Ids are laid out the way training lays them out: single characters in
    file id order, then every other non-merge token as a special token, then
    merge results by rank. Where the file numbers tokens differently (GPT-2
    puts ``<|endoftext|>`` last) the ids are renumbered and a warning is logged.

    :param vocab_path: JSON object mapping token strings to ids.
    :param merges_path: Ranked merge list, one ``left right`` pair per line.
    :param boundary: Word start marker used by the files, or ``None``.
    :param unk_token: Token of the vocabulary to use for unknown characters.
    :raises ModelLoadError: If either file is missing.
    :raises MalformedModelError: If a file cannot be parsed or the two files
        do not form a consistent model.
    """
    vocab_path, merges_path = Path(vocab_path), Path(merges_path)
    for path in (vocab_path, merges_path):
        if not path.exists():
            raise ModelLoadError("model filepath does not exist", model_path=str(path))

    log.info(f"importing GPT-2 model from {vocab_path} and {merges_path}")

    file_vocab = _read_vocab(vocab_path)
    merges = _read_merges(merges_path, file_vocab)

    results = {rule.result for rule in merges}
    by_id = sorted((tok for tok in file_vocab if tok not in results), key=file_vocab.get)
    entries = [(tok, False) for tok in by_id if len(tok) == 1]
    entries += [(tok, True) for tok in by_id if len(tok) != 1]
    entries += [(rule.result, False) for rule in merges if rule.result in file_vocab]

    try:
        model = Model(
            vocab=Vocabulary.from_entries(entries),
            merges=tuple(merges),
            unk_token=unk_token,
            boundary=boundary,
        )
    except VocabularyError as e:
        raise MalformedModelError(f"inconsistent model: {e}", model_path=str(vocab_path)) from e

    moved = sum(1 for tok, symbol, _ in model.vocab.entries() if file_vocab[symbol] != tok)
    if moved:
        log.warning(f"renumbered {moved} token ids to character, special, merge order")
    log.info(
        f"imported {len(model.vocab)} tokens, {len(model.special_tokens)} special tokens "
        f"and {len(model.merges)} merge rules"
    )
    return model


__all__ = ["GPT2_BOUNDARY", "load_gpt2"]
