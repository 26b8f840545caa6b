"""
Saving and loading models as human-inspectable text records.

A model is stored as two records: the vocabulary (``id symbol special`` per
line, ascending id) and the merge list (``left right`` per line, ascending
rank). Both start with a small header so a reader can tell them apart.
"""

import logging
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path
from typing import Final

from ._sanitise import escape_symbol, unescape_symbol
from .errors import MalformedModelError, ModelLoadError, VocabularyError
from .model import Model
from .types import MergeRule
from .vocab import Vocabulary

PREFIX: Final[str] = "SubTok"
try:
    _version = version("subtok")
except PackageNotFoundError:
    _version = "dev"

VERSION: Final[str] = _version
VOCAB_SUFFIX: Final[str] = ".vocab"
MERGES_SUFFIX: Final[str] = ".merges"
MARKER: Final[str] = "---"

log = logging.getLogger(__name__)


# Serialization
# ---------------------------------------------------------------------------


def _header(kind: str) -> list[str]:
    return [f"{PREFIX} {VERSION}", f"type {kind}"]


def dumps_vocab(model: Model) -> str:
    """Render the vocabulary record of ``model``."""
    lines = _header("vocab")
    lines.append(f"unk {escape_symbol(model.unk_token or '')}")
    lines.append(f"boundary {escape_symbol(model.boundary or '')}")
    lines.append(MARKER)
    for tok, symbol, special in model.vocab.entries():
        lines.append(f"{tok} {escape_symbol(symbol)} {int(special)}")
    return "\n".join(lines) + "\n"


def dumps_merges(model: Model) -> str:
    """Render the merge list record of ``model``."""
    lines = _header("merges")
    lines.append(MARKER)
    for rule in model.merges:
        lines.append(f"{escape_symbol(rule.left)} {escape_symbol(rule.right)}")
    return "\n".join(lines) + "\n"


# Parsing
# ---------------------------------------------------------------------------


class _Reader:
    """Line cursor over one record that reports errors with their location."""

    def __init__(self, text: str, source: str | None) -> None:
        # symbols never contain raw whitespace, so "\n" is the only separator
        self.lines = text.split("\n")
        if self.lines and self.lines[-1] == "":
            self.lines.pop()
        self.pos = 0
        self.source = source

    def error(self, message: str, line_no: int | None = None) -> MalformedModelError:
        return MalformedModelError(
            message,
            model_path=self.source,
            line_no=self.pos if line_no is None else line_no,
        )

    def next(self, what: str) -> str:
        if self.pos >= len(self.lines):
            raise self.error(f"unexpected end of record, expected {what}")
        line = self.lines[self.pos].rstrip("\r")
        self.pos += 1
        return line

    def body(self):
        """Yield ``(line_no, fields)`` for the remaining lines."""
        while self.pos < len(self.lines):
            line = self.next("entry")
            yield self.pos, line.split(" ")

    def unescape(self, field: str) -> str:
        try:
            return unescape_symbol(field)
        except ValueError as e:
            raise self.error(str(e)) from e


def _read_header(reader: _Reader, kind: str) -> None:
    head = reader.next("header").split(" ")
    if len(head) != 2 or head[0] != PREFIX:
        raise reader.error(f"not a {PREFIX} record")
    if head[1] != VERSION:
        log.warning(f"model version mismatch: (expected {VERSION}) (got {head[1]})")
    rec_type = reader.next("record type")
    if rec_type != f"type {kind}":
        raise reader.error(f"record type mismatch: (expected type {kind}) (got {rec_type})")


def _read_option(reader: _Reader, name: str) -> str | None:
    line = reader.next(name)
    key, sep, value = line.partition(" ")
    if key != name or not sep or " " in value:
        raise reader.error(f"expected '{name} <value>' (got {line!r})")
    return reader.unescape(value) or None


def _read_marker(reader: _Reader) -> None:
    marker = reader.next("marker")
    if marker != MARKER:
        raise reader.error(f"sequence marker missing: (expected {MARKER}) (got {marker})")


def _parse_vocab(text: str, source: str | None) -> tuple[Vocabulary, str | None, str | None]:
    reader = _Reader(text, source)
    _read_header(reader, "vocab")
    unk_token = _read_option(reader, "unk")
    boundary = _read_option(reader, "boundary")
    _read_marker(reader)

    vocab = Vocabulary()
    for line_no, fields in reader.body():
        if len(fields) != 3:
            raise reader.error(f"expected 'id symbol special' (got {fields!r})", line_no)
        raw_id, raw_symbol, raw_flag = fields
        # only plain decimal ids, as written by dumps_vocab
        if not (raw_id.isascii() and raw_id.isdigit()) or raw_id != str(int(raw_id)):
            raise reader.error(f"token id is not a number: {raw_id}", line_no)
        tok = int(raw_id)
        if raw_flag not in ("0", "1"):
            raise reader.error(f"special flag must be 0 or 1: {raw_flag}", line_no)
        if tok != len(vocab):
            if 0 <= tok < len(vocab):
                raise reader.error(f"duplicate token id: {tok}", line_no)
            raise reader.error(
                f"token ids must be contiguous: (expected {len(vocab)}) (got {tok})", line_no
            )
        try:
            vocab.add(reader.unescape(raw_symbol), special=raw_flag == "1")
        except VocabularyError as e:
            raise reader.error(str(e), line_no) from e
    vocab.freeze()
    return vocab, unk_token, boundary


def _parse_merges(text: str, source: str | None, vocab: Vocabulary) -> list[MergeRule]:
    reader = _Reader(text, source)
    _read_header(reader, "merges")
    _read_marker(reader)

    merges: list[MergeRule] = []
    for line_no, fields in reader.body():
        if len(fields) != 2:
            raise reader.error(f"expected 'left right' (got {fields!r})", line_no)
        left, right = (reader.unescape(f) for f in fields)
        for operand in (left, right):
            if operand not in vocab:
                raise reader.error(f"merge references unknown symbol: {operand!r}", line_no)
        merges.append(MergeRule(left, right, len(merges)))
    return merges


def loads(vocab_text: str, merges_text: str, source: str | None = None) -> Model:
    """
    Rebuild a model from its two records.

    :param vocab_text: Vocabulary record as produced by :func:`dumps_vocab`.
    :param merges_text: Merge record as produced by :func:`dumps_merges`.
    :param source: Name reported in error messages.
    :raises MalformedModelError: If either record is malformed or the two are
        inconsistent with each other. No partial model is returned.
    """
    vocab, unk_token, boundary = _parse_vocab(vocab_text, source)
    merges = _parse_merges(merges_text, source, vocab)
    try:
        return Model(vocab=vocab, merges=tuple(merges), unk_token=unk_token, boundary=boundary)
    except VocabularyError as e:
        raise MalformedModelError(f"inconsistent model: {e}", model_path=source) from e


# Files
# ---------------------------------------------------------------------------


def _paths(file_prefix: str | Path) -> tuple[Path, Path]:
    prefix = Path(file_prefix)
    return prefix.with_name(prefix.name + VOCAB_SUFFIX), prefix.with_name(
        prefix.name + MERGES_SUFFIX
    )


def save(model: Model, file_prefix: str | Path) -> None:
    """
    Save a model to disk.

    Creates two files: ``<file_prefix>.vocab`` with the id/symbol table and
    ``<file_prefix>.merges`` with the merge rules in rank order.

    :param model: Model to save.
    :param file_prefix: Path prefix for output files.
    """
    vocab_path, merges_path = _paths(file_prefix)
    # create directory if does not exist
    vocab_path.parent.mkdir(parents=True, exist_ok=True)

    log.info(f"saving model to {file_prefix}")
    log.debug(f"saving {len(model.vocab)} tokens and {len(model.merges)} merge rules")

    with vocab_path.open("w", encoding="utf-8", newline="\n") as f:
        f.write(dumps_vocab(model))
    with merges_path.open("w", encoding="utf-8", newline="\n") as f:
        f.write(dumps_merges(model))

    log.info("model saved successfully")


def load(file_prefix: str | Path) -> Model:
    """
    Load a model previously written by :func:`save`.

    :param file_prefix: Path prefix used when saving.
    :raises ModelLoadError: If either file is missing.
    :raises MalformedModelError: If the records are corrupted or inconsistent.
    """
    vocab_path, merges_path = _paths(file_prefix)
    for path in (vocab_path, merges_path):
        if not path.exists():
            raise ModelLoadError("model filepath does not exist", model_path=str(path))

    log.info(f"loading model from {file_prefix}")

    with vocab_path.open("r", encoding="utf-8", newline="") as f:
        vocab_text = f.read()
    with merges_path.open("r", encoding="utf-8", newline="") as f:
        merges_text = f.read()

    model = loads(vocab_text, merges_text, source=str(file_prefix))

    log.info(
        f"model loaded successfully: {len(model.special_tokens)} special tokens, "
        f"{len(model.merges)} merge rules, {len(model.vocab)} total tokens"
    )
    return model
