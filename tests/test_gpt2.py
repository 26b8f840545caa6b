"""Tests for importing GPT-2 style vocab.json and merges.txt files."""

import json
import logging

import pytest

import subtok as stok
from subtok.errors import MalformedModelError, ModelLoadError

GPT2_VOCAB = {"a": 0, "b": 1, "Ġ": 2, "ab": 3, "Ġab": 4, "<|endoftext|>": 5}
GPT2_MERGES = "#version: 0.2\na b\nĠ ab\n"


@pytest.fixture
def gpt2_files(tmp_path):
    """Write a tiny GPT-2 style model and return its two paths."""
    vocab_path = tmp_path / "vocab.json"
    merges_path = tmp_path / "merges.txt"
    vocab_path.write_text(json.dumps(GPT2_VOCAB), encoding="utf-8")
    merges_path.write_text(GPT2_MERGES, encoding="utf-8")
    return vocab_path, merges_path


def test_load_gpt2(gpt2_files, caplog):
    with caplog.at_level(logging.WARNING, logger="subtok"):
        model = stok.load_gpt2(*gpt2_files)

    assert model.merges == (stok.MergeRule("a", "b", 0), stok.MergeRule("Ġ", "ab", 1))
    assert model.boundary == "Ġ"
    assert model.special_tokens == frozenset({"<|endoftext|>"})
    # <|endoftext|> moves in front of the merge results
    assert list(model.vocab) == ["a", "b", "Ġ", "<|endoftext|>", "ab", "Ġab"]
    assert "renumbered 3 token ids" in caplog.text

    ids = model.encode("ab ab <|endoftext|>")
    assert ids == [4, 5, 2, 3]
    assert model.decode(ids) == "ab ab <|endoftext|>"


def test_imported_model_saves_and_loads(gpt2_files, tmp_path):
    model = stok.load_gpt2(*gpt2_files)
    model.save(tmp_path / "converted")
    assert stok.load(tmp_path / "converted") == model


def test_merges_over_missing_tokens_skipped(gpt2_files, caplog):
    vocab_path, merges_path = gpt2_files
    merges_path.write_text("#version: 0.2\nx y\na b\nĠ ab\n", encoding="utf-8")
    with caplog.at_level(logging.WARNING, logger="subtok"):
        model = stok.load_gpt2(vocab_path, merges_path)
    assert [rule.rank for rule in model.merges] == [0, 1]
    assert "skipped 1 merge rules" in caplog.text


def test_without_boundary(tmp_path):
    vocab_path = tmp_path / "vocab.json"
    merges_path = tmp_path / "merges.txt"
    vocab_path.write_text(json.dumps({"l": 0, "o": 1, "lo": 2}), encoding="utf-8")
    merges_path.write_text("l o\n", encoding="utf-8")

    model = stok.load_gpt2(vocab_path, merges_path, boundary=None)
    assert model.encode("lol") == [2, 0]


@pytest.mark.parametrize(
    "vocab_text, merges_text",
    [
        # not json
        ("{not json", GPT2_MERGES),
        # not a token -> id object
        (json.dumps(["a", "b"]), GPT2_MERGES),
        (json.dumps({"a": "0"}), GPT2_MERGES),
        # merge result missing from the vocabulary
        (json.dumps({"a": 0, "b": 1, "Ġ": 2}), "a b\n"),
        # three fields on a merge line
        (json.dumps(GPT2_VOCAB), "a b c\n"),
        # boundary marker missing from the vocabulary
        (json.dumps({"a": 0, "b": 1, "ab": 2}), "a b\n"),
    ],
)
def test_malformed_gpt2_files_rejected(tmp_path, vocab_text, merges_text):
    vocab_path = tmp_path / "vocab.json"
    merges_path = tmp_path / "merges.txt"
    vocab_path.write_text(vocab_text, encoding="utf-8")
    merges_path.write_text(merges_text, encoding="utf-8")
    with pytest.raises(MalformedModelError):
        stok.load_gpt2(vocab_path, merges_path)


def test_missing_gpt2_files(tmp_path):
    with pytest.raises(ModelLoadError):
        stok.load_gpt2(tmp_path / "vocab.json", tmp_path / "merges.txt")
