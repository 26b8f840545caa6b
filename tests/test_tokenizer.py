"""Unit tests for SubTok training, encode/decode and special token handling."""

import logging

import pytest

import subtok as stok
from subtok.errors import ConfigError, UnknownIdError, UnknownSymbolError
from subtok.model import WORD_CACHE_SIZE


# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def model():
    """Return a model trained until every corpus word is a single symbol."""
    return stok.train("hello world hello world", vocab_size=30)


@pytest.fixture
def unk_model():
    """Return a model that reserves an unknown token."""
    return stok.train("hello world hello world", vocab_size=30, unk_token="<unk>")


@pytest.fixture
def boundary_model():
    """Return a model that marks word starts so spaces survive decoding."""
    return stok.train(
        "hello world hello world", vocab_size=40, special_tokens=["<eos>"], boundary="Ġ"
    )


def symbols(model, ids):
    return [model.vocab.symbol_of(tok) for tok in ids]


# Training
# ---------------------------------------------------------------------------


def test_single_merge_scenario():
    """Repeated 'aa' learns exactly one merge and stops."""
    model = stok.train("aa aa aa", vocab_size=3)
    assert model.merges == (stok.MergeRule("a", "a", 0),)
    assert list(model.vocab.entries()) == [(0, "a", False), (1, "aa", False)]
    assert model.encode("aa") == [1]
    assert model.decode([1]) == "aa"


def test_stopping_early_logs_warning(caplog):
    """Running out of pairs is not an error but is reported."""
    with caplog.at_level(logging.WARNING, logger="subtok"):
        model = stok.train("aa aa aa", vocab_size=10)
    assert model.vocab_size() == 2
    assert "stopping early" in caplog.text


def test_vocab_size_reaches_target():
    """Training stops as soon as the target size is reached."""
    model = stok.train("hello world", vocab_size=8)
    assert model.vocab_size() == 8
    assert len(model.merges) == 1


def test_tie_break_prefers_smallest_concatenation():
    """Equal-frequency pairs are merged in lexicographic order of their result."""
    model = stok.train("hello world", vocab_size=8)
    assert model.merges[0].pair == ("e", "l")

    model = stok.train("cd ab", vocab_size=10)
    assert [rule.result for rule in model.merges] == ["ab", "cd"]


def test_training_is_reproducible():
    """Identical input always yields identical models."""
    text = "the quick brown fox jumps over the lazy dog the end"
    assert stok.train(text, vocab_size=40) == stok.train(text, vocab_size=40)


def test_alphabet_sorted_and_ids_contiguous(model):
    """Ids run 0..n-1, alphabet first in code point order."""
    entries = list(model.vocab.entries())
    assert [tok for tok, _, _ in entries] == list(range(model.vocab_size()))
    assert [sym for _, sym, _ in entries[:7]] == sorted("helowrd")
    assert len({sym for _, sym, _ in entries}) == len(entries)


def test_merge_results_are_concatenations(model):
    """Every merge result is left + right and registered in the vocabulary."""
    for rank, rule in enumerate(model.merges):
        assert rule.rank == rank
        assert rule.result == rule.left + rule.right
        assert rule.result in model.vocab


def test_list_corpus():
    """A list corpus trains like its newline-joined text."""
    assert stok.train(["ab ab", "ab"], vocab_size=5) == stok.train("ab ab\nab", vocab_size=5)


def test_empty_corpus():
    """An empty corpus keeps only the special tokens."""
    model = stok.train("", vocab_size=10, special_tokens=["<eos>"])
    assert list(model.vocab.entries()) == [(0, "<eos>", True)]
    assert model.merges == ()
    assert model.encode("") == []


def test_vocab_size_too_small():
    """The alphabet plus special tokens must fit in the vocabulary."""
    with pytest.raises(ConfigError) as exc:
        stok.train("abc", vocab_size=3, special_tokens=["<s>"])
    assert exc.value.min_size == 4
    assert stok.train("abc", vocab_size=4, special_tokens=["<s>"]).vocab_size() == 4


@pytest.mark.parametrize("bad", ["", "has space", "tab\there"])
def test_invalid_special_token(bad):
    with pytest.raises(ConfigError):
        stok.train("abc", vocab_size=10, special_tokens=[bad])


@pytest.mark.parametrize("bad", ["", "ab", " "])
def test_invalid_boundary(bad):
    with pytest.raises(ConfigError):
        stok.train("abc", vocab_size=10, boundary=bad)


def test_boundary_cannot_be_special():
    with pytest.raises(ConfigError):
        stok.train("abc", vocab_size=10, special_tokens=["#"], boundary="#")


# Special tokens
# ---------------------------------------------------------------------------


def test_special_token_reserved_when_absent_from_corpus():
    """A special token gets an id even if training never sees it."""
    model = stok.train("low lower lowest", vocab_size=30, special_tokens=["<eos>"])
    eos = model.vocab.id_of("<eos>")
    assert eos is not None
    assert model.encode("<eos>") == [eos]
    assert model.vocab.is_special("<eos>")


def test_special_tokens_never_merged():
    """Special tokens never appear on either side of a merge rule."""
    model = stok.train("a <s> a <s> aa<s> <s>a", vocab_size=20, special_tokens=["<s>"])
    for rule in model.merges:
        assert "<s>" not in rule.pair
    ids = model.encode("aa <s> a")
    assert ids[-2] == model.vocab.id_of("<s>")


def test_special_tokens_deduplicated_in_order():
    model = stok.train("xy", vocab_size=10, special_tokens=["<b>", "<a>", "<b>"])
    assert [sym for _, sym, special in model.vocab.entries() if special] == ["<b>", "<a>"]


def test_merge_never_produces_special_token():
    """A pair whose result is a special token is never learned."""
    model = stok.train("xab xab", vocab_size=20, special_tokens=["ab"])
    assert [rule.result for rule in model.merges] == ["xa", "xab"]
    assert model.encode("ab") == [model.vocab.id_of("ab")]
    assert model.encode("xab") == [model.vocab.id_of("xab")]


# Encode/decode
# ---------------------------------------------------------------------------


def test_encode_decode_roundtrip_single_word(model):
    """Text without whitespace round-trips exactly."""
    for text in ["hello", "world", "helloworld", "lowered", "drool"]:
        assert model.decode(model.encode(text)) == text


def test_repetitive_text_creates_merges(model):
    """Training words end up as single tokens."""
    assert len(model.encode("hello")) == 1
    assert len(model.encode("hello world hello")) == 3


def test_encode_applies_merges_in_rank_order(model):
    """Merges apply by learned rank, not by position in the word."""
    assert symbols(model, model.encode("hell")) == ["h", "ell"]
    assert symbols(model, model.encode("ohello")) == ["o", "hello"]


def test_encode_matches_module_function(model):
    text = "hello world"
    assert stok.encode(model, text) == model.encode(text)
    assert stok.decode(model, stok.encode(model, text)) == model.decode(model.encode(text))


def test_whitespace_is_lost_without_boundary(model):
    """Without a boundary marker, words are joined directly."""
    assert model.decode(model.encode("hello world")) == "helloworld"
    assert model.encode("  \n\t ") == []


def test_boundary_preserves_spaces(boundary_model):
    """With a boundary marker, single spaces between words are restored."""
    text = "hello world hello"
    assert boundary_model.decode(boundary_model.encode(text)) == text
    assert boundary_model.decode(boundary_model.encode("world  \n hello")) == "world hello"
    assert "Ġ" in boundary_model.vocab


def test_boundary_keeps_line_breaks():
    """Line breaks seen in training come back as line breaks."""
    model = stok.train("hello world\nworld hello\n", vocab_size=40, boundary="Ġ")
    assert "\n" in model.vocab

    text = "hello world\nworld\n\nhello"
    ids = model.encode(text)
    assert ids.count(model.vocab.id_of("\n")) == 3
    assert model.decode(ids) == text


def test_boundary_around_special_token(boundary_model):
    text = "hello <eos> world"
    ids = boundary_model.encode(text)
    assert boundary_model.vocab.id_of("<eos>") in ids
    assert boundary_model.decode(ids) == text


def test_unknown_character_uses_unk(unk_model):
    """Characters outside the alphabet map to the unknown token."""
    ids = unk_model.encode("hez")
    assert ids[-1] == unk_model.unk_id
    assert unk_model.decode(ids) == "he<unk>"


def test_unknown_character_raises_without_unk(model):
    with pytest.raises(UnknownSymbolError) as exc:
        model.encode("hello hez")
    assert exc.value.symbol == "z"
    assert exc.value.position == 8


def test_decode_unknown_id_raises(model):
    with pytest.raises(UnknownIdError) as exc:
        model.decode([0, 999])
    assert exc.value.token_id == 999
    with pytest.raises(UnknownIdError):
        model.decode([-1])


def test_empty_inputs(model):
    assert model.encode("") == []
    assert model.decode([]) == ""


# Batch encode/decode
# ---------------------------------------------------------------------------


def test_encode_batch_decode_batch(model):
    """Batch encode and decode match single-text results."""
    texts = ["hello", "world", "lowered"]
    encoded = stok.encode_batch(model, texts)
    assert encoded == [model.encode(text) for text in texts]
    assert stok.decode_batch(model, encoded) == texts


def test_batch_calls_are_timed(model, caplog):
    with caplog.at_level(logging.DEBUG, logger="subtok"):
        stok.decode_batch(model, stok.encode_batch(model, ["hello"]))
    assert "encode_batch took" in caplog.text
    assert "decode_batch took" in caplog.text


# Word cache
# ---------------------------------------------------------------------------


def test_word_cache_is_bounded():
    """Encoding many distinct words keeps at most WORD_CACHE_SIZE of them."""
    model = stok.train("w0 w1 w2 w3 w4 w5 w6 w7 w8 w9", vocab_size=11)
    text = " ".join(f"w{i}" for i in range(WORD_CACHE_SIZE + 100))

    ids = model.encode(text)
    assert model._merged.cache_info().currsize == WORD_CACHE_SIZE
    assert model.decode(ids) == text.replace(" ", "")
    assert model.merged("w12") == ("w", "1", "2")
