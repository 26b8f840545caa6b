"""SubTok: character-level BPE subword tokenization library."""

from .decoder import decode, decode_batch
from .encoder import encode, encode_batch
from .errors import (
    ConfigError,
    DecodeError,
    EncodeError,
    MalformedModelError,
    ModelLoadError,
    SubTokError,
    UnknownIdError,
    UnknownSymbolError,
    VocabularyError,
)
from .gpt2 import load_gpt2
from .model import Model
from .persistence import dumps_merges, dumps_vocab, load, loads, save
from .trainer import train
from .types import MergeRule
from .vocab import Vocabulary

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("subtok")
except PackageNotFoundError:
    __version__ = "dev"

__all__ = [
    "Model",
    "Vocabulary",
    "MergeRule",
    "train",
    "encode",
    "encode_batch",
    "decode",
    "decode_batch",
    "save",
    "load",
    "dumps_vocab",
    "dumps_merges",
    "loads",
    "load_gpt2",
    "SubTokError",
    "ConfigError",
    "VocabularyError",
    "EncodeError",
    "UnknownSymbolError",
    "DecodeError",
    "UnknownIdError",
    "ModelLoadError",
    "MalformedModelError",
]
