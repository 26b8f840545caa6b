"""Command-line front end: train, encode, decode, import and inspect models."""

import argparse
import logging
import sys
from pathlib import Path

from ._sanitise import escape_symbol
from .errors import SubTokError
from .gpt2 import GPT2_BOUNDARY, load_gpt2
from .persistence import load, save
from .trainer import train

log = logging.getLogger(__name__)

DEFAULT_UNK = "<unk>"


def _cmd_train(args: argparse.Namespace) -> None:
    corpus = Path(args.corpus).read_text(encoding="utf-8")
    log.info(f"number of chars {len(corpus)}")
    model = train(
        corpus,
        args.vocab_size,
        args.special,
        unk_token=None if args.no_unk else args.unk,
        boundary=args.boundary,
        verbose=args.verbose,
    )
    save(model, args.prefix)


def _cmd_encode(args: argparse.Namespace) -> None:
    model = load(args.prefix)
    print(" ".join(str(tok) for tok in model.encode(args.text)))


def _cmd_decode(args: argparse.Namespace) -> None:
    model = load(args.prefix)
    print(model.decode(args.ids))


def _cmd_import_gpt2(args: argparse.Namespace) -> None:
    model = load_gpt2(
        args.vocab_json,
        args.merges_txt,
        boundary=None if args.no_boundary else args.boundary,
        unk_token=args.unk,
    )
    save(model, args.prefix)


def _cmd_inspect(args: argparse.Namespace) -> None:
    model = load(args.prefix)
    print(f"vocab size: {model.vocab_size()}")
    print(f"merges: {len(model.merges)}")
    print(f"special tokens: {', '.join(sorted(model.special_tokens)) or '-'}")
    print(f"unknown token: {model.unk_token or '-'}")
    print(f"boundary marker: {model.boundary or '-'}")
    for rule in model.merges[: args.top]:
        left, right = escape_symbol(rule.left), escape_symbol(rule.right)
        print(f"[{rule.rank}] [{left}][{right}] -> {escape_symbol(rule.result)}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="subtok", description="Character-level BPE subword tokenizer."
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log every merge.")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("train", help="Learn a model from a UTF-8 text file.")
    p.add_argument("corpus", help="Training text file.")
    p.add_argument("prefix", help="Output path prefix (.vocab and .merges are added).")
    p.add_argument("--vocab-size", type=int, required=True, help="Target vocabulary size.")
    p.add_argument(
        "--special", action="append", default=[], help="Special token (repeatable)."
    )
    p.add_argument("--unk", default=DEFAULT_UNK, help="Unknown token (default: %(default)s).")
    p.add_argument("--no-unk", action="store_true", help="Reserve no unknown token.")
    p.add_argument("--boundary", default=None, help="Word boundary marker, e.g. 'Ġ'.")
    p.set_defaults(func=_cmd_train)

    p = sub.add_parser("encode", help="Encode text into token ids.")
    p.add_argument("prefix", help="Model path prefix.")
    p.add_argument("text", help="Text to encode.")
    p.set_defaults(func=_cmd_encode)

    p = sub.add_parser("decode", help="Decode token ids into text.")
    p.add_argument("prefix", help="Model path prefix.")
    p.add_argument("ids", type=int, nargs="*", help="Token ids.")
    p.set_defaults(func=_cmd_decode)

    p = sub.add_parser("import-gpt2", help="Convert GPT-2 vocab.json and merges.txt files.")
    p.add_argument("vocab_json", help="Token to id JSON file.")
    p.add_argument("merges_txt", help="Ranked merge list.")
    p.add_argument("prefix", help="Output path prefix.")
    p.add_argument(
        "--boundary", default=GPT2_BOUNDARY, help="Word start marker (default: %(default)s)."
    )
    p.add_argument("--no-boundary", action="store_true", help="Files use no word start marker.")
    p.add_argument("--unk", default=None, help="Vocabulary token used for unknown characters.")
    p.set_defaults(func=_cmd_import_gpt2)

    p = sub.add_parser("inspect", help="Summarize a saved model.")
    p.add_argument("prefix", help="Model path prefix.")
    p.add_argument("--top", type=int, default=20, help="Number of merges to show.")
    p.set_defaults(func=_cmd_inspect)

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%H:%M:%S",
    )
    try:
        args.func(args)
    except (SubTokError, OSError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
