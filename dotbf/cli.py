from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Optional

from .bf_interpreter import (
    TAPE_LENGTH,
    BrainfuckInterpreter,
    BrainfuckRuntimeError,
    to_input_bytes,
)
from .parser import BrainfuckSyntaxError

EXIT_USAGE = 1
EXIT_SYNTAX_ERROR = 2
EXIT_RUNTIME_ERROR = 3


def _read_source(path: str) -> str:
    source_path = Path(path)
    if not source_path.exists():
        raise FileNotFoundError(f"Source file not found: {path}")
    return source_path.read_text(encoding="utf-8")


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        prog="dotbf",
        usage="dotbf <FILE PATH>",
        description="Run a Brainfuck program",
    )
    parser.add_argument("source", help="Path to a .bf source file")
    parser.add_argument(
        "--input",
        help="Input string supplied to the program (default: read stdin on demand)",
        default=None,
    )
    parser.add_argument(
        "--tape-length",
        type=int,
        default=TAPE_LENGTH,
        help=f"Number of tape cells (default: {TAPE_LENGTH})",
    )
    parser.add_argument(
        "--max-steps",
        type=int,
        default=None,
        help="Abort after this many executed instructions",
    )
    args = parser.parse_args(argv)

    if not args.source.endswith(".bf"):
        print("Invalid file type (.bf expected)", file=sys.stderr)
        return EXIT_USAGE

    try:
        source_text = _read_source(args.source)
    except (OSError, UnicodeDecodeError) as exc:
        print(str(exc), file=sys.stderr)
        return EXIT_USAGE

    if args.input is None:
        input_data = sys.stdin.buffer
    else:
        input_data = to_input_bytes(args.input)

    try:
        interpreter = BrainfuckInterpreter(tape_length=args.tape_length)
    except ValueError as exc:
        print(str(exc), file=sys.stderr)
        return EXIT_USAGE

    try:
        interpreter.run(
            source_text,
            input_data=input_data,
            max_steps=args.max_steps,
            output=sys.stdout.buffer,
        )
    except BrainfuckSyntaxError as exc:
        print(f"Syntax error: {exc}", file=sys.stderr)
        return EXIT_SYNTAX_ERROR
    except BrainfuckRuntimeError as exc:
        print(f"Runtime error: {exc}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
