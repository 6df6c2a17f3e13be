from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Sequence, Type

from .lexer import Token, tokenize


class BrainfuckError(Exception):
    pass


class BrainfuckSyntaxError(BrainfuckError):
    """Raised when the token stream cannot be built into an instruction tree."""

    def __init__(self, message: str, position: int) -> None:
        super().__init__(f"{message} at token {position}")
        self.position = position


class UnmatchedCloseBracket(BrainfuckSyntaxError):
    def __init__(self, position: int) -> None:
        super().__init__("Unexpected token: ']'", position)


class UnmatchedOpenBracket(BrainfuckSyntaxError):
    def __init__(self, position: int) -> None:
        super().__init__("Unexpected token: '['", position)


class NestingTooDeep(BrainfuckSyntaxError):
    def __init__(self, position: int) -> None:
        super().__init__("Loop nesting too deep", position)


# === Instruction tree ===


class Instruction:
    symbol = ""


@dataclass
class MoveRight(Instruction):
    symbol = ">"


@dataclass
class MoveLeft(Instruction):
    symbol = "<"


@dataclass
class Increment(Instruction):
    symbol = "+"


@dataclass
class Decrement(Instruction):
    symbol = "-"


@dataclass
class Output(Instruction):
    symbol = "."


@dataclass
class Input(Instruction):
    symbol = ","


@dataclass
class Loop(Instruction):
    body: List[Instruction] = field(default_factory=list)
    symbol = "["


@dataclass
class NoOp(Instruction):
    pass


_LEAVES: Dict[Token, Type[Instruction]] = {
    Token.MOVE_RIGHT: MoveRight,
    Token.MOVE_LEFT: MoveLeft,
    Token.INCREMENT: Increment,
    Token.DECREMENT: Decrement,
    Token.OUTPUT: Output,
    Token.INPUT: Input,
    Token.PROGRAM_START: NoOp,
    Token.PROGRAM_END: NoOp,
}


# === Parser ===

# Parsing and execution recurse once per nesting level.
MAX_NESTING_DEPTH = 500


def parse(tokens: Sequence[Token]) -> List[Instruction]:
    """Build the instruction tree for ``tokens``.

    Matched brackets collapse into :class:`Loop` nodes whose bodies are parsed
    recursively from the slice between them. Programs nested deeper than
    ``MAX_NESTING_DEPTH`` are rejected with :class:`NestingTooDeep`.
    """
    return _parse(tokens, 0, 0)


def _parse(tokens: Sequence[Token], offset: int, level: int) -> List[Instruction]:
    # ``offset`` is the absolute index of tokens[0]; ``level`` the nesting
    # depth of this slice within the whole program.
    instructions: List[Instruction] = []
    depth = 0
    open_index = 0

    for index, token in enumerate(tokens):
        if depth > 0 and token not in (Token.OPEN_LOOP, Token.CLOSE_LOOP):
            continue

        if token is Token.OPEN_LOOP:
            if depth == 0:
                open_index = index
            depth += 1
            if level + depth > MAX_NESTING_DEPTH:
                raise NestingTooDeep(offset + index)
        elif token is Token.CLOSE_LOOP:
            if depth == 0:
                raise UnmatchedCloseBracket(offset + index)
            depth -= 1
            if depth == 0:
                body = _parse(tokens[open_index + 1 : index], offset + open_index + 1, level + 1)
                instructions.append(Loop(body))
        else:
            instructions.append(_LEAVES[token]())

    if depth != 0:
        raise UnmatchedOpenBracket(offset + open_index)

    return instructions


def compile_source(source: str) -> List[Instruction]:
    return parse(tokenize(source))


def to_source(instructions: Sequence[Instruction]) -> str:
    """Render an instruction tree back to Brainfuck text."""
    pieces: List[str] = []
    for instruction in instructions:
        if isinstance(instruction, Loop):
            pieces.append("[" + to_source(instruction.body) + "]")
        else:
            pieces.append(instruction.symbol)
    return "".join(pieces)


def count_loops(instructions: Sequence[Instruction]) -> int:
    total = 0
    for instruction in instructions:
        if isinstance(instruction, Loop):
            total += 1 + count_loops(instruction.body)
    return total


__all__ = [
    "BrainfuckError",
    "BrainfuckSyntaxError",
    "Decrement",
    "Increment",
    "Input",
    "Instruction",
    "Loop",
    "MoveLeft",
    "MoveRight",
    "MAX_NESTING_DEPTH",
    "NestingTooDeep",
    "NoOp",
    "Output",
    "UnmatchedCloseBracket",
    "UnmatchedOpenBracket",
    "compile_source",
    "count_loops",
    "parse",
    "to_source",
]
