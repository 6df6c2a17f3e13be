from __future__ import annotations

from enum import Enum
from typing import Dict, List


class Token(str, Enum):
    MOVE_RIGHT = "move_right"
    MOVE_LEFT = "move_left"
    INCREMENT = "increment"
    DECREMENT = "decrement"
    OUTPUT = "output"
    INPUT = "input"
    OPEN_LOOP = "open_loop"
    CLOSE_LOOP = "close_loop"
    PROGRAM_START = "program_start"
    PROGRAM_END = "program_end"


COMMANDS: Dict[str, Token] = {
    ">": Token.MOVE_RIGHT,
    "<": Token.MOVE_LEFT,
    "+": Token.INCREMENT,
    "-": Token.DECREMENT,
    ".": Token.OUTPUT,
    ",": Token.INPUT,
    "[": Token.OPEN_LOOP,
    "]": Token.CLOSE_LOOP,
}


def tokenize(source: str) -> List[Token]:
    """Scan ``source`` into tokens wrapped in start/end sentinels.

    Every character that is not a Brainfuck command is treated as a comment.
    """
    tokens: List[Token] = [Token.PROGRAM_START]
    for char in source:
        token = COMMANDS.get(char)
        if token is not None:
            tokens.append(token)
    tokens.append(Token.PROGRAM_END)
    return tokens


__all__ = ["COMMANDS", "Token", "tokenize"]
