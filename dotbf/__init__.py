from .bf_interpreter import (
    BrainfuckInterpreter,
    BrainfuckRuntimeError,
    ExecutionState,
    InputExhausted,
    InvalidInputByte,
    NestingLimitExceeded,
    PointerOutOfBounds,
    StepLimitExceeded,
    interpret,
)
from .lexer import Token, tokenize
from .parser import (
    BrainfuckError,
    BrainfuckSyntaxError,
    Instruction,
    Loop,
    NestingTooDeep,
    UnmatchedCloseBracket,
    UnmatchedOpenBracket,
    compile_source,
    parse,
)
from .visualizer import VisualizerSession

__all__ = [
    "BrainfuckError",
    "BrainfuckInterpreter",
    "BrainfuckRuntimeError",
    "BrainfuckSyntaxError",
    "ExecutionState",
    "InputExhausted",
    "Instruction",
    "InvalidInputByte",
    "Loop",
    "NestingLimitExceeded",
    "NestingTooDeep",
    "PointerOutOfBounds",
    "StepLimitExceeded",
    "Token",
    "UnmatchedCloseBracket",
    "UnmatchedOpenBracket",
    "VisualizerSession",
    "compile_source",
    "interpret",
    "parse",
    "tokenize",
]
