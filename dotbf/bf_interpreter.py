from __future__ import annotations

from dataclasses import dataclass, field
from typing import BinaryIO, Iterable, Iterator, List, Optional, Sequence, Union

from .parser import (
    BrainfuckError,
    Decrement,
    Increment,
    Input,
    Instruction,
    Loop,
    MoveLeft,
    MoveRight,
    NoOp,
    Output,
    compile_source,
)

TAPE_LENGTH = 30000

InputData = Union[str, Iterable[int], BinaryIO, None]


class BrainfuckRuntimeError(BrainfuckError, RuntimeError):
    """Base class for failures raised while a program is executing."""


class PointerOutOfBounds(BrainfuckRuntimeError):
    pass


class InputExhausted(BrainfuckRuntimeError):
    """Raised when ``,`` cannot obtain a byte from the input source."""


class InvalidInputByte(BrainfuckRuntimeError):
    """Raised when the input source yields something other than a byte value."""


class NestingLimitExceeded(BrainfuckRuntimeError):
    pass


class StepLimitExceeded(BrainfuckRuntimeError):
    """Raised when Brainfuck execution exceeds the configured step budget."""


@dataclass
class ExecutionState:
    step: int
    command: Optional[str]
    depth: int
    pointer: int
    tape_start: int
    tape: List[int]
    output: bytes


def to_input_bytes(data: str) -> bytes:
    return data.encode("utf-8")


def _stream_bytes(stream: BinaryIO) -> Iterator[int]:
    while True:
        try:
            chunk = stream.read(1)
        except OSError as exc:
            raise InputExhausted(f"Failed to read input: {exc}") from exc
        if not chunk:
            return
        yield chunk[0]


def _input_source(input_data: InputData) -> Iterator[int]:
    if input_data is None:
        return iter(())
    if isinstance(input_data, str):
        return iter(to_input_bytes(input_data))
    if hasattr(input_data, "read"):
        return _stream_bytes(input_data)
    return iter(input_data)


@dataclass
class BrainfuckInterpreter:
    tape_length: int = TAPE_LENGTH

    tape: bytearray = field(init=False, repr=False)
    pointer: int = field(init=False, repr=False)
    output_buffer: bytearray = field(init=False, repr=False)
    steps: int = field(init=False, repr=False)

    def __post_init__(self) -> None:
        if self.tape_length < 1:
            raise ValueError("tape_length must be positive")
        self.reset()

    def reset(self) -> None:
        self.tape = bytearray(self.tape_length)
        self.pointer = 0
        self.output_buffer = bytearray()
        self.steps = 0
        self._input: Iterator[int] = iter(())
        self._sink: Optional[BinaryIO] = None
        self._max_steps: Optional[int] = None

    def _prepare(
        self,
        input_data: InputData,
        max_steps: Optional[int],
        output: Optional[BinaryIO],
    ) -> None:
        self.reset()
        self._input = _input_source(input_data)
        self._max_steps = max_steps
        self._sink = output

    def run(
        self,
        code: str,
        input_data: InputData = None,
        max_steps: Optional[int] = None,
        output: Optional[BinaryIO] = None,
    ) -> bytes:
        instructions = compile_source(code)
        return self.execute(
            instructions, input_data=input_data, max_steps=max_steps, output=output
        )

    def execute(
        self,
        instructions: Sequence[Instruction],
        input_data: InputData = None,
        max_steps: Optional[int] = None,
        output: Optional[BinaryIO] = None,
    ) -> bytes:
        """Run a parsed program on a fresh tape and return everything it printed.

        When ``output`` is given each byte is written there as soon as it is
        produced instead, so a late failure leaves earlier output in place and
        the returned value is empty.
        """
        self._prepare(input_data, max_steps, output)
        try:
            self.interpret(instructions)
        except RecursionError as exc:
            raise NestingLimitExceeded("Loop nesting too deep to execute") from exc
        finally:
            if output is not None:
                output.flush()
        return bytes(self.output_buffer)

    def interpret(self, instructions: Sequence[Instruction]) -> None:
        for instruction in instructions:
            if isinstance(instruction, Loop):
                while self._loop_condition():
                    self.interpret(instruction.body)
            elif not isinstance(instruction, NoOp):
                self._count_step()
                self._execute_instruction(instruction)

    def step(
        self,
        code: str,
        input_data: InputData = None,
        max_steps: Optional[int] = None,
        tape_window: int = 10,
    ) -> Iterator[ExecutionState]:
        instructions = compile_source(code)
        self._prepare(input_data, max_steps, None)
        try:
            yield from self._walk(instructions, 0, tape_window)
        except RecursionError as exc:
            raise NestingLimitExceeded("Loop nesting too deep to execute") from exc
        # Emit final snapshot indicating completion
        yield self.snapshot(None, 0, tape_window)

    def _walk(
        self,
        instructions: Sequence[Instruction],
        depth: int,
        tape_window: int,
    ) -> Iterator[ExecutionState]:
        for instruction in instructions:
            if isinstance(instruction, Loop):
                while True:
                    entered = self._loop_condition()
                    yield self.snapshot(instruction.symbol, depth, tape_window)
                    if not entered:
                        break
                    yield from self._walk(instruction.body, depth + 1, tape_window)
            elif not isinstance(instruction, NoOp):
                self._count_step()
                self._execute_instruction(instruction)
                yield self.snapshot(instruction.symbol, depth, tape_window)

    def _count_step(self) -> None:
        if self._max_steps is not None and self.steps >= self._max_steps:
            raise StepLimitExceeded("Brainfuck program exceeded allowed step count")
        self.steps += 1

    def _loop_condition(self) -> bool:
        self._count_step()
        return self.tape[self.pointer] != 0

    def _execute_instruction(self, instruction: Instruction) -> None:
        if isinstance(instruction, MoveRight):
            if self.pointer + 1 >= self.tape_length:
                raise PointerOutOfBounds(
                    f"Pointer moved beyond the tape length ({self.tape_length})."
                )
            self.pointer += 1
        elif isinstance(instruction, MoveLeft):
            if self.pointer == 0:
                raise PointerOutOfBounds("Pointer moved before start of tape.")
            self.pointer -= 1
        elif isinstance(instruction, Increment):
            self.tape[self.pointer] = (self.tape[self.pointer] + 1) % 256
        elif isinstance(instruction, Decrement):
            self.tape[self.pointer] = (self.tape[self.pointer] - 1) % 256
        elif isinstance(instruction, Output):
            self._emit(self.tape[self.pointer])
        elif isinstance(instruction, Input):
            self.tape[self.pointer] = self._read_byte()
        else:
            raise TypeError(f"Unknown instruction: {instruction!r}")

    def _emit(self, value: int) -> None:
        if self._sink is not None:
            self._sink.write(bytes((value,)))
        else:
            self.output_buffer.append(value)

    def _read_byte(self) -> int:
        # Anything already printed may be a prompt for this read.
        if self._sink is not None:
            self._sink.flush()
        try:
            value = next(self._input)
        except StopIteration:
            raise InputExhausted("Input exhausted while executing ','") from None
        if not isinstance(value, int) or not 0 <= value <= 255:
            raise InvalidInputByte(f"Input value {value!r} is not a byte (0-255)")
        return value

    def snapshot(self, command: Optional[str], depth: int, tape_window: int) -> ExecutionState:
        start = max(0, self.pointer - tape_window)
        end = min(self.tape_length, self.pointer + tape_window + 1)
        return ExecutionState(
            step=self.steps,
            command=command,
            depth=depth,
            pointer=self.pointer,
            tape_start=start,
            tape=list(self.tape[start:end]),
            output=bytes(self.output_buffer),
        )


def interpret(
    instructions: Sequence[Instruction],
    tape_length: int = TAPE_LENGTH,
    input_data: InputData = None,
    output: Optional[BinaryIO] = None,
    max_steps: Optional[int] = None,
) -> BrainfuckInterpreter:
    """Execute ``instructions`` on a fresh interpreter and return it.

    The returned interpreter exposes the final ``tape``, ``pointer`` and
    ``output_buffer`` of the run; the buffer stays empty when ``output`` is given.
    """
    interpreter = BrainfuckInterpreter(tape_length=tape_length)
    interpreter.execute(instructions, input_data=input_data, max_steps=max_steps, output=output)
    return interpreter


__all__ = [
    "BrainfuckInterpreter",
    "BrainfuckRuntimeError",
    "ExecutionState",
    "InputExhausted",
    "InvalidInputByte",
    "NestingLimitExceeded",
    "PointerOutOfBounds",
    "StepLimitExceeded",
    "TAPE_LENGTH",
    "interpret",
    "to_input_bytes",
]
