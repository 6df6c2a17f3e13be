from __future__ import annotations

import argparse
import shlex
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence

from .bf_interpreter import (
    TAPE_LENGTH,
    BrainfuckInterpreter,
    BrainfuckRuntimeError,
    ExecutionState,
    to_input_bytes,
)
from .parser import BrainfuckSyntaxError, compile_source, to_source


@dataclass
class VisualizerSession:
    code: str
    input_template: bytes
    tape_window: int = 10
    max_steps: Optional[int] = None
    history_limit: int = 200
    tape_length: int = TAPE_LENGTH

    def __post_init__(self) -> None:
        # Fails fast on unbalanced brackets, before any stepping.
        self.program = to_source(compile_source(self.code))
        self.history: List[ExecutionState] = []
        self._init_interpreter()

    def _init_interpreter(self) -> None:
        self.interpreter = BrainfuckInterpreter(tape_length=self.tape_length)
        self.step_iter = self.interpreter.step(
            self.code,
            input_data=bytes(self.input_template),
            max_steps=self.max_steps,
            tape_window=self.tape_window,
        )
        self.finished = False
        self.error: Optional[str] = None
        self._record_state(self.interpreter.snapshot(None, 0, self.tape_window))

    def restart(self) -> None:
        self.history.clear()
        self._init_interpreter()

    def _record_state(self, state: ExecutionState) -> None:
        self.history.append(state)
        if len(self.history) > self.history_limit:
            self.history.pop(0)
        self.last_state = state

    def step_forward(self, count: int = 1) -> Sequence[ExecutionState]:
        """Advance up to ``count`` steps; runtime errors finish the session and propagate."""
        states: List[ExecutionState] = []
        for _ in range(max(0, count)):
            if self.finished:
                break
            try:
                state = next(self.step_iter)
            except StopIteration:
                self.finished = True
                break
            except BrainfuckRuntimeError as exc:
                self.finished = True
                self.error = str(exc)
                raise
            self._record_state(state)
            states.append(state)
            if state.command is None:
                self.finished = True
                break
        return states

    def run(self, limit: Optional[int] = None) -> Sequence[ExecutionState]:
        states: List[ExecutionState] = []
        while limit is None or len(states) < limit:
            step_states = self.step_forward(1)
            if not step_states:
                break
            states.extend(step_states)
        return states

    def current_state(self) -> ExecutionState:
        return self.last_state

    def is_finished(self) -> bool:
        return self.finished


def format_state(state: ExecutionState) -> str:
    lines: List[str] = []
    cmd_display = state.command if state.command is not None else "(init)"
    lines.append(
        f"step={state.step} command={cmd_display!r} depth={state.depth} pointer={state.pointer}"
    )
    if state.output:
        lines.append(f"output={state.output!r}")
    tape_parts: List[str] = []
    for idx, value in enumerate(state.tape):
        absolute = state.tape_start + idx
        cell_repr = f"{absolute}:{value:03}"
        if absolute == state.pointer:
            tape_parts.append(f"[{cell_repr}]")
        else:
            tape_parts.append(f" {cell_repr} ")
    lines.append("tape=" + " ".join(tape_parts))
    return "\n".join(lines)


def run_repl(session: VisualizerSession) -> None:
    print("dotbf visualizer (type 'help' for commands)")
    print(f"program={session.program or '(empty)'}")
    _print_state(session.current_state())
    while True:
        try:
            line = input("(viz) ").strip()
        except EOFError:
            print()
            break
        if not line:
            continue
        parts = shlex.split(line)
        command = parts[0].lower()
        args = parts[1:]
        try:
            if command in {"n", "next"}:
                count = max(1, int(args[0])) if args else 1
                states = session.step_forward(count)
                if states:
                    _print_state(states[-1])
                elif session.is_finished():
                    print("Program has finished.")
            elif command in {"r", "run"}:
                limit = int(args[0]) if args else None
                states = session.run(limit)
                if states:
                    _print_state(states[-1])
                if session.is_finished():
                    print("Program has finished.")
            elif command == "state":
                _print_state(session.current_state())
            elif command == "history":
                count = int(args[0]) if args else 10
                for state in session.history[-count:]:
                    _print_state(state)
            elif command == "restart":
                session.restart()
                print("Session restarted.")
                _print_state(session.current_state())
            elif command in {"quit", "exit"}:
                break
            elif command == "help":
                _print_help()
            else:
                print("Unknown command; see 'help'.")
        except ValueError:
            print("Invalid number.", file=sys.stderr)
        except BrainfuckRuntimeError as exc:
            print(f"Runtime error: {exc}", file=sys.stderr)


def _print_state(state: ExecutionState) -> None:
    print("-" * 40)
    print(format_state(state))


def _print_help() -> None:
    print(
        "Commands:\n"
        "  next [N]    : advance N steps (default 1)\n"
        "  run [N]     : run to completion or for N steps\n"
        "  state       : show the current state\n"
        "  history [N] : show the last N states\n"
        "  restart     : reset the session\n"
        "  quit/exit   : leave the visualizer\n"
    )


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="dotbf visualizer")
    parser.add_argument("source", help="Path to a Brainfuck source file")
    parser.add_argument("--input", default="", help="Input string supplied to the program")
    parser.add_argument(
        "--max-steps",
        type=int,
        default=5_000_000,
        help="Step limit (default: 5,000,000)",
    )
    parser.add_argument("--tape-window", type=int, default=10, help="Cells shown each side of the pointer")
    parser.add_argument("--history-limit", type=int, default=200, help="Number of states kept in history")
    parser.add_argument(
        "--tape-length",
        type=int,
        default=TAPE_LENGTH,
        help=f"Number of tape cells (default: {TAPE_LENGTH})",
    )
    args = parser.parse_args(argv)

    try:
        source_text = Path(args.source).read_text(encoding="utf-8")
    except OSError as exc:
        print(f"Cannot open file: {exc}", file=sys.stderr)
        return 1

    try:
        session = VisualizerSession(
            source_text,
            input_template=to_input_bytes(args.input),
            tape_window=args.tape_window,
            max_steps=args.max_steps,
            history_limit=args.history_limit,
            tape_length=args.tape_length,
        )
    except BrainfuckSyntaxError as exc:
        print(f"Syntax error: {exc}", file=sys.stderr)
        return 2
    except ValueError as exc:
        print(str(exc), file=sys.stderr)
        return 1

    run_repl(session)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
