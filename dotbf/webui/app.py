from __future__ import annotations

from typing import List, Optional

from fastapi import FastAPI, HTTPException, Response, status
from pydantic import BaseModel, Field

from dotbf.bf_interpreter import (
    TAPE_LENGTH,
    BrainfuckInterpreter,
    BrainfuckRuntimeError,
    ExecutionState,
    to_input_bytes,
)
from dotbf.parser import BrainfuckSyntaxError

from .session import SessionRecord, SessionStore

MAX_STEPS_LIMIT = 10_000_000
MAX_TAPE_LENGTH = 1_000_000
# Starlette renamed the 422 constant; the code itself is stable.
HTTP_422 = 422


def _decode_output(data: bytes) -> str:
    # latin-1 maps every byte to exactly one character.
    return data.decode("latin-1")


def _state_to_dict(state: ExecutionState) -> dict:
    return {
        "step": state.step,
        "command": state.command,
        "depth": state.depth,
        "pointer": state.pointer,
        "tape_start": state.tape_start,
        "tape": list(state.tape),
        "output": _decode_output(state.output),
    }


class RunRequest(BaseModel):
    code: str
    input: str = ""
    max_steps: int = Field(default=100_000, ge=1, le=MAX_STEPS_LIMIT)
    tape_length: int = Field(default=TAPE_LENGTH, ge=1, le=MAX_TAPE_LENGTH)


class RunResponse(BaseModel):
    output: str
    output_bytes: List[int]
    steps: int


class SessionConfiguration(BaseModel):
    code: str
    input: str = ""
    tape_window: int = Field(default=10, ge=0)
    max_steps: int = Field(default=100_000, ge=1, le=MAX_STEPS_LIMIT)
    history_limit: int = Field(default=200, ge=1)
    tape_length: int = Field(default=TAPE_LENGTH, ge=1, le=MAX_TAPE_LENGTH)


class SessionState(BaseModel):
    step: int
    command: Optional[str]
    depth: int
    pointer: int
    tape_start: int
    tape: List[int]
    output: str


class SessionPayload(BaseModel):
    session_id: str
    code: str
    program: str
    state: SessionState
    history: List[SessionState]
    finished: bool
    history_size: int
    error: Optional[str]


class StepRequest(BaseModel):
    count: int = Field(default=1, ge=1)


class StepResponse(SessionPayload):
    states: List[SessionState]


class SessionRunRequest(BaseModel):
    limit: Optional[int] = Field(default=None, ge=1)


def create_app(store: Optional[SessionStore] = None) -> FastAPI:
    session_store = store or SessionStore()
    app = FastAPI(title="dotbf API", version="0.1.0")

    def _serialize_states(states: List[ExecutionState]) -> List[SessionState]:
        return [SessionState(**_state_to_dict(state)) for state in states]

    def _build_payload(record: SessionRecord) -> dict:
        session = record.session
        return {
            "session_id": record.session_id,
            "code": session.code,
            "program": session.program,
            "state": SessionState(**_state_to_dict(session.current_state())),
            "history": _serialize_states(session.history),
            "finished": session.is_finished(),
            "history_size": len(session.history),
            "error": session.error,
        }

    def _get_record(session_id: str) -> SessionRecord:
        try:
            return session_store.get(session_id)
        except KeyError as exc:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc

    @app.post("/api/run", response_model=RunResponse)
    def run_program(payload: RunRequest) -> RunResponse:
        interpreter = BrainfuckInterpreter(tape_length=payload.tape_length)
        try:
            output = interpreter.run(
                payload.code,
                input_data=to_input_bytes(payload.input),
                max_steps=payload.max_steps,
            )
        except BrainfuckSyntaxError as exc:
            raise HTTPException(
                status_code=HTTP_422,
                detail=str(exc),
            ) from exc
        except BrainfuckRuntimeError as exc:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=str(exc),
            ) from exc
        return RunResponse(
            output=_decode_output(output),
            output_bytes=list(output),
            steps=interpreter.steps,
        )

    @app.post("/api/session", response_model=SessionPayload, status_code=status.HTTP_201_CREATED)
    def create_session(payload: SessionConfiguration) -> SessionPayload:
        try:
            record = session_store.create_session(
                code=payload.code,
                input_template=to_input_bytes(payload.input),
                tape_window=payload.tape_window,
                max_steps=payload.max_steps,
                history_limit=payload.history_limit,
                tape_length=payload.tape_length,
            )
        except BrainfuckSyntaxError as exc:
            raise HTTPException(
                status_code=HTTP_422,
                detail=str(exc),
            ) from exc
        return SessionPayload(**_build_payload(record))

    @app.get("/api/session/{session_id}", response_model=SessionPayload)
    def get_session(session_id: str) -> SessionPayload:
        return SessionPayload(**_build_payload(_get_record(session_id)))

    @app.post("/api/session/{session_id}/reset", response_model=SessionPayload)
    def reset_session(session_id: str) -> SessionPayload:
        try:
            record = session_store.reset(session_id)
        except KeyError as exc:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
        return SessionPayload(**_build_payload(record))

    @app.post("/api/session/{session_id}/step", response_model=StepResponse)
    def step_session(session_id: str, payload: StepRequest) -> StepResponse:
        record = _get_record(session_id)
        try:
            states = record.session.step_forward(payload.count)
        except BrainfuckRuntimeError as exc:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=str(exc),
            ) from exc
        return StepResponse(states=_serialize_states(list(states)), **_build_payload(record))

    @app.post("/api/session/{session_id}/run", response_model=StepResponse)
    def run_session(session_id: str, payload: SessionRunRequest) -> StepResponse:
        record = _get_record(session_id)
        try:
            states = record.session.run(payload.limit)
        except BrainfuckRuntimeError as exc:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=str(exc),
            ) from exc
        return StepResponse(states=_serialize_states(list(states)), **_build_payload(record))

    @app.delete("/api/session/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
    def delete_session(session_id: str) -> Response:
        removed = session_store.remove(session_id)
        if not removed:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"Unknown session id: {session_id}",
            )
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    return app


app = create_app()


__all__ = ["app", "create_app"]
