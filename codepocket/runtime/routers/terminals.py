"""Terminal session endpoints.

The editor polls ``output``; there is no streaming transport and no close
endpoint.  A session disappears when its shell exits.
"""

from __future__ import annotations

from fastapi import APIRouter, Request, Response

from codepocket.runtime.deps import Terminals
from codepocket.runtime.errors import translate_errors
from codepocket.runtime.models.api import TerminalCreate, TerminalCreated, TerminalOutput

router = APIRouter(prefix="/terminals", tags=["terminals"])


@router.post("", response_model=TerminalCreated)
async def create_terminal(terminals: Terminals, body: TerminalCreate | None = None) -> TerminalCreated:
    """Spawn a shell, optionally in ``cwd``."""
    with translate_errors():
        session_id = await terminals.create(body.cwd if body else None)
    return TerminalCreated(id=session_id)


@router.post("/{terminal_id}/input")
async def write_input(terminal_id: str, terminals: Terminals, request: Request) -> Response:
    """Forward the raw request body to the shell's stdin."""
    data = await request.body()
    with translate_errors():
        await terminals.write(terminal_id, data)
    return Response(status_code=200)


@router.get("/{terminal_id}/output", response_model=TerminalOutput)
async def read_output(terminal_id: str, terminals: Terminals) -> TerminalOutput:
    """Everything the shell printed since the previous poll."""
    with translate_errors():
        output = terminals.read(terminal_id)
    return TerminalOutput(output=output)
