"""FastAPI dependency injection for the runtime handle.

Usage in route handlers::

    @router.get("/things")
    async def list_things(runtime: Runtime) -> ThingList:
        ...

The dependency raises HTTP 503 if the runtime was not initialised (the
lifespan did not run and no test fixture set ``app.state.runtime``).
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from codepocket.runtime.host import CodePocketRuntime
from codepocket.runtime.managers.terminals import TerminalSessionManager


def get_runtime(request: Request) -> CodePocketRuntime:
    runtime: CodePocketRuntime | None = getattr(request.app.state, "runtime", None)
    if runtime is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Runtime not initialised.",
        )
    return runtime


def get_terminals(runtime: Annotated[CodePocketRuntime, Depends(get_runtime)]) -> TerminalSessionManager:
    return runtime.terminals


# -- Annotated type aliases for concise route signatures ---------------------

Runtime = Annotated[CodePocketRuntime, Depends(get_runtime)]
"""Annotated dependency: the process-wide runtime handle."""

Terminals = Annotated[TerminalSessionManager, Depends(get_terminals)]
"""Annotated dependency: the runtime's terminal session manager."""
