"""Shell sessions for the editor's terminal panel.

Each session owns one shell subprocess (stdin piped, stdout and stderr
merged) and a bounded buffer of decoded output chunks.  A background task
pumps the pipe into the buffer; when the shell exits or the pipe errors,
the session is unregistered and its id becomes unknown.

Buffers are only touched from the event loop, so a ``read`` never observes
a half-appended chunk.  Sessions never expire; they live until the shell
exits or the manager shuts down.
"""

from __future__ import annotations

import asyncio
import codecs
import contextlib
import itertools
import os
from collections import deque
from pathlib import Path

from loguru import logger

from codepocket.runtime.errors import NotFoundError

DEFAULT_SHELL = "/bin/sh"
DEFAULT_BUFFER_LIMIT = 5000
READ_CHUNK_SIZE = 4096


class TerminalSession:
    """One shell subprocess and its pending output."""

    def __init__(self, session_id: str, process: asyncio.subprocess.Process, buffer_limit: int) -> None:
        self.id = session_id
        self.process = process
        self._buffer: deque[str] = deque(maxlen=buffer_limit)
        self.pump_task: asyncio.Task[None] | None = None

    def append(self, chunk: str) -> None:
        """Buffer one output chunk.  The oldest chunk is dropped when full."""
        self._buffer.append(chunk)

    def drain(self) -> str:
        """Return and clear everything buffered since the last drain."""
        output = "".join(self._buffer)
        self._buffer.clear()
        return output

    @property
    def buffered_chunks(self) -> int:
        return len(self._buffer)


class TerminalSessionManager:
    """Registry of live terminal sessions."""

    def __init__(
        self,
        default_cwd: str | Path,
        *,
        shell: str = DEFAULT_SHELL,
        buffer_limit: int = DEFAULT_BUFFER_LIMIT,
    ) -> None:
        self._default_cwd = Path(default_cwd)
        self._shell = shell
        self._buffer_limit = buffer_limit
        self._sessions: dict[str, TerminalSession] = {}
        self._ids = itertools.count(1)

    # -- Lifecycle -------------------------------------------------------------

    async def create(self, cwd: str | None = None) -> str:
        """Spawn a shell in *cwd* (or the default directory) and return its id."""
        workdir = self._resolve_cwd(cwd)
        process = await asyncio.create_subprocess_exec(
            self._shell,
            stdin=asyncio.subprocess.PIPE,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.STDOUT,
            cwd=workdir,
            env=os.environ.copy(),
        )
        session = TerminalSession(str(next(self._ids)), process, self._buffer_limit)
        self._sessions[session.id] = session
        session.pump_task = asyncio.create_task(self._pump_output(session), name=f"terminal-{session.id}")
        logger.info("Terminal {} started: {} (pid={}, cwd={})", session.id, self._shell, process.pid, workdir)
        return session.id

    async def shutdown(self) -> None:
        """Kill every remaining shell and wait for the pumps to finish."""
        sessions = list(self._sessions.values())
        if not sessions:
            return
        logger.info("Stopping {} terminal session(s)", len(sessions))
        for session in sessions:
            if session.process.returncode is None:
                with contextlib.suppress(ProcessLookupError):
                    session.process.kill()
        pumps = [s.pump_task for s in sessions if s.pump_task is not None]
        await asyncio.gather(*pumps, return_exceptions=True)
        self._sessions.clear()

    # -- I/O -------------------------------------------------------------------

    async def write(self, session_id: str, data: str | bytes) -> None:
        """Forward *data* to the shell's stdin.

        Raises ``NotFoundError`` for unknown sessions and ``OSError`` if the
        pipe is broken.
        """
        session = self._get(session_id)
        stdin = session.process.stdin
        if stdin is None:
            msg = f"Terminal {session_id} has no stdin"
            raise BrokenPipeError(msg)
        stdin.write(data.encode("utf-8") if isinstance(data, str) else data)
        await stdin.drain()

    def read(self, session_id: str) -> str:
        """Drain buffered output.  Raises ``NotFoundError`` for unknown sessions."""
        return self._get(session_id).drain()

    # -- Query -----------------------------------------------------------------

    def get(self, session_id: str) -> TerminalSession | None:
        return self._sessions.get(session_id)

    @property
    def active_count(self) -> int:
        return len(self._sessions)

    # -- Internals -------------------------------------------------------------

    def _get(self, session_id: str) -> TerminalSession:
        session = self._sessions.get(session_id)
        if session is None:
            msg = f"Terminal not found: {session_id}"
            raise NotFoundError(msg)
        return session

    def _resolve_cwd(self, cwd: str | None) -> Path:
        if cwd and os.path.isdir(cwd):
            return Path(cwd)
        self._default_cwd.mkdir(parents=True, exist_ok=True)
        return self._default_cwd

    async def _pump_output(self, session: TerminalSession) -> None:
        stdout = session.process.stdout
        decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        try:
            if stdout is None:
                msg = "stdout is not piped"
                raise RuntimeError(msg)
            while chunk := await stdout.read(READ_CHUNK_SIZE):
                text = decoder.decode(chunk)
                if text:
                    session.append(text)
            tail = decoder.decode(b"", final=True)
            if tail:
                session.append(tail)
            await session.process.wait()
        except Exception as exc:
            logger.warning("Terminal {} output error: {}", session.id, exc)
            session.append(f"\r\nError: {exc}\r\n")
        finally:
            self._sessions.pop(session.id, None)
            logger.info("Terminal {} closed (exit code {})", session.id, session.process.returncode)
