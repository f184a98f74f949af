"""Domain errors shared by managers, and their HTTP translation.

Managers raise these (or plain ``OSError``) and never HTTP exceptions;
routers wrap manager calls in ``translate_errors()`` to map them onto status
codes.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

from fastapi import HTTPException, status


class NotFoundError(LookupError):
    """Unknown path, workspace, plugin or terminal session."""


class ForbiddenError(PermissionError):
    """Request tried to leave its sandbox (or plugins directory)."""


@contextmanager
def translate_errors() -> Iterator[None]:
    """Map domain errors to ``HTTPException`` (404 / 403 / 500)."""
    try:
        yield
    except NotFoundError as exc:
        raise HTTPException(status.HTTP_404_NOT_FOUND, detail=str(exc) or "Not found") from None
    except ForbiddenError as exc:
        raise HTTPException(status.HTTP_403_FORBIDDEN, detail=str(exc) or "Access denied") from None
    except OSError as exc:
        raise HTTPException(status.HTTP_500_INTERNAL_SERVER_ERROR, detail=exc.strerror or str(exc)) from None
