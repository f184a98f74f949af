"""Shared-token guard for the ``/api`` routes.

A client presents the token either as ``Authorization: Bearer <token>``
(checked first) or as a ``?token=`` query parameter.  With no token
configured every request is accepted.
"""

from __future__ import annotations

import secrets
from pathlib import Path

from fastapi import Request
from loguru import logger

EXEMPT_PATHS = frozenset({"/api/health"})
LOOPBACK_HOSTS = frozenset({"127.0.0.1", "::1", "localhost"})


def is_loopback_host(host: str) -> bool:
    return host.strip("[]").lower() in LOOPBACK_HOSTS


def requires_auth(path: str) -> bool:
    return path.startswith("/api/") and path not in EXEMPT_PATHS


def presented_token(request: Request) -> str | None:
    """Token sent with *request*: bearer header first, then the query string."""
    header = request.headers.get("authorization", "")
    scheme, _, credentials = header.partition(" ")
    if scheme.lower() == "bearer" and credentials:
        return credentials.strip()
    return request.query_params.get("token")


def is_authorized(request: Request, expected: str | None) -> bool:
    if not expected:
        return True
    token = presented_token(request)
    if token is None:
        return False
    return secrets.compare_digest(token.encode("utf-8"), expected.encode("utf-8"))


def issue_token(path: Path) -> str:
    """Generate a random token and store it in *path* (owner-readable only)."""
    token = secrets.token_urlsafe(32)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(token + "\n", encoding="utf-8")
    path.chmod(0o600)
    logger.info("Generated auth token -> {}", path)
    return token
