"""Workspace text search."""

from __future__ import annotations

from fastapi import APIRouter

from codepocket.runtime.deps import Runtime
from codepocket.runtime.managers import search as search_manager
from codepocket.runtime.models.api import SearchMatch

router = APIRouter(tags=["search"])


@router.get("/search", response_model=list[SearchMatch])
async def search(runtime: Runtime, ws: str = "", q: str = "") -> list[SearchMatch]:
    """Literal substring matches, at most 200."""
    return await search_manager.search(runtime.settings.workspaces_root, ws, q)
