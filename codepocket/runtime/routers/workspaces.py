"""Workspace listing endpoint.

Sync operations (mirror, export, refresh) are driven by the host CLI, not
over HTTP; the editor only needs the list of sandbox directories.
"""

from __future__ import annotations

from fastapi import APIRouter

from codepocket.runtime.deps import Runtime
from codepocket.runtime.managers import files as files_manager
from codepocket.runtime.models.api import WorkspaceListResponse

router = APIRouter(tags=["workspaces"])


@router.get("/workspaces", response_model=WorkspaceListResponse)
async def list_workspaces(runtime: Runtime) -> WorkspaceListResponse:
    """Names of the workspace directories in the sandbox root."""
    names = await files_manager.list_workspaces(runtime.settings.workspaces_root)
    return WorkspaceListResponse(workspaces=names)
