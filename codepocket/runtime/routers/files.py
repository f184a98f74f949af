"""Sandboxed file endpoints (RPC-style).

Every endpoint takes the workspace id as ``ws`` and a workspace-relative
``path``.  Writes use POST; reads use GET.
"""

from __future__ import annotations

from fastapi import APIRouter, Request
from fastapi.responses import PlainTextResponse

from codepocket.runtime.deps import Runtime
from codepocket.runtime.errors import translate_errors
from codepocket.runtime.managers import files as files_manager
from codepocket.runtime.models.api import DirListing, FileTreeResponse, StatInfo, SuccessResponse

router = APIRouter(tags=["files"])


@router.get("/stat", response_model=StatInfo)
async def stat(runtime: Runtime, ws: str, path: str = "") -> StatInfo:
    """Size, timestamps, type and mode of a path."""
    with translate_errors():
        return await files_manager.stat_path(runtime.settings.workspaces_root, ws, path)


@router.get("/readdir", response_model=DirListing)
async def readdir(runtime: Runtime, ws: str, path: str = "") -> DirListing:
    """Names of the immediate children of a directory."""
    with translate_errors():
        names = await files_manager.read_dir(runtime.settings.workspaces_root, ws, path)
    return DirListing(files=names)


@router.get("/files", response_model=FileTreeResponse, response_model_exclude_none=True)
async def file_tree(runtime: Runtime, ws: str) -> FileTreeResponse:
    """The whole workspace as a recursive tree."""
    with translate_errors():
        entries = await files_manager.build_tree(runtime.settings.workspaces_root, ws)
    return FileTreeResponse(files=entries)


@router.get("/file", response_class=PlainTextResponse)
async def read_file(runtime: Runtime, ws: str, path: str) -> PlainTextResponse:
    """Raw file content."""
    with translate_errors():
        content = await files_manager.read_text(runtime.settings.workspaces_root, ws, path)
    return PlainTextResponse(content)


@router.post("/file", response_model=SuccessResponse)
async def write_file(runtime: Runtime, request: Request, ws: str, path: str) -> SuccessResponse:
    """Overwrite a file with the request body, creating parent directories."""
    data = await request.body()
    with translate_errors():
        await files_manager.write_bytes(runtime.settings.workspaces_root, ws, path, data)
    return SuccessResponse()


@router.post("/mkdir")
async def mkdir(runtime: Runtime, ws: str, path: str) -> dict[str, str]:
    """Create a directory and any missing parents."""
    with translate_errors():
        await files_manager.make_dir(runtime.settings.workspaces_root, ws, path)
    return {}


@router.post("/unlink")
async def unlink(runtime: Runtime, ws: str, path: str) -> dict[str, str]:
    """Delete a file.  Deleting a missing file succeeds."""
    with translate_errors():
        await files_manager.unlink(runtime.settings.workspaces_root, ws, path)
    return {}


@router.post("/rmdir")
async def rmdir(runtime: Runtime, ws: str, path: str) -> dict[str, str]:
    """Delete an empty directory.  Deleting a missing directory succeeds."""
    with translate_errors():
        await files_manager.remove_dir(runtime.settings.workspaces_root, ws, path)
    return {}
