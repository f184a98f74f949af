"""Editor settings and plugin endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Request, Response

from codepocket.runtime.deps import Runtime
from codepocket.runtime.errors import translate_errors
from codepocket.runtime.managers import editor as editor_manager
from codepocket.runtime.models.api import PluginListResponse, SuccessResponse

router = APIRouter(tags=["editor"])


# -- Settings ----------------------------------------------------------------


@router.get("/settings")
async def get_settings_blob(runtime: Runtime) -> Response:
    """The saved settings JSON, verbatim."""
    with translate_errors():
        data = await editor_manager.read_settings(runtime.settings.settings_file)
    return Response(content=data, media_type="application/json")


@router.post("/settings", response_model=SuccessResponse)
async def save_settings_blob(runtime: Runtime, request: Request) -> SuccessResponse:
    """Replace the settings JSON with the request body."""
    data = await request.body()
    with translate_errors():
        await editor_manager.write_settings(runtime.settings.settings_file, data)
    return SuccessResponse()


# -- Plugins -----------------------------------------------------------------


@router.get("/plugins", response_model=PluginListResponse)
async def list_plugins(runtime: Runtime) -> PluginListResponse:
    with translate_errors():
        names = await editor_manager.list_plugins(runtime.settings.plugins_dir)
    return PluginListResponse(plugins=names)


@router.get("/plugin")
async def get_plugin(runtime: Runtime, name: str) -> Response:
    """One plugin script by file name."""
    with translate_errors():
        source = await editor_manager.read_plugin(runtime.settings.plugins_dir, name)
    return Response(content=source, media_type="application/javascript")
