from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import FileResponse, JSONResponse
from fastapi.routing import APIRouter
from loguru import logger
from starlette.exceptions import HTTPException as StarletteHTTPException

from codepocket.runtime.auth import is_authorized, requires_auth
from codepocket.runtime.deps import Runtime
from codepocket.runtime.host import CodePocketRuntime
from codepocket.runtime.log import setup_logging
from codepocket.runtime.models.api import HealthResponse
from codepocket.runtime.settings import get_settings

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "Content-Type, Authorization",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS, PUT, DELETE",
}


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    # -- Startup ---------------------------------------------------------------
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_file)

    logger.info("CodePocket server starting (host={}, port={})", settings.host, settings.port)
    _app.state.runtime = CodePocketRuntime(settings).initialize()

    yield

    # -- Shutdown --------------------------------------------------------------
    runtime: CodePocketRuntime = _app.state.runtime
    logger.info("CodePocket server shutting down (terminals={})", runtime.terminals.active_count)
    await runtime.shutdown()


app = FastAPI(title="CodePocket Local Server", lifespan=lifespan)


# ---------------------------------------------------------------------------
# Error bodies -- every error is {"error": "<message>"}
# ---------------------------------------------------------------------------


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(_request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse({"error": str(exc.detail)}, status_code=exc.status_code, headers=exc.headers)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(_request: Request, exc: RequestValidationError) -> JSONResponse:
    """Missing or malformed parameters are a 400, not FastAPI's default 422."""
    messages = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()))
        messages.append(f"{location}: {error.get('msg', 'invalid')}")
    return JSONResponse({"error": "; ".join(messages) or "Bad request"}, status_code=status.HTTP_400_BAD_REQUEST)


# ---------------------------------------------------------------------------
# Request logging, CORS and the token guard
# ---------------------------------------------------------------------------


@app.middleware("http")
async def guard(request: Request, call_next: Callable[[Request], Awaitable[Response]]) -> Response:
    logger.info("{} {}", request.method, request.url.path)

    if request.method == "OPTIONS":
        return Response(status_code=status.HTTP_204_NO_CONTENT, headers=CORS_HEADERS)

    if requires_auth(request.url.path):
        runtime: CodePocketRuntime | None = getattr(request.app.state, "runtime", None)
        expected = runtime.auth_token if runtime is not None else None
        if not is_authorized(request, expected):
            logger.warning("Rejected unauthorized request: {} {}", request.method, request.url.path)
            return JSONResponse({"error": "Unauthorized"}, status_code=status.HTTP_403_FORBIDDEN, headers=CORS_HEADERS)

    response = await call_next(request)
    response.headers.update(CORS_HEADERS)
    return response


# ---------------------------------------------------------------------------
# Health -- exempt from the token guard
# ---------------------------------------------------------------------------


@app.get("/health", response_model=HealthResponse)
async def health(runtime: Runtime) -> HealthResponse:
    return HealthResponse(uptime=runtime.uptime_seconds)


# ---------------------------------------------------------------------------
# API router -- all editor endpoints live under /api
# ---------------------------------------------------------------------------
api = APIRouter(prefix="/api")


@api.get("/health", response_model=HealthResponse)
async def api_health(runtime: Runtime) -> HealthResponse:
    return HealthResponse(uptime=runtime.uptime_seconds)


from codepocket.runtime.routers.editor import router as editor_router  # noqa: E402
from codepocket.runtime.routers.files import router as files_router  # noqa: E402
from codepocket.runtime.routers.search import router as search_router  # noqa: E402
from codepocket.runtime.routers.terminals import router as terminals_router  # noqa: E402
from codepocket.runtime.routers.workspaces import router as workspaces_router  # noqa: E402

api.include_router(workspaces_router)
api.include_router(files_router)
api.include_router(search_router)
api.include_router(editor_router)
api.include_router(terminals_router)

app.include_router(api)

# ---------------------------------------------------------------------------
# Static editor UI serving
# Resolved relative to CWD.  Override with CODEPOCKET_UI_DIR if needed.
# Registered last so every API route takes precedence.
# ---------------------------------------------------------------------------


@app.get("/{full_path:path}", include_in_schema=False)
async def serve_ui(full_path: str, runtime: Runtime) -> FileResponse:
    """Serve a UI file, or index.html for unmatched routes (client-side routing)."""
    ui_dir = runtime.settings.ui_path
    if full_path == "api" or full_path.startswith("api/") or not ui_dir.is_dir():
        raise HTTPException(status.HTTP_404_NOT_FOUND, detail="Not found")
    file_path = (ui_dir / full_path).resolve()
    if file_path.is_file() and file_path.is_relative_to(ui_dir):
        return FileResponse(file_path)
    index = ui_dir / "index.html"
    if not index.is_file():
        raise HTTPException(status.HTTP_404_NOT_FOUND, detail="Not found")
    return FileResponse(index)
