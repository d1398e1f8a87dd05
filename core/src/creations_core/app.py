from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from logging.handlers import RotatingFileHandler

import httpx
from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, RedirectResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.staticfiles import StaticFiles

from creations_core import __version__
from creations_core.api.models import fail, status_to_code
from creations_core.auth import RouteGuardMiddleware
from creations_core.backend.client import GalleryBackendClient
from creations_core.config import apply_env_overrides, ensure_auth_secret, load_core_config
from creations_core.gallery.workflow import LISTING_PATH, FormSessionStore
from creations_core.home import ensure_creations_layout, resolve_creations_home
from creations_core.ui.router import STATIC_DIR as UI_STATIC_DIR
from creations_core.ui.router import auth_router as ui_auth_router
from creations_core.ui.router import router as ui_router

logger = logging.getLogger(__name__)


def create_app(*, backend_transport: httpx.AsyncBaseTransport | None = None) -> FastAPI:
    """Build the admin app.

    `backend_transport` replaces the HTTP transport of the backend client
    (tests pass an httpx.MockTransport).
    """

    @asynccontextmanager
    async def _lifespan(app: FastAPI):
        home = resolve_creations_home()
        paths = ensure_creations_layout(home)
        config = load_core_config(paths)
        config = ensure_auth_secret(paths, config)
        config = apply_env_overrides(config)

        log_path = paths.logs_dir / "core.log"
        file_handler = RotatingFileHandler(
            log_path,
            maxBytes=config.logging.max_size_mb * 1024 * 1024,
            backupCount=config.logging.backup_count,
            encoding="utf-8",
        )
        formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        file_handler.setFormatter(formatter)

        root = logging.getLogger()
        root.setLevel(logging.INFO)
        # Avoid adding duplicate handlers if reloaded
        if not any(isinstance(h, RotatingFileHandler) for h in root.handlers):
            root.addHandler(file_handler)

        logger.info("Creations Core starting up")
        logger.info(f"Backend: {config.backend.base_url}")

        app.state.creations_home = home
        app.state.creations_paths = paths
        app.state.creations_config = config
        app.state.backend_client = GalleryBackendClient(
            config.backend.base_url,
            timeout=config.backend.timeout_s,
            transport=backend_transport,
        )
        app.state.form_sessions = FormSessionStore()

        try:
            yield
        finally:
            await app.state.backend_client.aclose()

    app = FastAPI(title="Creations Core", version=__version__, lifespan=_lifespan)

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        response = await call_next(request)
        logger.info(f"{request.method} {request.url.path} - {response.status_code}")
        return response

    app.add_middleware(RouteGuardMiddleware)

    @app.exception_handler(RequestValidationError)
    async def _validation_error_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=422,
            content=fail(
                code="validation_error",
                message="Request validation failed",
                details=exc.errors(),
            ).model_dump(mode="json"),
        )

    @app.exception_handler(HTTPException)
    async def _http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content=fail(
                code=status_to_code(exc.status_code),
                message=str(exc.detail),
            ).model_dump(mode="json"),
        )

    @app.exception_handler(StarletteHTTPException)
    async def _starlette_http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content=fail(
                code=status_to_code(exc.status_code),
                message=exc.detail if isinstance(exc.detail, str) else "HTTP error",
            ).model_dump(mode="json"),
        )

    @app.exception_handler(Exception)
    async def _unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=500,
            content=fail(code="internal_error", message="Internal server error").model_dump(
                mode="json"
            ),
        )

    if UI_STATIC_DIR.is_dir():
        app.mount("/static", StaticFiles(directory=str(UI_STATIC_DIR)), name="static")
    else:
        logger.warning(
            "UI static directory is missing (%s); /static will not be served", UI_STATIC_DIR
        )
    app.include_router(ui_auth_router)
    app.include_router(ui_router)

    @app.get("/")
    async def root() -> RedirectResponse:
        return RedirectResponse(url=LISTING_PATH, status_code=302)

    @app.get("/healthz")
    async def healthz() -> dict[str, str]:
        return {"status": "ok"}

    return app
