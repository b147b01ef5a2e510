# gis_backend/main.py
import traceback
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from gis_backend import __version__
from gis_backend.config.app_config import AppConfig, load_app_config
from gis_backend.db import build_engine, build_session_factory
from gis_backend.init_db import init_db
from gis_backend.routes.auth import router as auth_router
from gis_backend.routes.dashboard import router as dashboard_router
from gis_backend.routes.events import router as events_router
from gis_backend.routes.news import router as news_router
from gis_backend.routes.uploads import router as uploads_router
from gis_backend.schemas.common import HealthOut
from gis_backend.services.asset_store import AssetStore
from gis_backend.services.auth import AuthGate, validate_auth_config_on_startup
from gis_backend.services.errors import ResourceError
from gis_backend.services.uploads import UploadPolicy
from gis_backend.util.log import get_logger, log_event

logger = get_logger("api")


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


async def _resource_error_handler(request: Request, exc: ResourceError) -> JSONResponse:
    return _error(exc.status_code, exc.message)


async def _http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return _error(exc.status_code, str(exc.detail))


async def _request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    if errors:
        first = errors[0]
        loc = ".".join(str(x) for x in first.get("loc", ()) if x != "body")
        message = f"{loc}: {first.get('msg', 'invalid value')}" if loc else str(first.get("msg"))
    else:
        message = "Invalid request"
    return _error(400, message)


async def _unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    log_event(
        logger,
        level="ERROR",
        event="unhandled_error",
        msg="request failed",
        method=request.method,
        path=request.url.path,
        error=repr(exc),
        trace="".join(traceback.format_exception(type(exc), exc, exc.__traceback__)),
    )
    return _error(500, "Internal server error")


def create_app(cfg: Optional[AppConfig] = None) -> FastAPI:
    """
    Builds the app with its collaborators created once: DB engine/session
    factory, asset store, upload policy and auth gate (all on app.state).
    """
    cfg = cfg or load_app_config()
    validate_auth_config_on_startup(cfg)

    engine = build_engine(cfg.database_url())
    init_db(engine)

    assets = AssetStore(cfg.upload_root(), cfg.upload_public_prefix())
    assets.ensure_root()

    app = FastAPI(title="Global Insight Series Backend", version=__version__)
    app.state.config = cfg
    app.state.engine = engine
    app.state.session_factory = build_session_factory(engine)
    app.state.assets = assets
    app.state.upload_policy = UploadPolicy.from_config(cfg)
    app.state.auth = AuthGate.from_config(cfg)

    app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["*"], allow_headers=["*"],
                       expose_headers=["X-Total-Count", "X-Total-Pages"])

    app.add_exception_handler(ResourceError, _resource_error_handler)
    app.add_exception_handler(StarletteHTTPException, _http_error_handler)
    app.add_exception_handler(RequestValidationError, _request_validation_handler)
    app.add_exception_handler(Exception, _unhandled_error_handler)

    @app.get("/api/health", response_model=HealthOut)
    def health():
        return {"status": "ok"}

    app.include_router(events_router)
    app.include_router(news_router)
    app.include_router(dashboard_router)
    app.include_router(uploads_router)
    app.include_router(auth_router)

    app.mount(cfg.upload_public_prefix(), StaticFiles(directory=str(assets.root)), name="uploads")

    log_event(logger, level="INFO", event="app_created", msg="app ready",
              auth_mode=cfg.auth_mode(), upload_root=str(assets.root))
    return app


def run() -> None:
    import uvicorn

    cfg = load_app_config()
    uvicorn.run("gis_backend.main:create_app", factory=True, host=cfg.host(), port=cfg.port())


if __name__ == "__main__":
    run()
