"""
Name: User Admin API (ASGI app)

Responsibilities:
  - Build the FastAPI app: middlewares, /api routers, error handlers
  - Open and close the Postgres pool around the app lifetime
  - Run the local dev admin seed at startup
  - Serve /healthz and /metrics outside the /api prefix

Collaborators:
  - crosscutting.middleware (BodyLimitMiddleware, RequestContextMiddleware)
  - interfaces.api.http.routes.router
  - infrastructure.db.pool
  - application.dev_seed_admin.ensure_dev_admin

Notes:
  - Starlette runs the last added middleware first, so the body limit is the
    outermost layer and CORS the innermost
  - APP_ENV=test keeps everything in memory: no pool, /healthz reports
    db="skipped"

Run:
  uvicorn useradmin.api.main:app --reload
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware

from ..application.dev_seed_admin import ensure_dev_admin
from ..container import get_password_hasher, get_user_repository
from ..crosscutting.config import Settings, get_settings
from ..crosscutting.logger import logger
from ..crosscutting.metrics import get_metrics_response
from ..crosscutting.middleware import BodyLimitMiddleware, RequestContextMiddleware
from ..infrastructure.db.pool import close_pool, get_pool, init_pool
from ..interfaces.api.http.routes import router
from .exception_handlers import register_exception_handlers

API_VERSION = "0.1.0"


def _uses_postgres(settings: Settings) -> bool:
    return not settings.is_test()


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    if _uses_postgres(settings):
        init_pool(
            database_url=settings.database_url,
            min_size=settings.db_pool_min_size,
            max_size=settings.db_pool_max_size,
        )

    try:
        ensure_dev_admin(
            settings,
            user_repo=get_user_repository(),
            password_hasher=get_password_hasher(),
        )
        logger.info(
            "API lista",
            extra={
                "app_env": settings.app_env,
                "storage": "postgres" if _uses_postgres(settings) else "memory",
                "breach_check": settings.password_check_breaches,
            },
        )
        yield
    finally:
        if _uses_postgres(settings):
            close_pool()
        logger.info("API detenida")


def _database_status() -> str:
    if not _uses_postgres(get_settings()):
        return "skipped"
    try:
        with get_pool().connection() as conn:
            conn.execute("SELECT 1")
    except Exception as exc:
        logger.warning(
            "healthz: Postgres no responde", extra={"error_type": type(exc).__name__}
        )
        return "disconnected"
    return "connected"


def _add_health_routes(app: FastAPI) -> None:
    @app.get("/healthz", include_in_schema=False)
    def healthz(request: Request):
        db = _database_status()
        return {
            "ok": db != "disconnected",
            "db": db,
            "request_id": getattr(request.state, "request_id", None),
        }

    @app.get("/metrics", include_in_schema=False)
    def metrics():
        payload, media_type = get_metrics_response()
        return Response(content=payload, media_type=media_type)


def create_app() -> FastAPI:
    settings = get_settings()
    app = FastAPI(
        title="User Admin API",
        version=API_VERSION,
        lifespan=lifespan,
        openapi_tags=[
            {"name": "auth", "description": "Login and current user"},
            {"name": "users", "description": "User administration (policy-guarded)"},
        ],
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.get_allowed_origins_list(),
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "X-Request-Id"],
        expose_headers=["X-Request-Id"],
    )
    app.add_middleware(RequestContextMiddleware)
    app.add_middleware(BodyLimitMiddleware, max_bytes=settings.max_body_bytes)

    register_exception_handlers(app)
    app.include_router(router, prefix="/api")
    _add_health_routes(app)
    return app


app = create_app()
