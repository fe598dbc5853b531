import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from accessnav import __version__
from accessnav.api.errors import register_exception_handlers
from accessnav.api.middleware import RequestContextMiddleware
from accessnav.api.routers import rbac
from accessnav.core.config import get_settings
from accessnav.core.logger import configure_logging
from accessnav.core.rbac import initialize_rbac
from accessnav.db.session import SessionLocal

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    configure_logging(settings)
    if settings.rbac_bootstrap_on_startup:
        db = SessionLocal()
        try:
            initialize_rbac(db)
        finally:
            db.close()
    logger.info("%s %s started", settings.app_name, __version__)
    yield


def create_app() -> FastAPI:
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="Accessible navigation platform API",
        version=__version__,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if settings.debug else settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Request id + timing
    app.add_middleware(RequestContextMiddleware)

    register_exception_handlers(app)

    app.include_router(rbac.router, prefix="/api")

    @app.get("/health")
    async def health_check():
        return {"status": "healthy", "version": __version__}

    @app.get("/")
    async def root():
        return {
            "name": settings.app_name,
            "version": __version__,
            "docs": "/docs" if settings.debug else None,
        }

    return app


app = create_app()
