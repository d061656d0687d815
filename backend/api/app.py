from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from backend.api.saved_search_routes import saved_search_router
from backend.database import db as database
from backend.database.db import init_db
from backend.config.settings import get_settings
from backend.services.factory import SearchServices, build_services

settings = get_settings()


def create_app(services: SearchServices | None = None) -> FastAPI:
    # Disable Swagger/ReDoc in production
    docs_kwargs = {}
    if settings.is_production:
        docs_kwargs = {"docs_url": None, "redoc_url": None}

    app = FastAPI(
        title="CarWatch API",
        description="Saved vehicle searches with new-match alerts",
        version="0.3.0",
        **docs_kwargs,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=False,
        allow_methods=["GET", "POST", "PATCH", "DELETE"],
        allow_headers=["Content-Type", "X-User-Id"],
    )

    # Looked up at call time so tests can swap the session factory
    app.state.services = services or build_services(database.SessionLocal)

    app.include_router(saved_search_router, prefix="/api/v1")

    @app.get("/health", tags=["health"])
    def health_check():
        return {"status": "ok", "version": "0.3.0"}

    @app.on_event("startup")
    def on_startup():
        settings.validate_production()
        if not settings.is_deployed:
            init_db()  # Deployed envs use: alembic upgrade head

    return app


app = create_app()
