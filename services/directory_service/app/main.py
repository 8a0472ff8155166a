import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from .api import members
from .config.settings import Settings, get_settings
from .core.errors import ProcedureError, StoreUnavailableError
from .core.logging import configure_logging
from .models.database import build_store

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None, store=None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.LOG_LEVEL)
    if store is None:
        store = build_store(
            settings.DATABASE_URL,
            pool_size=settings.DB_POOL_SIZE,
            max_overflow=settings.DB_MAX_OVERFLOW,
            pool_recycle=settings.DB_POOL_RECYCLE,
        )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if settings.CREATE_TABLES_ON_STARTUP:
            store.create_all()
        logger.info("Directory service started with %r", store)
        yield
        store.dispose()

    app = FastAPI(
        title="Member Directory Service",
        description="Public member directory with admin-managed member records",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.store = store

    if settings.CORS_ORIGINS:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.CORS_ORIGINS,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    @app.exception_handler(ProcedureError)
    async def procedure_error_handler(request: Request, exc: ProcedureError):
        return JSONResponse(status_code=exc.http_status, content={"error": exc.to_dict()})

    @app.get("/health")
    def health_check():
        try:
            store.ping()
            database = "connected"
        except StoreUnavailableError:
            database = "unavailable"
        except SQLAlchemyError:
            logger.exception("Database health check failed")
            database = "unavailable"
        return {"status": "ok", "database": database}

    app.include_router(
        members.router,
        prefix="/rpc",
        tags=["Members"],
    )
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=get_settings().PORT)
