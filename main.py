import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from taskapi import database
from taskapi.config import settings
from taskapi.exception_handlers import register_exception_handlers
from taskapi.middleware.logging import StructuredLoggingMiddleware, setup_structured_logging
from taskapi.routes import tasks

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Tasks to run at application startup and shutdown."""
    logger.info("Starting up the application...")
    await database.init_db()
    yield
    logger.info("Shutting down the application...")


def create_app() -> FastAPI:
    """Create the FastAPI application."""
    setup_structured_logging(
        log_level=settings.log_level,
        json_format=settings.json_logs,
        log_file=settings.log_file,
    )

    app = FastAPI(
        title=settings.app_name,
        description="Task API with filtering, sorting, sparse fieldsets and JSON/CSV/XML output",
        debug=settings.debug,
        version=settings.app_version,
        lifespan=lifespan,
    )

    # Add middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["Location", "Content-Disposition", "X-Request-ID"],
    )
    app.add_middleware(StructuredLoggingMiddleware)

    register_exception_handlers(app)

    # Include routers
    app.include_router(tasks.router)

    @app.get("/", tags=["Root"])
    async def root():
        return {"message": f"Welcome to the {settings.app_name}"}

    @app.get("/health", tags=["Root"])
    async def health():
        return {"status": "ok", "version": settings.app_version}

    if settings.debug:
        logger.info(f"Running in {settings.environment} mode")
        logging.getLogger("sqlalchemy.engine").setLevel(logging.INFO)  # Logs SQL statements

    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=settings.debug)
