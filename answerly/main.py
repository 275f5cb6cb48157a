import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api.endpoints import admin, answers, question_sets
from .config import ALLOWED_ORIGINS, LOG_LEVEL
from .database import create_db_and_tables, engine
from .errors import register_exception_handlers

logger = logging.getLogger("answerly")


def configure_logging(level: str = LOG_LEVEL) -> None:
    """Attach a stream handler to the package logger unless one is present."""
    if logger.handlers:
        return
    handler = logging.StreamHandler()
    handler.setFormatter(
        logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    )
    logger.addHandler(handler)
    logger.setLevel(level.upper())
    logger.propagate = False


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application starting...")
    await create_db_and_tables()
    yield
    logger.info("Application shutting down...")
    await engine.dispose()


def create_app() -> FastAPI:
    configure_logging()

    app = FastAPI(title="Answerly Backend", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    logger.info("CORS origins: %s", ALLOWED_ORIGINS)

    register_exception_handlers(app)

    app.include_router(question_sets.router, prefix="/api/question-sets", tags=["question-sets"])
    app.include_router(answers.router, prefix="/api/question-sets", tags=["answers"])
    app.include_router(admin.router, prefix="/api/admin", tags=["admin"])

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    return app


app = create_app()
