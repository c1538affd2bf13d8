import inspect
import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv

load_dotenv()  # Load environment variables from .env file if present

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import FileResponse
from fastapi.staticfiles import StaticFiles
from openai import AsyncOpenAI
from starlette.middleware.sessions import SessionMiddleware

from dal.artwork_dal import ArtworkDAL
from routes.admin_route import router as admin_router
from routes.artwork_route import router as artwork_router
from routes.auth_route import router as auth_router
from routes.marketplace_route import router as marketplace_router
from services.analysis_pipeline import AnalysisPipeline
from services.analysis_queue import AnalysisQueue
from services.image_storage import ImageStorage
from services.openai.artwork_analyzer import ArtworkAnalyzer
from utils.database_init import AsyncDatabaseInitializer
from utils.logging_setup import setup_logging

BASE_DIR = Path(__file__).resolve().parent
PUBLIC_DIR = BASE_DIR / "public"
SESSION_SECRET = os.getenv("SESSION_SECRET", "dev-session-secret")

setup_logging()
LOGGER = logging.getLogger(__name__)


def _build_openai_client() -> AsyncOpenAI:
    if not os.getenv("OPENAI_API_KEY"):
        raise RuntimeError("OPENAI_API_KEY environment variable is not set")
    try:
        return AsyncOpenAI()
    except Exception as exc:
        raise RuntimeError("Failed to initialize OpenAI Async client") from exc


async def _close_client(client: Any) -> None:
    aclose = getattr(client, "aclose", None) or getattr(client, "close", None)
    if aclose is None:
        return
    try:
        result = aclose()
        if inspect.isawaitable(result):
            await result
    except Exception:  # pylint: disable=broad-exception-caught
        LOGGER.warning("Error while closing the OpenAI client", exc_info=True)


def create_app(openai_client: Optional[Any] = None) -> FastAPI:
    """Create and configure the FastAPI application instance.

    Args:
        openai_client: Optional pre-built client exposing `responses.create`.
            When omitted, an `AsyncOpenAI` client is created on startup.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Initialize the SQLite database, image storage, OpenAI client and the
        analysis queue, attach them to `app.state`, and stop the workers on
        shutdown.
        """
        db_initializer = AsyncDatabaseInitializer()
        await db_initializer.ensure_database()
        app.state.db_initializer = db_initializer

        owns_client = openai_client is None
        client = _build_openai_client() if owns_client else openai_client
        app.state.openai_client = client

        storage = ImageStorage(db_initializer.images_dir)
        queue = AnalysisQueue()
        pipeline = AnalysisPipeline(ArtworkDAL(db_initializer), ArtworkAnalyzer(client), queue, storage)
        app.state.image_storage = storage
        app.state.analysis_queue = queue
        app.state.pipeline = pipeline

        await queue.start(pipeline.run_job)
        LOGGER.info("Application started (database at %s)", db_initializer.db_path)
        try:
            yield
        finally:
            await queue.stop()
            if owns_client:
                await _close_client(client)

    app = FastAPI(lifespan=lifespan)
    app.add_middleware(SessionMiddleware, secret_key=SESSION_SECRET, same_site="lax")

    # Serve static assets from the public directory, if it exists.
    if PUBLIC_DIR.exists():
        app.mount("/public", StaticFiles(directory=PUBLIC_DIR), name="public")

    @app.get("/", include_in_schema=False)
    async def serve_index():
        """
        Serve the frontend index page from the public directory.
        """
        index_path = PUBLIC_DIR / "index.html"
        if not index_path.exists():
            raise HTTPException(status_code=404, detail="Frontend not found")
        return FileResponse(index_path)

    @app.get("/health")
    async def health(request: Request):
        """
        Health check reporting database, OpenAI client and analysis queue state.
        """
        state = request.app.state
        has_db = hasattr(state, "db_initializer")
        has_openai = getattr(state, "openai_client", None) is not None
        queue = getattr(state, "analysis_queue", None)
        return {
            "ok": True,
            "db_initialized": has_db,
            "openai_available": has_openai,
            "analysis_queue": queue.stats() if queue is not None else None,
        }

    # Register application routers
    app.include_router(auth_router)
    app.include_router(artwork_router)
    app.include_router(marketplace_router)
    app.include_router(admin_router)

    return app


app = create_app()
