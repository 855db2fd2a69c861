import inspect
import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request, HTTPException
from fastapi.responses import FileResponse
from fastapi.staticfiles import StaticFiles
from openai import AsyncOpenAI

from routes.chart_route import router as chart_router
from routes.realtime_ws import router as realtime_router
from routes.workspace_route import router as workspace_router
from services.openai.vision_client import VisionClient
from services.workspace_store import WorkspaceStore
from utils.config import load_settings
from utils.database_init import AsyncDatabaseInitializer

BASE_DIR = Path(__file__).resolve().parent
PUBLIC_DIR = BASE_DIR / "public"

from dotenv import load_dotenv

load_dotenv()  # Load environment variables from .env file if present

LOGGER = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan manager to initialize:
      - the runtime settings
      - the SQLite chart store (always new on startup, at DATABASE_DIR/app.db)
      - the OpenAI async client and the vision client built on it
      - the in-memory workspace store
    and attach them to `app.state`.
    """
    settings = load_settings()
    app.state.settings = settings

    # This will delete any existing DB at db_path and create a fresh one.
    db_initializer = AsyncDatabaseInitializer()
    await db_initializer.ensure_database()
    app.state.db_initializer = db_initializer

    openai_api_key = os.getenv("OPENAI_API_KEY")
    if not openai_api_key:
        raise RuntimeError("OPENAI_API_KEY environment variable is not set")

    try:
        openai_client = AsyncOpenAI()
    except Exception as exc:
        raise RuntimeError("Failed to initialize OpenAI Async client") from exc

    app.state.openai_client = openai_client
    app.state.vision_client = VisionClient(openai_client, model=settings.openai_model)
    app.state.workspace_store = WorkspaceStore(settings)
    LOGGER.info("Chart analyst ready (model=%s, db=%s)", settings.openai_model, db_initializer.db_path)

    try:
        yield
    finally:
        # Gracefully close the OpenAI client if it exposes a close/aclose method.
        client = getattr(app.state, "openai_client", None)
        if client is not None:
            aclose = getattr(client, "aclose", None) or getattr(client, "close", None)
            if aclose is not None:
                try:
                    if inspect.iscoroutinefunction(aclose):
                        await aclose()
                    else:
                        result = aclose()
                        if inspect.isawaitable(result):
                            await result
                except Exception as exc:
                    LOGGER.warning("Error while closing the OpenAI client: %s", exc)


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application instance.
    """
    app = FastAPI(title="Chart Analyst", lifespan=lifespan)

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
        Simple health check that verifies the chart store and vision client are ready.
        """
        has_db = hasattr(request.app.state, "db_initializer")
        has_vision = getattr(request.app.state, "vision_client", None) is not None
        store = getattr(request.app.state, "workspace_store", None)
        return {
            "ok": True,
            "db_initialized": has_db,
            "vision_available": has_vision,
            "workspaces": len(store) if store is not None else 0,
        }

    # Register application routers
    app.include_router(workspace_router)
    app.include_router(chart_router)
    app.include_router(realtime_router)

    return app


app = create_app()
