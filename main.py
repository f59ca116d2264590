import inspect
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import FileResponse
from fastapi.staticfiles import StaticFiles
from openai import AsyncOpenAI

from config import Settings
from routes.realtime_ws import router as realtime_router
from routes.session_route import router as session_router
from services.openai.toolset import OpenAIToolset, Toolset
from services.realtime.orchestrator import ShoppingOrchestrator
from services.realtime.pickup_filter import PickupFilter
from services.realtime.session_store import SessionStore
from services.realtime.stream_hub import RoomPublisher, StreamHub
from services.research.pipeline import ResearchPipeline
from services.research.summary import select_summary_strategy

BASE_DIR = Path(__file__).resolve().parent
PUBLIC_DIR = BASE_DIR / "public"

load_dotenv()  # Load environment variables from .env file if present

LOGGER = logging.getLogger(__name__)


def _build_openai_client(settings: Settings) -> Optional[AsyncOpenAI]:
    if not settings.openai_enabled:
        LOGGER.warning("OPENAI_API_KEY is not set; research runs on deterministic fallbacks.")
        return None
    try:
        return AsyncOpenAI(api_key=settings.openai_api_key)
    except Exception as exc:
        raise RuntimeError("Failed to initialize OpenAI Async client") from exc


async def _close_client(client) -> None:
    """Close the OpenAI client if it exposes a close/aclose method."""
    aclose = getattr(client, "aclose", None) or getattr(client, "close", None)
    if aclose is None:
        return
    try:
        if inspect.iscoroutinefunction(aclose):
            await aclose()
        else:
            result = aclose()
            if inspect.isawaitable(result):
                await result
    except Exception as exc:
        # Ignore shutdown errors to avoid masking more important issues.
        LOGGER.debug("Ignoring OpenAI client shutdown error: %s", exc)


def create_app(
    settings: Optional[Settings] = None,
    toolset: Optional[Toolset] = None,
    room_publisher: Optional[RoomPublisher] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application instance.

    ``toolset`` and ``room_publisher`` let callers swap the research backends
    and the secondary broadcast transport.
    """
    settings = settings or Settings.from_env()
    logging.basicConfig(level=settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Build the session store, admission filter, stream hub, research
        pipeline and orchestrator, and attach them to `app.state`.
        """
        openai_client = _build_openai_client(settings) if toolset is None else None
        tools = toolset or OpenAIToolset(
            openai_client,
            model=settings.openai_model,
            http_timeout=settings.http_timeout_seconds,
            search_timeout=settings.search_timeout_seconds,
        )
        try:
            summarizer = select_summary_strategy(settings.summary_strategy, openai_client, settings.openai_model)
        except ValueError as exc:
            raise RuntimeError(str(exc)) from exc

        app.state.settings = settings
        app.state.openai_client = openai_client
        app.state.session_store = SessionStore()
        app.state.pickup_filter = PickupFilter(settings.pickup_threshold, settings.pickup_debounce_ms)
        app.state.stream_hub = StreamHub(room_publisher)
        app.state.orchestrator = ShoppingOrchestrator(
            app.state.session_store,
            app.state.stream_hub,
            ResearchPipeline(tools),
            summarizer,
            app.state.pickup_filter,
        )

        try:
            yield
        finally:
            if openai_client is not None:
                await _close_client(openai_client)

    app = FastAPI(title="ShoppingLens", lifespan=lifespan)

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
        Simple health check reporting model availability and live sessions.
        """
        state = request.app.state
        return {
            "ok": True,
            "openai_available": getattr(state, "openai_client", None) is not None,
            "summary_strategy": state.orchestrator.summarizer.name,
            "active_sessions": len(state.session_store.session_ids()),
        }

    # Register application routers
    app.include_router(session_router)
    app.include_router(realtime_router)

    return app


app = create_app()
