from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from . import __version__
from .routers.meetings import router as meetings_router
from .config import Settings, load_settings
from .logging import setup_logging, install_app_logging
from .errors import install_error_handlers
from .services.extraction import MeetingNotesProcessor
from .services.gemini import GeminiClient
from .state import State

FRONTEND_DIR = Path(__file__).resolve().parent / "frontend"


def create_app(settings: Optional[Settings] = None, client: Any = None) -> FastAPI:
    """Build the application.

    `client` is the upstream text generator shared by all requests; when not
    given, a GeminiClient is built from settings.
    """
    settings = settings or load_settings()
    setup_logging()
    log = logging.getLogger("minutes")

    if client is None:
        if not settings.gemini_api_key:
            log.warning("GEMINI_API_KEY is not set; extraction requests will fail with 401")
        client = GeminiClient(
            api_key=settings.gemini_api_key,
            model=settings.gemini_model,
            base_url=settings.gemini_api_base,
            timeout=settings.gemini_timeout_s,
        )

    app = FastAPI(title="Meeting Minutes Extractor API", version=__version__)

    # Attach config/state
    app.state.settings = settings
    app.state.state = State(client=client, processor=MeetingNotesProcessor(client))

    # CORS
    allow = [o.strip() for o in settings.cors_allow_origins.split(",") if o.strip()]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allow or ["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    install_app_logging(app)
    install_error_handlers(app)

    app.include_router(meetings_router)

    @app.get("/health")
    def health():  # pragma: no cover - trivial
        return {"status": "ok"}

    if settings.serve_frontend and FRONTEND_DIR.is_dir():
        app.mount("/ui", StaticFiles(directory=FRONTEND_DIR, html=True), name="ui")

    log.info(f"app ready model={settings.gemini_model} environment={settings.environment}")
    return app


# Convenience for `uvicorn minutes_api.app:app`
app = create_app()
