"""
FastAPI application entrypoint for the form conversation service.

No import-time side effects beyond logging setup; the store location and
thresholds are read from the environment when requests arrive.

Run with: uvicorn app:app  (or python app.py)
"""
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
import os
import logging

# Configure logging (this is acceptable at import time - just sets up handlers)
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger(__name__)


def _is_dev_mode() -> bool:
    """Check if running in development mode. Does NOT mutate environment."""
    env_value = os.getenv("ENV", "prod").lower()
    return env_value in ("dev", "development", "local")


@asynccontextmanager
async def lifespan(app: FastAPI):
    from workflows.forms.registry import available_forms
    from workflows.io.config_store import get_db_path

    logger.info("[Backend] Forms available: %s", ", ".join(available_forms()))
    logger.info("[Backend] Conversation store: %s", get_db_path())
    yield


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Safe to call multiple times (e.g., for testing).
    """
    is_dev = _is_dev_mode()

    app = FastAPI(title="Form Conversation Service", lifespan=lifespan)

    # Lazy import to avoid circular dependencies
    from api.routes import activity_router, messages_router

    app.include_router(messages_router)
    app.include_router(activity_router)

    _configure_cors(app)
    _add_root_endpoint(app, is_dev)

    return app


def _configure_cors(app: FastAPI) -> None:
    """Configure CORS middleware based on environment."""
    raw_origins = os.getenv("ALLOWED_ORIGINS")

    if raw_origins:
        allowed_origins = [o.strip() for o in raw_origins.split(",") if o.strip()]
        # "*" cannot be combined with allow_credentials=True
        if "*" in allowed_origins:
            allowed_origins = [o for o in allowed_origins if o != "*"]

        app.add_middleware(
            CORSMiddleware,
            allow_origins=allowed_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )
    else:
        # Dev default: localhost only
        app.add_middleware(
            CORSMiddleware,
            allow_origin_regex=r"^https?://(localhost|127\.0\.0\.1|0\.0\.0\.0)(:\d+)?$",
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )


def _add_root_endpoint(app: FastAPI, is_dev: bool) -> None:
    """Add root health check endpoint."""

    @app.get("/")
    async def root():
        """Root health check endpoint.

        In production (ENV=prod), returns minimal status only.
        In dev mode, includes the stored conversation count for debugging.
        """
        if is_dev:
            from workflows.io.database import ConversationStore

            return {
                "status": "Form Conversation Service Running",
                "total_conversations": len(ConversationStore().list_ids()),
            }
        return {"status": "ok"}


# This is what gets imported by uvicorn (e.g., uvicorn app:app)
app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        app,
        host=os.getenv("BACKEND_HOST", "0.0.0.0"),
        port=int(os.getenv("BACKEND_PORT", "8000")),
    )
