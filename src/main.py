"""FastAPI application entry point."""

import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from openai import AsyncOpenAI
from starlette.middleware.sessions import SessionMiddleware

from src.agent import create_agent
from src.api.handlers import (
    OAUTH_CALLBACK_ROUTE,
    create_chat_handler,
    create_health_handler,
    create_history_handler,
    create_image_generate_handler,
    create_image_upload_handler,
    create_index_handler,
    create_login_handler,
    create_logout_handler,
    create_me_handler,
    create_oauth_callback_handler,
)
from src.config import Config
from src.services.conversation_router import ConversationRouter
from src.services.gateway import (
    AgentCompletionGateway,
    CompletionGateway,
    ImageGateway,
    OpenAIImageGateway,
)
from src.services.session_store import SessionStore

# Load .env file if it exists (for local development)
env_path = Path(__file__).parent.parent / ".env"
if env_path.exists():
    load_dotenv(env_path)

logger = logging.getLogger(__name__)


def load_config() -> Config:
    """Load configuration from environment variables.

    This is the only place that reads from environment variables.
    """
    openai_api_key = os.getenv("OPENAI_API_KEY")
    if not openai_api_key:
        raise ValueError("OPENAI_API_KEY environment variable must be set")

    timeout = os.getenv("COMPLETION_TIMEOUT", "60")

    return Config(
        openai_api_key=openai_api_key,
        chat_model=os.getenv("CHAT_MODEL", "gpt-4o-mini"),
        image_model=os.getenv("IMAGE_MODEL", "gpt-image-1"),
        default_image_size=os.getenv("DEFAULT_IMAGE_SIZE", "512x512"),
        default_session_name=os.getenv("DEFAULT_SESSION_NAME", "New Chat"),
        completion_timeout=float(timeout) if timeout and float(timeout) > 0 else None,
        google_client_id=os.getenv("GOOGLE_CLIENT_ID"),
        google_client_secret=os.getenv("GOOGLE_CLIENT_SECRET"),
        oauth_redirect_url=os.getenv("OAUTH_REDIRECT_URL"),
        session_secret=os.getenv("SESSION_SECRET", "secret"),
        upload_dir=os.getenv("UPLOAD_DIR", "uploads"),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        port=int(os.getenv("PORT", "5000")),
    )


def create_app(
    config: Config,
    store: SessionStore | None = None,
    chat_gateway: CompletionGateway | None = None,
    image_gateway: ImageGateway | None = None,
) -> FastAPI:
    """Build the application around one process-wide session store.

    Collaborators default to the real OpenAI-backed gateways; tests pass
    their own.
    """
    if store is None:
        store = SessionStore(default_session_name=config.default_session_name)
    if chat_gateway is None:
        agent = create_agent(openai_api_key=config.openai_api_key, model_name=config.chat_model)
        chat_gateway = AgentCompletionGateway(agent, timeout=config.completion_timeout)
    if image_gateway is None:
        image_gateway = OpenAIImageGateway(
            AsyncOpenAI(api_key=config.openai_api_key),
            model=config.image_model,
            default_size=config.default_image_size,
        )

    router = ConversationRouter(store, chat_gateway)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Lifespan context manager for startup/shutdown."""
        # Startup
        logger.info(f"🚀 Starting chat backend (model: {config.chat_model})")
        if not config.oauth_configured:
            logger.warning("GOOGLE_CLIENT_ID/GOOGLE_CLIENT_SECRET not set; login is disabled")
        yield
        # Shutdown: in-memory sessions are discarded with the process
        logger.info("👋 Shutting down chat backend")

    app = FastAPI(
        title="Multi-session Chat",
        description="Google-authenticated chat with named conversation sessions",
        lifespan=lifespan,
    )
    app.state.config = config
    app.state.session_store = store

    # CORS middleware for UI
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure appropriately for production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    # Signed cookie holding the principal and the OAuth state
    app.add_middleware(SessionMiddleware, secret_key=config.session_secret)

    # Register routes
    app.get("/")(create_index_handler())
    app.get("/health")(create_health_handler())
    app.get("/auth/google")(create_login_handler(config))
    app.get("/auth/google/callback", name=OAUTH_CALLBACK_ROUTE)(create_oauth_callback_handler(config))
    app.get("/logout")(create_logout_handler())
    app.get("/me")(create_me_handler())
    app.post("/chat")(create_chat_handler(router))
    app.get("/history")(create_history_handler(store))
    app.post("/image/generate")(create_image_generate_handler(image_gateway))
    app.post("/image/upload")(create_image_upload_handler(config.upload_dir))

    return app


# Load configuration
config = load_config()
logging.basicConfig(
    level=config.log_level,
    format="[%(asctime)s] %(levelname)s %(name)s - %(message)s",
)

app = create_app(config)


def main():
    """Run the FastAPI server."""
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=config.port)


if __name__ == "__main__":
    main()
