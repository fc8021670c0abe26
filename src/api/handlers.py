"""API request handlers."""

import html
import logging
import secrets
import uuid
from pathlib import Path
from typing import Any

import httpx
from fastapi import Depends, File, HTTPException, Query, Request, UploadFile
from fastapi.responses import HTMLResponse, RedirectResponse

from src.api.models import ChatRequest, ChatResponse, ImageRequest, SessionView, UploadResponse
from src.auth import (
    SESSION_STATE_KEY,
    SESSION_USER_KEY,
    Principal,
    build_authorization_url,
    fetch_google_principal,
    get_principal,
    require_principal,
)
from src.config import Config
from src.services.conversation_router import ConversationRouter
from src.services.gateway import GatewayFailure, ImageGateway
from src.services.session_store import SessionStore

logger = logging.getLogger(__name__)

OAUTH_CALLBACK_ROUTE = "google_callback"


def create_health_handler():
    """Create health check handler."""

    async def health():
        """Health check endpoint."""
        return {"status": "healthy"}

    return health


def create_index_handler():
    """Create landing page handler."""

    async def index(principal: Principal | None = Depends(get_principal)) -> HTMLResponse:
        """Landing page showing the login state."""
        if principal is None:
            body = '<p><a href="/auth/google">Sign in with Google</a></p>'
        else:
            name = html.escape(principal.name or principal.email or principal.id)
            body = f'<p>Signed in as {name}. <a href="/logout">Log out</a></p>'
        return HTMLResponse(f"<!doctype html><html><head><title>Chat</title></head><body>{body}</body></html>")

    return index


def create_login_handler(config: Config):
    """Create handler that starts the Google OAuth redirect."""

    async def login(request: Request) -> RedirectResponse:
        """Redirect to the Google consent screen."""
        if not config.oauth_configured:
            raise HTTPException(status_code=503, detail="Google OAuth is not configured")

        state = secrets.token_urlsafe(16)
        request.session[SESSION_STATE_KEY] = state
        redirect_uri = config.oauth_redirect_url or str(request.url_for(OAUTH_CALLBACK_ROUTE))
        return RedirectResponse(
            build_authorization_url(config.google_client_id, redirect_uri, state), status_code=302
        )

    return login


def create_oauth_callback_handler(config: Config):
    """Create handler that completes the Google OAuth redirect."""

    async def callback(request: Request, code: str | None = None, state: str | None = None) -> RedirectResponse:
        """Exchange the code, store the principal, and go home."""
        expected_state = request.session.pop(SESSION_STATE_KEY, None)
        if not config.oauth_configured or not code or not state or state != expected_state:
            logger.warning("Rejected OAuth callback with missing code or mismatched state")
            return RedirectResponse("/", status_code=302)

        redirect_uri = config.oauth_redirect_url or str(request.url_for(OAUTH_CALLBACK_ROUTE))
        try:
            principal = await fetch_google_principal(
                code,
                client_id=config.google_client_id,
                client_secret=config.google_client_secret,
                redirect_uri=redirect_uri,
            )
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"Google login failed: {e}")
            return RedirectResponse("/", status_code=302)

        request.session[SESSION_USER_KEY] = principal.model_dump()
        logger.info(f"User {principal.id} logged in")
        return RedirectResponse("/", status_code=302)

    return callback


def create_logout_handler():
    """Create logout handler."""

    async def logout(request: Request) -> RedirectResponse:
        """Forget the principal and go home."""
        user = request.session.pop(SESSION_USER_KEY, None)
        if user:
            logger.info(f"User {user.get('id')} logged out")
        return RedirectResponse("/", status_code=302)

    return logout


def create_me_handler():
    """Create handler returning the authenticated principal."""

    async def me(principal: Principal = Depends(require_principal)) -> Principal:
        """Current principal."""
        return principal

    return me


def create_chat_handler(router: ConversationRouter):
    """Create chat handler with conversation router dependency.

    Args:
        router: Conversation router shared by all requests

    Returns:
        Chat handler function
    """

    async def chat(request: ChatRequest, principal: Principal = Depends(require_principal)) -> ChatResponse:
        """Chat endpoint: one turn in one of the user's named sessions."""
        logger.info(f"📝 User {principal.id} message: {request.message[:100]}")

        try:
            reply = await router.handle_chat_message(principal.id, request.session_name, request.message)
        except GatewayFailure as e:
            raise HTTPException(status_code=502, detail=f"Completion gateway error: {e.message}")

        return ChatResponse(
            message=reply.message,
            session_name=reply.session_name,
            model=reply.model_name,
            usage=reply.usage,
        )

    return chat


def create_history_handler(store: SessionStore):
    """Create handler listing the user's sessions."""

    async def history(
        session_name: str | None = Query(None, alias="sessionName"),
        principal: Principal = Depends(require_principal),
    ) -> list[SessionView]:
        """All sessions in creation order, or only the named one."""
        if session_name is None:
            return [SessionView.from_snapshot(s) for s in store.list_sessions(principal.id)]

        snapshot = store.get(principal.id, session_name)
        if snapshot is None:
            raise HTTPException(status_code=404, detail=f"Session '{session_name}' not found")
        return [SessionView.from_snapshot(snapshot)]

    return history


def create_image_generate_handler(image_gateway: ImageGateway):
    """Create image generation handler."""

    async def generate_image(
        request: ImageRequest, principal: Principal = Depends(require_principal)
    ) -> dict[str, Any]:
        """Forward an image prompt and return the provider payload."""
        try:
            return await image_gateway.generate(request.prompt, request.size)
        except GatewayFailure as e:
            logger.warning(f"Image generation failed for user {principal.id}: {e}")
            raise HTTPException(status_code=502, detail=f"Image gateway error: {e.message}")

    return generate_image


def create_image_upload_handler(upload_dir: str):
    """Create upload handler storing files under upload_dir."""

    async def upload_image(
        file: UploadFile = File(...), principal: Principal = Depends(require_principal)
    ) -> UploadResponse:
        """Store an uploaded file under a random name."""
        data = await file.read()
        if not data:
            raise HTTPException(status_code=400, detail="Empty upload")

        directory = Path(upload_dir)
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / uuid.uuid4().hex
        path.write_bytes(data)

        logger.info(f"Stored upload {file.filename!r} for user {principal.id} at {path} ({len(data)} bytes)")
        return UploadResponse(file_path=str(path))

    return upload_image
