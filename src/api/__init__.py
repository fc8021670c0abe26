"""API module for request/response models and handlers."""

from src.api.models import ChatMessage, ChatRequest, ChatResponse, ImageRequest, SessionView, UploadResponse
from src.api.handlers import (
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

__all__ = [
    "ChatMessage",
    "ChatRequest",
    "ChatResponse",
    "ImageRequest",
    "SessionView",
    "UploadResponse",
    "create_chat_handler",
    "create_health_handler",
    "create_history_handler",
    "create_image_generate_handler",
    "create_image_upload_handler",
    "create_index_handler",
    "create_login_handler",
    "create_logout_handler",
    "create_me_handler",
    "create_oauth_callback_handler",
]
