"""Services module for business logic."""

from src.services.conversation_router import ChatReply, ConversationRouter
from src.services.gateway import (
    AgentCompletionGateway,
    CompletionResult,
    GatewayFailure,
    OpenAIImageGateway,
)
from src.services.session_store import Message, Session, SessionSnapshot, SessionStore

__all__ = [
    "AgentCompletionGateway",
    "ChatReply",
    "CompletionResult",
    "ConversationRouter",
    "GatewayFailure",
    "Message",
    "OpenAIImageGateway",
    "Session",
    "SessionSnapshot",
    "SessionStore",
]
