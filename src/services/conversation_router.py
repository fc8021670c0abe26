"""Routes chat messages into named sessions and through the completion gateway."""

import logging
from dataclasses import dataclass

from src.services.gateway import CompletionGateway, GatewayFailure
from src.services.session_store import Message, SessionStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChatReply:
    """Outcome of one successful chat turn."""

    session_name: str
    message: str
    model_name: str | None = None
    usage: dict[str, int] | None = None


class ConversationRouter:
    """Appends a user message, replays the session, and records the reply.

    A chat turn (append user message, call gateway, append reply) holds the
    session lock for its whole duration, so the gateway always sees exactly
    the transcript committed by earlier turns on that session.
    """

    def __init__(self, store: SessionStore, gateway: CompletionGateway):
        self.store = store
        self.gateway = gateway

    async def handle_chat_message(
        self, user_id: str, session_name: str | None, user_text: str
    ) -> ChatReply:
        """Run one chat turn for the user's named session.

        Args:
            user_id: Stable id of the authenticated principal
            session_name: Target session; empty or None means the default session
            user_text: New user message

        Returns:
            The assistant reply

        Raises:
            GatewayFailure: If the completion call fails. The user message stays
                in the transcript and no assistant message is added.
        """
        session = self.store.get_or_create(user_id, session_name)

        async with session.lock:
            self.store.append(session, Message(role="user", content=user_text))
            transcript = session.transcript()
            logger.info(
                f"Chat turn for user {user_id} in '{session.name}': "
                f"{len(transcript)} message(s) sent to gateway"
            )

            try:
                result = await self.gateway.complete(transcript)
            except GatewayFailure as e:
                logger.warning(f"Gateway failure in '{session.name}' for user {user_id}: {e}")
                raise

            self.store.append(session, Message(role="assistant", content=result.content))

        logger.info(f"Chat turn completed in '{session.name}' ({len(result.content)} chars)")
        return ChatReply(
            session_name=session.name,
            message=result.content,
            model_name=result.model_name,
            usage=result.usage or None,
        )
