"""Gateways to the completion and image generation provider.

Both gateways convert every provider-side problem (network error, non-2xx
status, timeout, missing reply) into a GatewayFailure so callers never see
a half-formed response.
"""

import asyncio
import logging
from collections.abc import Sequence
from typing import Any, Protocol

from openai import APIStatusError, AsyncOpenAI, OpenAIError
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic_ai import Agent
from pydantic_ai.exceptions import ModelHTTPError
from pydantic_ai.messages import (
    ModelMessage,
    ModelRequest,
    ModelResponse,
    TextPart,
    UserPromptPart,
)

from src.services.session_store import Message

logger = logging.getLogger(__name__)


class GatewayFailure(Exception):
    """The completion or image provider call did not produce a usable result."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class CompletionResult(BaseModel):
    """Validated reply from the completion provider."""

    model_config = ConfigDict(protected_namespaces=())

    content: str = Field(..., min_length=1, description="Assistant reply text")
    model_name: str | None = Field(None, description="Model that produced the reply")
    usage: dict[str, int] = Field(default_factory=dict, description="Token usage counters")

    @field_validator("content")
    @classmethod
    def _reject_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("reply is blank")
        return value


class CompletionGateway(Protocol):
    async def complete(self, messages: Sequence[Message]) -> CompletionResult: ...


class ImageGateway(Protocol):
    async def generate(self, prompt: str, size: str | None = None) -> dict[str, Any]: ...


def to_model_messages(messages: Sequence[Message]) -> list[ModelMessage]:
    """Convert transcript messages to Pydantic AI message history.

    Pydantic AI uses ModelRequest for user messages and ModelResponse for
    assistant messages.
    """
    history: list[ModelMessage] = []
    for message in messages:
        if message.role == "user":
            history.append(ModelRequest(parts=[UserPromptPart(content=message.content)]))
        else:
            history.append(ModelResponse(parts=[TextPart(content=message.content)]))
    return history


class AgentCompletionGateway:
    """Completion gateway backed by a Pydantic AI agent."""

    def __init__(self, agent: Agent, timeout: float | None = 60.0):
        self._agent = agent
        # Zero or negative means no timeout
        self._timeout = timeout if timeout and timeout > 0 else None

    async def complete(self, messages: Sequence[Message]) -> CompletionResult:
        """Send the full transcript and return the assistant reply.

        The last message must be the new user message; everything before it
        is replayed as history.

        Raises:
            GatewayFailure: If the call fails or the reply is missing
        """
        if not messages or messages[-1].role != "user":
            raise GatewayFailure("Transcript must end with a user message")

        latest = messages[-1]
        history = to_model_messages(messages[:-1])

        try:
            result = await asyncio.wait_for(
                self._agent.run(latest.content, message_history=history),
                timeout=self._timeout,
            )
        except asyncio.TimeoutError:
            raise GatewayFailure(f"Completion timed out after {self._timeout}s") from None
        except ModelHTTPError as e:
            raise GatewayFailure(
                f"Completion provider returned status {e.status_code}", status_code=e.status_code
            ) from e
        except Exception as e:
            raise GatewayFailure(f"Completion request failed: {e}") from e

        try:
            response = getattr(result, "response", None)
            # usage is a method in older releases and a property in newer ones
            usage = result.usage() if callable(result.usage) else result.usage
            return CompletionResult(
                content=result.output,
                model_name=getattr(response, "model_name", None),
                usage={
                    "input_tokens": getattr(usage, "input_tokens", 0) or 0,
                    "output_tokens": getattr(usage, "output_tokens", 0) or 0,
                },
            )
        except ValidationError as e:
            raise GatewayFailure("Completion response did not include a reply") from e
        except Exception as e:
            raise GatewayFailure(f"Completion response could not be read: {e}") from e


class OpenAIImageGateway:
    """Stateless passthrough to the OpenAI images endpoint."""

    def __init__(self, client: AsyncOpenAI, model: str = "gpt-image-1", default_size: str = "512x512"):
        self._client = client
        self._model = model
        self._default_size = default_size

    async def generate(self, prompt: str, size: str | None = None) -> dict[str, Any]:
        """Forward the prompt and return the provider payload unmodified.

        Raises:
            GatewayFailure: If the provider call fails
        """
        size = size or self._default_size
        logger.info(f"Generating image with {self._model} ({size})")
        try:
            response = await self._client.images.generate(model=self._model, prompt=prompt, size=size)
        except APIStatusError as e:
            raise GatewayFailure(
                f"Image provider returned status {e.status_code}", status_code=e.status_code
            ) from e
        except OpenAIError as e:
            raise GatewayFailure(f"Image request failed: {e}") from e
        return response.model_dump()
