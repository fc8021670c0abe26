"""Pydantic AI agent used as the chat completion backend."""

from pydantic_ai import Agent
from pydantic_ai.models.openai import OpenAIChatModel
from pydantic_ai.providers.openai import OpenAIProvider


def create_agent(openai_api_key: str, model_name: str = "gpt-4o-mini") -> Agent:
    """Create and configure the Pydantic AI agent.

    The agent has no system prompt and no tools: each run replays a session
    transcript verbatim and returns a single text reply.
    Architecture: UI -> HTTP /chat -> ConversationRouter -> Agent -> OpenAI

    Args:
        openai_api_key: OpenAI API key for the chat model
        model_name: OpenAI chat model name

    Returns:
        Configured Pydantic AI agent
    """
    model = OpenAIChatModel(model_name, provider=OpenAIProvider(api_key=openai_api_key))
    return Agent(model)
