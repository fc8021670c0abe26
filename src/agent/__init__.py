"""Agent module for creating and configuring the Pydantic AI agent."""

from src.agent.agent import create_agent

__all__ = ["create_agent"]
