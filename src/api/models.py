"""Pydantic models for API requests and responses."""

from pydantic import BaseModel, ConfigDict, Field

from src.services.session_store import SessionSnapshot


class ChatMessage(BaseModel):
    """Single chat message."""

    role: str = Field(..., description="Message role: 'user' or 'assistant'")
    content: str = Field(..., description="Message content")


class ChatRequest(BaseModel):
    """Chat request from client."""

    model_config = ConfigDict(populate_by_name=True)

    message: str = Field(..., min_length=1, description="New user message")
    session_name: str | None = Field(
        None, alias="sessionName", description="Target session; defaults to the placeholder session"
    )


class ChatResponse(BaseModel):
    """Chat response to client."""

    model_config = ConfigDict(populate_by_name=True)

    message: str = Field(..., description="Assistant reply")
    session_name: str = Field(..., alias="sessionName", description="Session the turn was recorded in")
    model: str | None = Field(None, description="Model that produced the reply")
    usage: dict[str, int] | None = Field(None, description="Token usage for this turn")


class SessionView(BaseModel):
    """A session and its full transcript."""

    name: str = Field(..., description="Session name")
    messages: list[ChatMessage] = Field(default_factory=list, description="Transcript, oldest first")

    @classmethod
    def from_snapshot(cls, snapshot: SessionSnapshot) -> "SessionView":
        return cls(
            name=snapshot.name,
            messages=[ChatMessage(role=m.role, content=m.content) for m in snapshot.messages],
        )


class ImageRequest(BaseModel):
    """Image generation request."""

    prompt: str = Field(..., min_length=1, description="Image prompt")
    size: str | None = Field(None, description="Image size, e.g. '512x512'")


class UploadResponse(BaseModel):
    """Location of a stored upload."""

    model_config = ConfigDict(populate_by_name=True)

    file_path: str = Field(..., alias="filePath", description="Path the file was stored at")
