"""Configuration dataclass for the chat backend."""

from dataclasses import dataclass


@dataclass
class Config:
    """Application configuration.

    All configuration should be passed as a Config instance rather than
    reading from environment variables directly.
    """

    openai_api_key: str
    chat_model: str = "gpt-4o-mini"
    image_model: str = "gpt-image-1"
    default_image_size: str = "512x512"
    default_session_name: str = "New Chat"
    completion_timeout: float | None = 60.0
    google_client_id: str | None = None
    google_client_secret: str | None = None
    oauth_redirect_url: str | None = None
    session_secret: str = "secret"
    upload_dir: str = "uploads"
    log_level: str = "INFO"
    port: int = 5000

    @property
    def oauth_configured(self) -> bool:
        """Whether Google OAuth credentials are available."""
        return bool(self.google_client_id and self.google_client_secret)
