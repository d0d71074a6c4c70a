"""Application settings loaded from environment variables via pydantic-settings.

Values are read from (in priority order):

  1. Environment variables, e.g. ``OPENAI_API_KEY=sk-abc123``
  2. A ``.env`` file in the working directory

Field ``openai_api_key`` maps to env var ``OPENAI_API_KEY``.  Defaults apply
when neither source sets a field.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Clarity application settings.

    Environment variables override defaults. Loaded from .env file when present.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    # === OpenAI ===
    # Empty string = "not configured"; providers report is_available() False.
    openai_api_key: str = ""
    openai_base_url: str = ""  # OpenAI-compatible endpoint (TogetherAI, etc.)
    openai_chat_model: str = "gpt-4.1-mini"
    openai_embedding_model: str = "text-embedding-3-small"
    openai_timeout: float = 60.0

    # === Chunking ===
    chunk_size: int = Field(default=500, gt=0)
    chunk_overlap: int = Field(default=50, ge=0)

    # === Retrieval policy ===
    # Document-centric queries fetch more neighbours and skip the floor.
    rag_focused_top_k: int = Field(default=8, gt=0)
    rag_ambient_top_k: int = Field(default=5, gt=0)
    rag_min_similarity: float = Field(default=0.3, ge=-1.0, le=1.0)

    # === Generation / web search ===
    search_enabled: bool = True
    search_max_results: int = Field(default=3, gt=0)
    agent_max_tool_rounds: int = Field(default=4, ge=0)
    agent_temperature: float = 0.3
    agent_max_tokens: int = 2000

    # === Sessions ===
    session_ttl: int = 6 * 60 * 60  # seconds
    session_max_count: int = 256

    # === Attachments (HTTP API) ===
    # Attachment paths sent over HTTP must resolve inside this directory.
    upload_dir: str = "uploads"

    # === App Config ===
    config_path: str = "config/config.yaml"
    app_host: str = "127.0.0.1"
    app_port: int = 8000
    app_env: str = "development"
    log_level: str = "INFO"

    def get_available_providers(self) -> list[str]:
        """Return the names of external providers that are configured."""
        providers: list[str] = []
        if self.openai_api_key:
            providers.extend(["openai_chat", "openai_embedding"])
        if self.search_enabled:
            providers.append("duckduckgo")
        return providers
