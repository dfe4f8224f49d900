"""
Centralized configuration management using pydantic-settings.
This module provides a single source of truth for all engine configuration.
"""

from dotenv import load_dotenv
from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from memory_timeline.utils.logger import setup_logger

load_dotenv(override=False)


logger = setup_logger("core_config")


class Settings(BaseSettings):
    """
    Engine settings managed by pydantic-settings.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
        env_prefix="",
        populate_by_name=True,
    )

    # ===== Database Configuration =====
    database_url: str = Field(
        default="sqlite+aiosqlite:///./memory_timeline.db",
        alias="MEMORY_TIMELINE_DATABASE_URL",
        description="Event store URL (sqlite+aiosqlite:// or postgresql+asyncpg://)",
    )

    database_echo: bool = Field(
        default=False,
        alias="MEMORY_TIMELINE_DATABASE_ECHO",
        description="Echo SQL statements to the log",
    )

    # ===== Embedding Configuration =====
    embedding_provider: str = Field(
        default="local",
        alias="EMBEDDING_PROVIDER",
        description="Embedding provider to use (openai, voyage, cohere, local)",
    )

    embedding_model: str | None = Field(
        default=None,
        alias="EMBEDDING_MODEL",
        description="Embedding model name; defaults to the selected provider's standard model",
    )

    openai_api_key: str | None = Field(
        default=None,
        alias="OPENAI_API_KEY",
        description="OpenAI API key used for embeddings and chat completions",
    )

    openai_base_url: str | None = Field(
        default=None,
        alias="OPENAI_BASE_URL",
        description="OpenAI API base URL, defaults to https://api.openai.com/v1",
    )

    voyage_api_key: str | None = Field(
        default=None,
        alias="VOYAGE_API_KEY",
        description="Voyage AI API key for embeddings",
    )

    cohere_api_key: str | None = Field(
        default=None,
        alias="COHERE_API_KEY",
        description="Cohere API key for embeddings",
    )

    embedding_request_timeout: float = Field(
        default=30.0,
        alias="EMBEDDING_REQUEST_TIMEOUT",
        description="Timeout in seconds for remote embedding requests",
    )

    auto_generate_embeddings: bool = Field(
        default=True,
        alias="AUTO_GENERATE_EMBEDDINGS",
        description="Generate an embedding as soon as an event is created",
    )

    # ===== Relationship LLM Configuration =====
    default_llm_provider: str = Field(
        default="openai",
        alias="DEFAULT_LLM_PROVIDER",
        description="LLM provider used for relationship classification (openai, ollama)",
    )

    default_openai_model: str = Field(
        default="gpt-4o-mini",
        alias="DEFAULT_OPENAI_MODEL",
        description="Chat model used through the OpenAI client",
    )

    ollama_base_url: str | None = Field(
        default=None,
        alias="OLLAMA_BASE_URL",
        description="Ollama API base URL, e.g. http://localhost:11434",
    )

    default_ollama_model: str = Field(
        default="llama3:instruct",
        alias="DEFAULT_OLLAMA_MODEL",
        description="Chat model used through the Ollama client",
    )

    llm_temperature: float = Field(
        default=0.3,
        alias="LLM_TEMPERATURE",
        description="Sampling temperature for relationship classification",
    )

    llm_max_tokens: int = Field(
        default=1000,
        alias="LLM_MAX_TOKENS",
        description="Maximum tokens for a relationship classification response",
    )

    # ===== Cross-Reference Analysis Configuration =====
    similarity_threshold: float = Field(
        default=0.75,
        alias="RAG_SIMILARITY_THRESHOLD",
        description="Default minimum cosine similarity for related-event candidates",
    )

    analysis_candidate_limit: int = Field(
        default=20,
        alias="RAG_CANDIDATE_LIMIT",
        description="Maximum similar events classified per source event",
    )

    analysis_delay_seconds: float = Field(
        default=0.5,
        alias="RAG_ANALYSIS_DELAY_SECONDS",
        description="Pause between events during full-timeline analysis",
    )

    embedding_batch_delay_seconds: float = Field(
        default=0.1,
        alias="EMBEDDING_BATCH_DELAY_SECONDS",
        description="Pause between events while generating missing embeddings",
    )

    tag_suggestion_threshold: float = Field(
        default=0.7,
        alias="TAG_SUGGESTION_THRESHOLD",
        description="Minimum similarity for neighbours used in tag suggestions",
    )

    tag_suggestion_neighbor_limit: int = Field(
        default=10,
        alias="TAG_SUGGESTION_NEIGHBOR_LIMIT",
        description="Maximum neighbours consulted for tag suggestions",
    )

    # ===== Server Configuration =====
    server_host: str = Field(
        default="127.0.0.1", alias="SERVER_HOST", description="Server host address"
    )

    server_port: int = Field(
        default=8080, alias="SERVER_PORT", description="Server port number"
    )

    cors_allow_origins: list[str] = Field(
        default_factory=lambda: [
            "http://localhost:5173",
            "http://localhost:3000",
        ],
        alias="CORS_ALLOW_ORIGINS",
        description="CORS allowed origins",
    )

    @model_validator(mode="after")
    def validate_settings(self) -> "Settings":
        """Log warnings for missing credentials the selected providers need."""

        provider_keys = {
            "openai": self.openai_api_key,
            "voyage": self.voyage_api_key,
            "cohere": self.cohere_api_key,
        }
        if self.embedding_provider in provider_keys and not provider_keys.get(
            self.embedding_provider
        ):
            logger.warning(
                f"Embedding provider '{self.embedding_provider}' selected but no API key is set."
            )

        if self.default_llm_provider == "openai" and not self.openai_api_key:
            logger.warning(
                "OPENAI_API_KEY not set. Relationship classification will use the heuristic fallback."
            )

        if self.database_url.startswith("postgresql://"):
            self.database_url = self.database_url.replace(
                "postgresql://", "postgresql+asyncpg://", 1
            )

        logger.debug(
            f"Embedding provider: {self.embedding_provider}/{self.embedding_model}"
        )
        return self


# Global settings instance
settings = Settings()
