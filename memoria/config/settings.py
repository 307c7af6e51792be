from typing import Optional
from urllib.parse import quote_plus

from pydantic import AliasChoices, Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseConfig(BaseSettings):
    """Database configuration"""

    backend: str = "sqlite"
    sqlite_path: str = "database.sqlite"
    host: str = "localhost"
    port: int = 5432
    username: str = "postgres"
    password: SecretStr = Field(default=SecretStr("postgres"))
    database: str = "memoria"
    url_override: Optional[str] = Field(
        default=None,
        validation_alias="DATABASE_URL",
    )

    @property
    def url(self) -> str:
        """Get database URL"""
        if self.url_override:
            return self.url_override
        if self.backend.lower() in ("postgres", "postgresql"):
            username = quote_plus(self.username)
            password = quote_plus(self.password.get_secret_value())
            return (
                "postgresql+asyncpg://"
                f"{username}:{password}"
                f"@{self.host}:{self.port}/{self.database}"
            )
        return f"sqlite+aiosqlite:///{self.sqlite_path}"

    model_config = SettingsConfigDict(
        env_prefix="DB_",
        env_file=".env",
        secrets_dir=".secrets",
        case_sensitive=False,
        extra="ignore",
    )


class OpenAIConfig(BaseSettings):
    """OpenAI chat + transcription configuration."""

    api_key: SecretStr | None = Field(
        default=None,
        validation_alias=AliasChoices("OPENAI_API_KEY", "API_KEY"),
    )
    base_url: str = Field(
        default="https://api.openai.com/v1",
        validation_alias="OPENAI_BASE_URL",
    )
    model: str = Field(default="gpt-4o", validation_alias="OPENAI_MODEL")
    transcription_model: str = Field(
        default="whisper-1",
        validation_alias="OPENAI_TRANSCRIPTION_MODEL",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        secrets_dir=".secrets",
        case_sensitive=False,
        extra="ignore",
    )


class OllamaConfig(BaseSettings):
    """Local Ollama inference server configuration."""

    base_url: Optional[str] = Field(default=None, validation_alias="OLLAMA_BASE_URL")
    model: str = Field(default="llama3.2:latest", validation_alias="OLLAMA_MODEL")

    @property
    def resolved_base_url(self) -> str:
        return self.base_url or "http://localhost:11434"

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )


class GroqConfig(BaseSettings):
    """Groq (OpenAI-compatible) configuration."""

    api_key: SecretStr | None = Field(default=None, validation_alias="GROQ_API_KEY")
    base_url: str = Field(
        default="https://api.groq.com/openai/v1",
        validation_alias="GROQ_BASE_URL",
    )
    model: str = Field(default="llama-3.1-70b-versatile", validation_alias="GROQ_MODEL")

    model_config = SettingsConfigDict(
        env_file=".env",
        secrets_dir=".secrets",
        case_sensitive=False,
        extra="ignore",
    )


class TogetherConfig(BaseSettings):
    """Together AI (OpenAI-compatible) configuration."""

    api_key: SecretStr | None = Field(default=None, validation_alias="TOGETHER_API_KEY")
    base_url: str = Field(
        default="https://api.together.xyz/v1",
        validation_alias="TOGETHER_BASE_URL",
    )
    model: str = Field(
        default="meta-llama/Llama-3.1-70B-Instruct-Turbo",
        validation_alias="TOGETHER_MODEL",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        secrets_dir=".secrets",
        case_sensitive=False,
        extra="ignore",
    )


class HuggingFaceConfig(BaseSettings):
    """Hugging Face inference API configuration."""

    api_key: SecretStr | None = Field(
        default=None,
        validation_alias="HUGGINGFACE_API_KEY",
    )
    base_url: str = Field(
        default="https://api-inference.huggingface.co/models",
        validation_alias="HUGGINGFACE_BASE_URL",
    )
    model: str = Field(
        default="microsoft/DialoGPT-medium",
        validation_alias="HUGGINGFACE_MODEL",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        secrets_dir=".secrets",
        case_sensitive=False,
        extra="ignore",
    )


class AnalysisConfig(BaseSettings):
    """Tuning knobs for the analysis dispatcher."""

    default_provider: Optional[str] = None
    provider_timeout_seconds: float = Field(default=60.0, gt=0)
    probe_timeout_seconds: float = Field(default=2.0, gt=0)
    temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    max_tokens: int = Field(default=1000, ge=1, le=32768)
    summary_prefix_chars: int = Field(default=200, ge=1)
    diary_prefix_chars: int = Field(default=300, ge=1)
    speaker_characteristics: bool = False

    model_config = SettingsConfigDict(
        env_prefix="AI_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )


class Settings(BaseSettings):
    """Application settings"""

    app_name: str = "Memoria Voice Notes Backend"
    app_version: str = "1.0.0"
    debug: bool = False
    host: str = "0.0.0.0"
    port: int = 5000
    log_file: str = "logs/app.log"
    analysis_log_file: str = "logs/analysis.log"
    persist_request_logs: bool = False

    # Database
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)

    # AI providers
    openai: OpenAIConfig = Field(default_factory=OpenAIConfig)
    ollama: OllamaConfig = Field(default_factory=OllamaConfig)
    groq: GroqConfig = Field(default_factory=GroqConfig)
    together: TogetherConfig = Field(default_factory=TogetherConfig)
    huggingface: HuggingFaceConfig = Field(default_factory=HuggingFaceConfig)

    # Dispatcher
    analysis: AnalysisConfig = Field(default_factory=AnalysisConfig)

    # CORS
    cors_origins: list[str] = ["*"]
    cors_allow_credentials: bool = True
    cors_allow_methods: list[str] = ["*"]
    cors_allow_headers: list[str] = ["*"]

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )


# Global settings instance
settings = Settings()
