"""Pipeline configuration."""

from pydantic import model_validator
from pydantic_settings import BaseSettings

# Batches above this size routinely exceed model output limits.
HARD_MAX_BATCH_SIZE = 8


class Settings(BaseSettings):
    """Pipeline settings loaded from environment variables (prefix ``KOGRAMMAR_``)."""

    # Development mode: human-readable logs instead of JSON lines
    dev_mode: bool = True

    # Bareun grammar backend
    bareun_api_key: str = ""
    bareun_host: str = "bareun-api.junlim.org"
    bareun_port: int = 443

    # Timeouts (seconds)
    morpheme_timeout_seconds: float = 10.0
    spelling_timeout_seconds: float = 15.0
    llm_timeout_seconds: float = 60.0

    # Retry policy for backend calls
    retry_max_retries: int = 2
    retry_base_delay: float = 1.0
    retry_max_delay: float = 3.0
    retry_backoff_factor: float = 1.5

    # Morpheme response cache
    morpheme_cache_size: int = 100

    # Extraction
    filter_single_char_errors: bool = True
    ignored_words: list[str] = []

    # AI analysis
    ai_enabled: bool = False
    ai_provider: str = "openai"
    openai_api_key: str = ""
    anthropic_api_key: str = ""
    google_api_key: str = ""
    ollama_endpoint: str = "http://localhost:11434"
    ai_model: str = "gpt-4o-mini"
    ai_max_tokens: int = 2000
    ai_temperature: float = 0.1
    context_window: int = 50
    enhanced_context: bool = True
    max_batch_size: int = HARD_MAX_BATCH_SIZE
    batch_delay_seconds: float = 1.5

    # Logging
    log_level: str = "info"

    @model_validator(mode="after")
    def _validate_limits(self) -> "Settings":
        if self.max_batch_size < 1 or self.max_batch_size > HARD_MAX_BATCH_SIZE:
            raise ValueError(
                f"MAX_BATCH_SIZE must be between 1 and {HARD_MAX_BATCH_SIZE}"
            )
        if self.batch_delay_seconds < 0:
            raise ValueError("BATCH_DELAY_SECONDS must not be negative")
        if self.context_window < 0:
            raise ValueError("CONTEXT_WINDOW must not be negative")
        return self

    class Config:
        env_prefix = "KOGRAMMAR_"
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()
