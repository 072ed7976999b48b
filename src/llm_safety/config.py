"""
Configuration settings for the LLM call-safety layer.

All settings are loaded from environment variables with sensible defaults.
Use .env file for local development.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # === Application ===
    APP_NAME: str = "LLM Safety Layer"
    APP_VERSION: str = "0.1.0"
    LOG_LEVEL: str = "INFO"
    ENVIRONMENT: str = "development"

    # === Completion Service ===
    COMPLETION_BASE_URL: str = "http://ollama:11434"
    COMPLETION_MODEL: str = "qwen2.5:7b"
    COMPLETION_TIMEOUT: int = 60  # seconds

    # === Retry ===
    RETRY_MAX_RETRIES: int = 3
    RETRY_INITIAL_DELAY_MS: int = 1000
    RETRY_MAX_DELAY_MS: int = 60000
    RETRY_BACKOFF_MULTIPLIER: float = 2.0
    RETRY_JITTER_FACTOR: float = 0.1
    RETRY_TRANSIENT_ERRORS: list[str] = [
        "RATE_LIMIT_EXCEEDED",
        "SERVICE_UNAVAILABLE",
        "TIMEOUT",
        "GATEWAY_TIMEOUT",
        "CONNECTION_ERROR",
    ]

    # === Circuit Breaker ===
    BREAKER_ENABLED: bool = True
    BREAKER_FAILURE_THRESHOLD: int = 5
    BREAKER_SUCCESS_THRESHOLD: int = 2
    BREAKER_RESET_TIMEOUT_MS: int = 60000

    # === Fallback ===
    FALLBACK_TEMPERATURE: float = 0.05  # Stricter sampling for tier 1
    FALLBACK_MODEL: str = "gpt-3.5-turbo"  # Cheaper/faster model for tier 2
    FALLBACK_CACHE_MAX_ENTRIES: int = 1000
    FALLBACK_CACHE_TTL_SECONDS: int | None = 86400  # None = no expiry

    # === Validation ===
    VALIDATION_WARNING_PENALTY: float = 0.1
    VALIDATION_MIN_CONFIDENCE: float = 0.1
    HALLUCINATION_FORCES_FALLBACK: bool = False

    # === Monitoring ===
    MONITOR_ENABLED: bool = True
    MONITOR_WINDOW: int = 1000  # Snapshots kept in the rolling log
    MONITOR_TREND_WINDOW: int = 100  # Recent vs prior window for trends
    MONITOR_MIN_SUCCESS_RATE: float = 0.9
    MONITOR_MAX_HALLUCINATION_RATE: float = 20.0  # per 1000 calls
    MONITOR_MAX_LATENCY_MS: float = 10000.0
    PROMETHEUS_ENABLED: bool = True

    # === Cost Estimation ===
    COST_PER_TOKEN: float = 0.00001  # Flat rate for models missing from the pricing table

    # === Prompt Registry Persistence ===
    REGISTRY_BACKEND: str = "file"  # memory | file | redis
    REGISTRY_PATH: str = "prompt-registry.json"
    REGISTRY_REDIS_KEY: str = "llm_safety:prompt_registry"
    REDIS_URL: str = "redis://redis:6379/0"
    REDIS_MAX_CONNECTIONS: int = 10


# Global settings instance
settings = Settings()
