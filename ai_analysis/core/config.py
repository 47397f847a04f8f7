from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # LLM provider (DeepSeek, OpenAI-compatible chat completions)
    deepseek_api_key: str = ""
    deepseek_api_url: str = "https://api.deepseek.com/v1/chat/completions"
    deepseek_model: str = "deepseek-chat"
    ai_temperature: float = 0.7
    ai_max_tokens: int = 4000
    ai_timeout_seconds: float = 45.0
    ai_max_retries: int = 2  # retries after the first attempt
    ai_base_retry_delay: float = 1.0  # seconds; doubled per retry

    # Per-caller admission control for AI-backed analyses
    rate_limit_capacity: int = 10
    rate_limit_window_seconds: int = 60

    # Result cache
    cache_enabled: bool = True
    cache_default_ttl: int = 3600
    cache_namespace: str = "analysis"

    # Redis (rate-limit windows + cache store); in-memory stores when disabled
    redis_url: str = "redis://localhost:6379/0"
    use_redis: bool = False

    # App
    app_env: str = "development"
    app_debug: bool = True

    # Logging
    log_level: str = "INFO"
    log_json: bool = False  # set True in production for structured JSON logs

    # Sentry
    sentry_dsn: str = ""  # leave empty to disable


settings = Settings()


def validate_settings_for_production() -> None:
    """Validate critical settings. Called on startup in non-test environments."""
    errors: list[str] = []

    if not settings.deepseek_api_key:
        errors.append("DEEPSEEK_API_KEY must be set (AI analyses are unavailable without it)")

    if settings.ai_max_retries < 0:
        errors.append("AI_MAX_RETRIES must be >= 0")

    if settings.rate_limit_capacity < 1:
        errors.append("RATE_LIMIT_CAPACITY must be at least 1")

    if settings.app_env == "production":
        if not settings.use_redis:
            errors.append("USE_REDIS must be true in production (in-memory stores are per-process)")
        if settings.app_debug:
            errors.append("APP_DEBUG must be false in production")

    if errors:
        raise SystemExit("Configuration errors:\n  - " + "\n  - ".join(errors))
