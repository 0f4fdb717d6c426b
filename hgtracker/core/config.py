from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    DATABASE_URL: str = "sqlite:///./hgtracker.db"
    APP_ENV: str = "development"
    LOG_LEVEL: str = "INFO"

    # IANA zone used for day boundaries in date presets ("today", "yesterday" ...)
    TIMEZONE: str = "UTC"

    # Comma-separated allowed origins, or "*" to allow all.
    # Example: "https://myapp.com,https://api.myapp.com"
    CORS_ORIGINS: str = "*"

    # Quiz generation (chat-completion endpoint)
    OPENAI_API_KEY: str | None = None
    OPENAI_ENDPOINT: str = "https://api.openai.com/v1/chat/completions"
    QUIZ_MODEL: str = "gpt-4o-mini"
    QUIZ_TEMPERATURE: float = 0.7
    QUIZ_MAX_TOKENS: int = 2000
    QUIZ_MAX_ATTEMPTS: int = 3
    QUIZ_RETRY_BASE_DELAY: float = 1.0
    QUIZ_TIMEOUT: float = 30.0

    @property
    def cors_origins_list(self) -> list[str]:
        if self.CORS_ORIGINS.strip() == "*":
            return ["*"]
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]


settings = Settings()
