from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # App
    APP_ENV: str = "development"
    DEBUG: bool = True
    ALLOWED_ORIGINS: str = "http://localhost:5173,http://localhost:8080"
    TIMEZONE: str = "Europe/London"

    # Database – SQLite for local development
    DATABASE_URL: str = "sqlite+aiosqlite:///./guardops.db"

    # Redis / Celery beat (scheduled jobs)
    REDIS_URL: str = "redis://localhost:6379/0"

    # Security
    SECRET_KEY: str = "dev_secret_key_change_in_production_min_32_chars!!"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    REFRESH_TOKEN_EXPIRE_DAYS: int = 7

    # AI providers (OpenAI-compatible chat completions)
    OPENAI_API_KEY: str = ""
    OPENAI_MODEL: str = "gpt-4o-mini"
    OPENAI_BASE_URL: str = "https://api.openai.com/v1"
    PERPLEXITY_API_KEY: str = ""
    PERPLEXITY_MODEL: str = "sonar"
    PERPLEXITY_BASE_URL: str = "https://api.perplexity.ai"
    AI_TIMEOUT_SECONDS: float = 60.0

    # Operations
    NO_SHOW_GRACE_MINUTES: int = 10
    PATROL_TARGET_PER_GUARD: int = 3
    TRAINING_EXPIRY_WARNING_DAYS: int = 30

    # SendGrid
    SENDGRID_API_KEY: str = ""
    SENDGRID_FROM_EMAIL: str = "control-room@yourdomain.co.uk"

    # Telegram
    TELEGRAM_BOT_TOKEN: str = ""

    @property
    def allowed_origins_list(self) -> list[str]:
        return [o.strip() for o in self.ALLOWED_ORIGINS.split(",")]

    model_config = {"env_file": ".env", "extra": "ignore"}


settings = Settings()
