"""
Application configuration loader and it handles:
- Environment variables
- Runtime mode (development / production / test)
- Model configuration
- Database configuration
- Auth settings

And, the main purpose:
Central place for system configuration.
"""


from typing import List

from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    APP_ENV: str = "development"  # development | production | test
    LOG_LEVEL: str = ""  # empty -> DEBUG in development, INFO otherwise

    DATABASE_URL: str = ""

    # LLM
    LLM_PROVIDER: str = "openai"  # openai | mock (for no-key dev)
    OPENAI_API_KEY: str = ""
    OPENAI_BASE_URL: str = "https://api.openai.com/v1"
    LLM_MODEL: str = "gpt-4o-2024-11-20"
    LLM_TEMPERATURE: float = 0.8
    LLM_MAX_TOKENS: int = 32000
    LLM_TIMEOUT_SECONDS: float = 40.0

    # Auth
    API_TOKEN: str = ""
    AUTH_BYPASS: bool = False  # honoured only when APP_ENV=development
    PUBLIC_ROUTES: List[str] = ["/sign-in(.*)", "/v1/health", "/docs", "/openapi.json"]

    class Config:
        env_file = ".env"
        extra = "ignore"

    @property
    def app_env(self) -> str:
        return self.APP_ENV.lower().strip()

    @property
    def is_development(self) -> bool:
        return self.app_env == "development"

    @property
    def database_url(self) -> str:
        return self.DATABASE_URL or "sqlite+aiosqlite:///./ai_starter.db"

settings = Settings()
