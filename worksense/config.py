from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from typing import List, Optional
from functools import lru_cache
import os


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )
    # Application
    app_name: str = "Worksense"
    app_version: str = "1.0.0"
    debug: bool = False

    # Database
    database_url: str = Field(default="sqlite+aiosqlite:///./worksense.db")
    database_echo: bool = False

    # Authentication & Security
    secret_key: str
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 60

    # Backlog generator
    generator_provider: str = "http"  # http or openai
    generator_base_url: Optional[str] = None
    generator_timeout: float = 30.0

    # OpenAI-compatible provider
    openai_api_key: str = "not-needed"
    openai_model: str = "gpt-4o-mini"
    openai_api_base: Optional[str] = None
    openai_temperature: float = 0.3
    max_tokens: int = 2000

    # Sprint board
    sprint_order_gap: int = Field(default=1000, gt=1)

    # CORS
    allowed_origins: List[str] = Field(
        default=["http://localhost:3000", "http://localhost:5173"]
    )

    # Logging
    log_level: str = "INFO"
    log_file: Optional[str] = None


# Environment-specific configurations
class DevelopmentConfig(Settings):
    debug: bool = True
    log_level: str = "DEBUG"
    secret_key: str = "dev-secret-key"


class ProductionConfig(Settings):
    debug: bool = False
    database_echo: bool = False
    log_level: str = "WARNING"


class TestingConfig(Settings):
    database_url: str = "sqlite+aiosqlite:///./test.db"
    secret_key: str = "test-secret-key"
    generator_base_url: Optional[str] = "http://generator.test"
    log_level: str = "DEBUG"


@lru_cache
def get_settings() -> Settings:
    """Factory function to get settings based on environment"""
    env = os.getenv("ENVIRONMENT", "development").lower()

    if env == "production":
        return ProductionConfig()
    elif env == "testing":
        return TestingConfig()
    else:
        return DevelopmentConfig()
