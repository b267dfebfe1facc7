"""
Marcenaria API - Configuration
"""
from pydantic_settings import BaseSettings
from functools import lru_cache
from typing import Optional
import secrets
from pathlib import Path
from dotenv import load_dotenv

# Carrega .env com override para sobrescrever variáveis do sistema
env_file = Path(__file__).parent.parent.parent / ".env"
if env_file.exists():
    load_dotenv(env_file, override=True)


class Settings(BaseSettings):
    # App
    APP_NAME: str = "Marcenaria API"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 4000

    # Database
    DATABASE_URL: Optional[str] = None
    SQLITE_DATABASE_URL: str = "sqlite+aiosqlite:///./marcenaria.db"

    @property
    def db_url(self) -> str:
        """Retorna DATABASE_URL se definido, senão o SQLite local"""
        url = self.DATABASE_URL or self.SQLITE_DATABASE_URL
        # postgres:// vindo de provedores de hosting
        if url.startswith("postgres://"):
            url = url.replace("postgres://", "postgresql+asyncpg://", 1)
        elif url.startswith("postgresql://"):
            url = url.replace("postgresql://", "postgresql+asyncpg://", 1)
        return url

    # Security
    SECRET_KEY: str = secrets.token_urlsafe(32)
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7
    LOGIN_RATE_LIMIT: str = "10/minute"

    # Regras financeiras
    MAX_INSTALLMENTS: int = 24
    MAX_PURCHASE_INSTALLMENTS: int = 48
    DEFAULT_WORK_DAYS: int = 22

    # CORS
    CORS_ORIGINS: list = ["*"]

    # Email Settings (SMTP)
    SMTP_HOST: str = "smtp.gmail.com"
    SMTP_PORT: int = 587
    SMTP_USER: Optional[str] = None
    SMTP_PASSWORD: Optional[str] = None
    SMTP_FROM_EMAIL: str = "noreply@marcenaria.app"
    SMTP_FROM_NAME: str = "Marcenaria API"
    SMTP_TLS: bool = True

    # Notificação de erros internos
    ERROR_NOTIFICATION_ENABLED: bool = False
    ERROR_NOTIFICATION_EMAIL: Optional[str] = None

    class Config:
        extra = "ignore"
        env_file = ".env"
        case_sensitive = True


@lru_cache()
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
