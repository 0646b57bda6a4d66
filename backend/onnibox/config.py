"""
Application configuration
"""
from pydantic_settings import BaseSettings
from pathlib import Path
from typing import List


class Settings(BaseSettings):
    """Application settings"""

    # General
    APP_NAME: str = "OnniBox"
    APP_VERSION: str = "1.2.0"
    DEBUG: bool = True
    COMPANY_NAME: str = "Minha Transportadora"

    # Database
    DATABASE_URL: str = "sqlite:///./onnibox.db"

    # Security
    SECRET_KEY: str = "your-secret-key-change-in-production"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 12 * 60

    # Bootstrap administrator (created when the users table is empty)
    ADMIN_EMAIL: str = "admin@onnibox.com.br"
    ADMIN_PASSWORD: str = "admin"
    ADMIN_NAME: str = "Administrador"

    # Sample registries on first start
    SEED_DEMO_DATA: bool = True

    # Paths
    BASE_DIR: Path = Path(__file__).parent.parent
    BACKUP_DIR: Path = BASE_DIR / "backups"

    # JSON dump written every time a day is closed
    AUTO_BACKUP_ON_CLOSE: bool = True

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = ""

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # CORS
    CORS_ORIGINS: List[str] = [
        "http://localhost:8000",
        "http://127.0.0.1:8000",
        "http://localhost:3000",
        "http://localhost:5173",
        "*"  # local development
    ]

    class Config:
        env_file = ".env"
        case_sensitive = True


# Global settings instance
settings = Settings()
