"""
Application configuration loaded from environment variables.

DATABASE_URL wins when set; otherwise a PostgreSQL URL is built from
the POSTGRES_* parts.
"""

import os
from pathlib import Path
from dotenv import load_dotenv

# Load .env file from backend directory
backend_dir = Path(__file__).parent.parent
load_dotenv(backend_dir / ".env")


class Config:
    """Application configuration."""

    # Flask settings
    DEBUG = os.getenv("FLASK_DEBUG", "0") == "1"
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")
    FLASK_ENV = os.getenv("FLASK_ENV", "development")
    PORT = int(os.getenv("PORT", "5001"))

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

    # Full URL override (e.g. sqlite:///maternity.db for local demos)
    DATABASE_URL = os.getenv("DATABASE_URL", "")

    # PostgreSQL
    POSTGRES_HOST = os.getenv("POSTGRES_HOST", "localhost")
    POSTGRES_PORT = os.getenv("POSTGRES_PORT", "5432")
    POSTGRES_DB = os.getenv("POSTGRES_DB", "maternity")
    POSTGRES_USER = os.getenv("POSTGRES_USER", "postgres")
    POSTGRES_PASSWORD = os.getenv("POSTGRES_PASSWORD", "")

    # Actor recorded in audit fields when the request names nobody
    DEFAULT_ACTOR = os.getenv("DEFAULT_ACTOR", "System")

    @classmethod
    def get_database_url(cls) -> str:
        """Build the database URL, preferring DATABASE_URL."""
        if cls.DATABASE_URL:
            return cls.DATABASE_URL

        user = cls.POSTGRES_USER
        password = cls.POSTGRES_PASSWORD
        host = cls.POSTGRES_HOST
        port = cls.POSTGRES_PORT
        db = cls.POSTGRES_DB

        if password:
            return f"postgresql://{user}:{password}@{host}:{port}/{db}"
        return f"postgresql://{user}@{host}:{port}/{db}"


# Singleton instance
config = Config()
