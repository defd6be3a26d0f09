"""
Application Configuration for Fireteam Friends Backend
"""
from typing import List
from pydantic_settings import BaseSettings, SettingsConfigDict
from pathlib import Path

# Get the project root directory (where .env file is located)
PROJECT_ROOT = Path(__file__).parent.parent.parent


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=str(PROJECT_ROOT / ".env"),
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Record store: "file", "database" or "firestore"
    RECORD_STORE_BACKEND: str = "file"
    FRIENDS_DATA_DIR: str = str(PROJECT_ROOT / "data" / "friends")

    # Database Configuration (database backend only)
    DATABASE_HOST: str = "localhost"
    DATABASE_PORT: int = 5432
    DATABASE_NAME: str = "fireteam"
    DATABASE_USERNAME: str = "postgres"
    DATABASE_PASSWORD: str = "postgres"  # Default for development

    @property
    def DATABASE_URL(self) -> str:
        """Construct database URL from components"""
        return (
            f"postgresql://{self.DATABASE_USERNAME}:{self.DATABASE_PASSWORD}"
            f"@{self.DATABASE_HOST}:{self.DATABASE_PORT}/{self.DATABASE_NAME}"
        )

    # Firebase Configuration (firestore backend only)
    FIREBASE_PROJECT_ID: str = "fireteam-friends"
    GOOGLE_APPLICATION_CREDENTIALS: str = "firebase-admin-sdk.json"
    FIRESTORE_COLLECTION: str = "relationship_records"

    # Session tokens issued by the identity provider glue
    JWT_SECRET_KEY: str = "dev-secret-key-change-in-production"  # Default for development
    JWT_ALGORITHM: str = "HS256"
    SESSION_COOKIE_NAME: str = "bungie_session"
    SESSION_TOKEN_EXPIRE_MINUTES: int = 10080  # 7 days

    # API Configuration
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8393
    API_V1_PREFIX: str = "/api/v1"
    PROJECT_NAME: str = "Fireteam Friends API"
    DEBUG: bool = True

    # Rate limiting
    RATE_LIMIT_ENABLED: bool = True
    FRIEND_REQUEST_RATE_LIMIT: str = "20/minute"
    CANDIDATE_LOOKUP_RATE_LIMIT: str = "60/minute"
    MAX_CANDIDATES: int = 100

    # CORS Configuration
    ALLOWED_ORIGINS: str = "*"

    @property
    def CORS_ORIGINS(self) -> List[str]:
        """Parse CORS origins from string"""
        if self.ALLOWED_ORIGINS == "*":
            return ["*"]
        return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(",")]

    # Environment
    ENVIRONMENT: str = "development"

    # Logging
    LOG_LEVEL: str = "INFO"

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"

    @property
    def is_development(self) -> bool:
        return self.ENVIRONMENT.lower() == "development"


# Global settings instance
settings = Settings()
