"""
Configuration settings for FoundIt Service
"""
from pydantic_settings import BaseSettings
from typing import List


DEFAULT_JWT_SECRET_KEY = "your-secret-key-change-this-in-production"


class Settings(BaseSettings):
    """Application settings"""

    # Application
    APP_NAME: str = "FoundIt Lost & Found Service"
    APP_VERSION: str = "1.0.0"
    ENVIRONMENT: str = "development"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    HOST: str = "0.0.0.0"
    PORT: int = 5000

    # MongoDB
    MONGODB_URL: str = "mongodb://localhost:27017"
    MONGODB_DATABASE: str = "foundit-riphah"
    MONGODB_ACCOUNTS_COLLECTION: str = "accounts"
    MONGODB_POSTS_COLLECTION: str = "posts"
    MONGODB_CLAIMS_COLLECTION: str = "claims"
    # Multi-document transactions need a replica set or sharded cluster
    MONGODB_TRANSACTIONS: bool = False

    # JWT Settings
    JWT_SECRET_KEY: str = DEFAULT_JWT_SECRET_KEY
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24

    # Password Settings
    PASSWORD_MIN_LENGTH: int = 6
    BCRYPT_ROUNDS: int = 10

    # Institutional e-mail domains
    USER_EMAIL_DOMAINS: List[str] = ["@students.riphah.edu.pk", "@faculty.riphah.edu.pk"]
    ADMIN_EMAIL_DOMAIN: str = "@admin.riphah.edu.pk"
    USERNAME_MAX_ATTEMPTS: int = 100

    # Notifications (0 disables the cap)
    MAX_NOTIFICATIONS: int = 100

    # Uploads
    UPLOAD_DIR: str = "uploads"
    UPLOAD_URL_PREFIX: str = "/uploads"
    MAX_FILE_SIZE_MB: int = 5
    ALLOWED_IMAGE_EXTENSIONS: List[str] = [".jpeg", ".jpg", ".png"]
    ALLOWED_IMAGE_MIME_TYPES: List[str] = ["image/jpeg", "image/jpg", "image/png"]

    # CORS
    CORS_ORIGINS: List[str] = [
        "https://relaxed-granita-a706d2.netlify.app",
        "http://localhost:3000",
    ]
    CORS_ALLOW_CREDENTIALS: bool = True
    CORS_ALLOW_METHODS: List[str] = ["*"]
    CORS_ALLOW_HEADERS: List[str] = ["*"]

    class Config:
        env_file = ".env"
        case_sensitive = True

    @property
    def is_development(self) -> bool:
        return self.ENVIRONMENT.lower() in ("development", "test")

    def check_production_safety(self) -> None:
        """
        Refuse to start outside development with fallback secrets

        Raises:
            RuntimeError: If the signing key or store address was not configured
        """
        if self.is_development:
            return

        missing = [
            name for name in ("JWT_SECRET_KEY", "MONGODB_URL")
            if name not in self.model_fields_set
        ]
        if self.JWT_SECRET_KEY == DEFAULT_JWT_SECRET_KEY and "JWT_SECRET_KEY" not in missing:
            missing.append("JWT_SECRET_KEY")

        if missing:
            raise RuntimeError(
                f"Missing required configuration for {self.ENVIRONMENT}: {', '.join(missing)}"
            )


settings = Settings()
