from pydantic_settings import BaseSettings
from typing import List, Optional

class Settings(BaseSettings):
    # 🎯 Application
    APP_NAME: str = "Jevah API"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False  # ⚠️ Must be False in production
    SECRET_KEY: str
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 1440

    # 🌐 Server
    HOST: str = '0.0.0.0'
    PORT: int = 8000

    # 🗄️ Database
    DATABASE_URL: str
    DB_ECHO: bool = False

    # 🔴 Redis
    REDIS_URL: str
    REDIS_CACHE_EXPIRATION: int = 3600

    # 🔒 CORS
    ALLOWED_ORIGINS: str

    # 📄 Pagination
    DEFAULT_PAGE_SIZE: int = 20
    MAX_PAGE_SIZE: int = 100

    # ▶️ Playback
    PLAYBACK_VIEW_THRESHOLD: float = 0.3  # fraction of duration that counts as a view
    PLAYBACK_STALE_MINUTES: int = 30

    # 🚩 Moderation
    REPORT_REVIEW_THRESHOLD: int = 3
    SUPPORT_EMAIL: str = "support@jevahapp.com"

    # 🤖 External providers
    AI_SEARCH_URL: Optional[str] = None
    AI_SEARCH_API_KEY: Optional[str] = None
    AI_SEARCH_TIMEOUT: int = 15
    HYMNARY_API_URL: str = "https://hymnary.org/api/scripture"
    HYMNARY_TIMEOUT: int = 10
    MAPBOX_ACCESS_TOKEN: Optional[str] = None
    MAPBOX_API_URL: str = "https://api.mapbox.com/geocoding/v5/mapbox.places"

    # 📧 Email Configuration (SMTP)
    SMTP_HOST: Optional[str] = "smtp.gmail.com"
    SMTP_PORT: int = 587
    SMTP_USER: Optional[str] = None
    SMTP_PASSWORD: Optional[str] = None
    SMTP_FROM_EMAIL: Optional[str] = None
    SMTP_TLS: bool = True

    # 📣 Outbound events
    EVENT_MAX_ATTEMPTS: int = 3
    EVENT_RETRY_BACKOFF: float = 0.5

    # 🔐 Admin Account
    FIRST_SUPERUSER_EMAIL: Optional[str] = None
    FIRST_SUPERUSER_PASSWORD: Optional[str] = None

    # 🔐 Password Policy
    MIN_PASSWORD_LENGTH: int = 8

    # 🔐 Security Headers
    HTTPS_ONLY: bool = True

    # 📊 Logging
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"
        extra = 'ignore'

    @property
    def allowed_origins_list(self) -> List[str]:
        """Parse ALLOWED_ORIGINS string into list"""
        return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(',')]

    @property
    def is_email_enabled(self) -> bool:
        """Check if email is configured"""
        return bool(self.SMTP_HOST and self.SMTP_USER and self.SMTP_PASSWORD)

    @property
    def is_ai_search_enabled(self) -> bool:
        return bool(self.AI_SEARCH_URL)

    @property
    def is_mapbox_enabled(self) -> bool:
        return bool(self.MAPBOX_ACCESS_TOKEN)

    @property
    def is_sqlite(self) -> bool:
        return self.DATABASE_URL.startswith("sqlite")

settings = Settings()
