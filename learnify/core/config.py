import logging
from typing import List, Optional

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    # Application Information
    app_name: str = Field(default="Learnify")
    app_description: str = Field(default="Course marketplace API")
    app_version: str = Field(default="1.0.0")
    app_url: str = Field(default="http://localhost:8000")
    client_url: str = Field(default="http://localhost:5173")
    api_prefix: str = Field(default="/api/v1")
    debug: bool = Field(default=True)
    production: bool = Field(default=False)
    timezone: str = Field(default="UTC")

    # Database Configuration
    database_url: Optional[str] = Field(default=None)
    db_host: str = Field(default="127.0.0.1")
    db_port: int = Field(default=5432)
    db_database: str = Field(default="learnify")
    db_username: str = Field(default="learnify")
    db_password: str = Field(default="learnify")
    db_pool_size: int = Field(default=5)
    db_max_overflow: int = Field(default=10)
    db_pool_timeout: int = Field(default=30)
    db_echo: bool = Field(default=False)

    # Security Settings
    cors_allowed_origins: List[str] = Field(default=["http://localhost:5173"])
    password_hash_rounds: int = Field(default=12)
    reset_code_ttl_minutes: int = Field(default=10)

    # Rate limiting
    rate_limit_enabled: bool = Field(default=True)
    rate_limit_default: str = Field(default="100/15minutes")
    rate_limit_health: str = Field(default="10/minute")
    rate_limit_storage_uri: str = Field(default="memory://")

    # JWT Configuration
    jwt_secret: str = Field(default="your-secret-key-change-in-production")
    jwt_algorithm: str = Field(default="HS256")
    jwt_user_expiration: int = Field(default=1)
    jwt_issuer: str = Field(default="Learnify")
    auth_cookie_name: str = Field(default="token")
    auth_cookie_secure: bool = Field(default=False)

    # Redis (token blacklist); in-memory when unset
    redis_url: Optional[str] = Field(default=None)

    # Email (SMTP)
    mail_host: str = Field(default="smtp.example.com")
    mail_port: int = Field(default=587)
    mail_username: str = Field(default="your@email.com")
    mail_password: str = Field(default="")
    mail_starttls: bool = Field(default=True)
    mail_ssl_tls: bool = Field(default=False)
    mail_from_address: str = Field(default="no-reply@example.com")
    mail_from_name: str = Field(default="Learnify")
    mail_suppress_send: bool = Field(default=False)

    # File Uploads
    upload_dir: str = Field(default="storage")
    max_image_size_mb: int = Field(default=5)
    max_video_size_mb: int = Field(default=500)
    allowed_image_types: List[str] = Field(
        default=["jpg", "jpeg", "png", "gif", "webp"]
    )
    allowed_video_types: List[str] = Field(default=["mp4", "mov", "webm", "mkv"])

    # Payment (Stripe Checkout)
    stripe_secret_key: str = Field(default="")
    stripe_webhook_secret: str = Field(default="")
    stripe_webhook_tolerance: int = Field(default=300)
    payment_currency: str = Field(default="usd")

    # Logging
    log_level: str = Field(default="info")
    log_file: str = Field(default="logs/app.log")

    # ============================
    # Generic comma-separated parser
    # ============================
    @staticmethod
    def _parse_csv(value, default):
        if isinstance(value, str):
            items = [x.strip() for x in value.split(",") if x.strip()]
            return items if items else default
        if isinstance(value, list):
            return value
        return default

    @field_validator("allowed_image_types", mode="before")
    def validate_image_types(cls, v):
        return cls._parse_csv(v, ["jpg", "jpeg", "png", "gif", "webp"])

    @field_validator("allowed_video_types", mode="before")
    def validate_video_types(cls, v):
        return cls._parse_csv(v, ["mp4", "mov", "webm", "mkv"])

    @field_validator("cors_allowed_origins", mode="before")
    def validate_cors(cls, v):
        return cls._parse_csv(v, ["http://localhost:5173"])

    @property
    def sqlalchemy_database_uri(self) -> str:
        if self.database_url:
            return self.database_url
        return "postgresql+psycopg2://{user}:{password}@{host}:{port}/{database}".format(
            user=self.db_username,
            password=self.db_password,
            host=self.db_host,
            port=self.db_port,
            database=self.db_database,
        )

    @property
    def payment_success_url(self) -> str:
        return f"{self.client_url}/course-progress/{{course_id}}"

    @property
    def payment_cancel_url(self) -> str:
        return f"{self.client_url}/course-detail/{{course_id}}"

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",
    }


def load_settings() -> Settings:
    try:
        settings = Settings()
        logger.info("Settings loaded successfully")
        return settings
    except ValidationError as e:
        logger.error(f"Invalid settings: {e}")
        raise


settings = load_settings()
