from pydantic_settings import BaseSettings
from pydantic import Field
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings."""

    # Database
    database_url: str = Field(..., env="DATABASE_URL")

    # Runtime
    environment: str = Field(default="development", env="ENVIRONMENT")
    log_level: str = Field(default="INFO", env="LOG_LEVEL")
    app_version: str = Field(default="1.0.0", env="APP_VERSION")

    # Auth
    jwt_secret_key: str = Field(default="change-me-in-production", env="JWT_SECRET_KEY")
    jwt_expire_seconds: int = Field(default=86400, env="JWT_EXPIRE_SECONDS")

    # Web
    cors_origin: str = Field(default="http://localhost:3000", env="CORS_ORIGIN")
    app_url: str = Field(default="http://localhost:3000", env="APP_URL")
    survey_base_url: str = Field(default="", env="SURVEY_BASE_URL")

    # AWS SES
    aws_region: str = Field(default="us-east-2", env="AWS_REGION")
    ses_from_email: str = Field(default="noreply@kol360.example.com", env="SES_FROM_EMAIL")
    ses_from_name: str = Field(default="KOL360", env="SES_FROM_NAME")
    send_external_email: bool = Field(default=False, env="SEND_EXTERNAL_EMAIL")
    email_mock_mode: bool = Field(default=True, env="EMAIL_MOCK_MODE")

    # Health / limits
    health_check_token: str = Field(default="", env="HEALTH_CHECK_TOKEN")
    rate_limit_per_minute: int = Field(default=100, env="RATE_LIMIT_PER_MINUTE")
    # Comma-separated proxy IPs whose X-Forwarded-For header is believed
    trusted_proxies: str = Field(default="", env="TRUSTED_PROXIES")
    upload_max_bytes: int = Field(default=10 * 1024 * 1024, env="UPLOAD_MAX_BYTES")

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    @property
    def trusted_proxy_ips(self) -> set[str]:
        return {ip.strip() for ip in self.trusted_proxies.split(",") if ip.strip()}

    @property
    def survey_url_base(self) -> str:
        return (self.survey_base_url or self.app_url).rstrip("/")

    class Config:
        env_file = ".env"
        case_sensitive = False


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
