"""Application configuration using Pydantic Settings"""

from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # Application
    environment: str = "development"
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    frontend_url: str = "http://localhost:5173"

    # Database
    database_url: str
    database_pool_size: int = 5
    database_max_overflow: int = 10
    database_echo: bool = False

    # AWS / S3
    aws_region: str = "us-east-1"
    aws_access_key_id: Optional[str] = None
    aws_secret_access_key: Optional[str] = None
    aws_endpoint_url: Optional[str] = None
    s3_bucket: str = "backoffice-documents"

    # SMTP notifications (disabled when smtp_host is empty)
    smtp_host: Optional[str] = None
    smtp_port: int = 587
    smtp_user: Optional[str] = None
    smtp_password: Optional[str] = None
    smtp_use_tls: bool = True
    mail_from: str = "noreply@example.com"
    notification_inbox: str = "notifications@example.com"
    contact_email: str = "propertymanagement@example.com"

    # Company details printed on documents
    company_name: str = "AL GHAZAL AL ABYAD TECHNICAL SERVICES"
    company_po_box: str = "63509"
    company_address: str = "Dubai - UAE"
    company_phone: str = "(04) 4102555"
    company_trn: str = "104037793700003"
    supplier_number: str = "PO25IMD7595"
    vat_percentage: float = 5.0
    payment_terms: str = "90 DAYS"

    # Security
    secret_key: str
    jwt_secret: Optional[str] = None
    jwt_algorithm: str = "HS256"
    jwt_expiration_hours: int = 24

    # CORS
    cors_origins: str = "http://localhost:5173,http://localhost:3000"

    # Logging
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS origins into a list"""
        return [origin.strip() for origin in self.cors_origins.split(",")]

    @property
    def notifications_enabled(self) -> bool:
        return bool(self.smtp_host)


# Global settings instance
settings = Settings()
