## app/core/config.py

from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Settings for the application
    """

    model_config = SettingsConfigDict(
        env_file=".env", extra="ignore", case_sensitive=False
    )

    environment: str = "development"
    allowed_cors_urls: str = "*"

    log_level: str = "INFO"
    log_file: Optional[str] = None

    database_url: Optional[str] = None
    db_host: str = "localhost"
    db_user: str = "root"
    db_password: str = ""
    db_database: str = "nyc_rentals"
    db_port: int = 3306
    auto_create_tables: bool = True

    # Lease dashboard windows
    renewal_horizon_days: int = 90
    urgent_expiration_days: int = 30
    warning_expiration_days: int = 90
    # Calendar days are counted in this zone
    lease_timezone: str = "America/New_York"

    # Rent escalation
    rent_stabilization_warning_pct: float = 3.0
    max_escalation_rate_pct: float = 50.0

    default_page_size: int = 10

    @property
    def db_url(self) -> str:
        """
        Sync database URL
        """
        if self.database_url:
            return self.database_url
        return f"mysql+pymysql://{self.db_user}:{self.db_password}@{self.db_host}:{self.db_port}/{self.db_database}"

    @property
    def cors_origins(self) -> list:
        """
        CORS origins as a list
        """
        return [url.strip() for url in self.allowed_cors_urls.split(",") if url.strip()]


settings = Settings()
