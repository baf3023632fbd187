from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    DEBUG: bool = False
    ENVIRONMENT: str = "DEV"
    API_VERSION: str = "0.1.0"
    CORS_ORIGINS: list[str] = [
        "http://localhost:3000",
        "https://matchbookrentals.com",
        "https://www.matchbookrentals.com",
    ]

    # Security settings
    MAX_REQUEST_SIZE: int = 5 * 1024 * 1024  # 5MB, large listing sets

    def validate_prod(self) -> None:
        """Sanity checks for production environment."""
        if self.ENVIRONMENT.upper() == "PROD":
            if not self.CORS_ORIGINS:
                raise ValueError("CORS_ORIGINS must be set in production")
