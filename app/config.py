from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    """Application settings"""

    # Database
    DATABASE_URL: str
    AUTO_CREATE_TABLES: bool = False

    # API
    API_TITLE: str = "Socialnet API"
    API_VERSION: str = "1.0.0"
    DEBUG: bool = True
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"
    CLIENT_URL: str = "http://localhost:3000"

    # Security
    SECRET_KEY: str
    ACCESS_TOKEN_EXPIRE_DAYS: int = 7

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"

    class Config:
        env_file = ".env"
        case_sensitive = True

# Create settings instance
settings = Settings()
