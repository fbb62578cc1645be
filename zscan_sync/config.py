from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Database
    DATABASE_URL: str = "sqlite:///./zscan.db"
    SQLITE_BUSY_TIMEOUT: float = 30.0

    # Passcode hashing (bcrypt cost factor)
    BCRYPT_ROUNDS: int = 5

    # API
    MAX_CONTENT_LENGTH: int = 999_999_999

    # Logging
    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(
        env_prefix="ZSCAN_",
        env_file=".env",
        extra="allow",  # Allow extra environment variables
    )


settings = Settings()
