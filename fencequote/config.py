from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./fencequote.db"
    COMPANY_NAME: str = "Fence Quote"
    LOG_LEVEL: str = "INFO"

    # Quotes
    QUOTE_VALID_DAYS: int = 30
    QUOTE_NUMBER_MAX_ATTEMPTS: int = 3  # retries on a same-day number collision
    DEFAULT_TERMS: str = ""

    class Config:
        env_file = ".env"


settings = Settings()
