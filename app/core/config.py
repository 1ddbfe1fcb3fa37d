"""Application configuration."""

from os import getenv

from pydantic import BaseModel


class Settings(BaseModel):
    """Runtime settings for the application."""

    app_name: str = "Order History API"
    app_env: str = getenv("APP_ENV", "dev")
    debug: bool = getenv("DEBUG", "0") == "1"
    database_url: str = getenv("DATABASE_URL", "sqlite:///./order_history.db")
    jwt_secret_key: str = getenv("JWT_SECRET_KEY", "dev-only-change-me-to-a-long-random-secret")
    jwt_algorithm: str = getenv("JWT_ALGORITHM", "HS256")
    jwt_expire_minutes: int = int(getenv("JWT_EXPIRE_MINUTES", "60"))
    history_timezone: str = getenv("HISTORY_TIMEZONE", "America/Mexico_City")
    history_default_page_size: int = int(getenv("HISTORY_DEFAULT_PAGE_SIZE", "10"))
    history_max_page_size: int = int(getenv("HISTORY_MAX_PAGE_SIZE", "50"))
    currency_symbol: str = getenv("CURRENCY_SYMBOL", "$")


settings: Settings = Settings()
