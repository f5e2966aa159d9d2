from typing import Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Runtime configuration of an orderstation.

    Every field can be overridden with an ``ORDERSTATION_`` prefixed
    environment variable, e.g. ``ORDERSTATION_API_URL``.
    """

    model_config = SettingsConfigDict(
        env_prefix="ORDERSTATION_",
        env_file=".env",
        env_ignore_empty=True,
        extra="ignore",
    )

    # "kiosk" orders for activities bound to the logged in kiosk, "room" for rooms
    MODE: Literal["kiosk", "room"] = "kiosk"

    # backend
    API_URL: str = "http://localhost:5000"
    REQUEST_TIMEOUT: float = 10.0  # seconds, per request
    SESSION_COOKIE: Optional[str] = None  # value of the kiosk's session cookie
    SESSION_COOKIE_NAME: str = "connect.sid"

    # intervals, seconds
    CATALOG_REFRESH_INTERVAL: float = 60 * 60
    SESSION_VALIDATE_INTERVAL: float = 60 * 60
    AVAILABILITY_INTERVAL: float = 10
    PAYMENT_POLL_INTERVAL: float = 1
    PAYMENT_TIMEOUT: float = 3 * 60

    # local catalog cache
    CACHE_DB_PATH: str = "data/catalog.sqlite"

    LOG_LEVEL: str = "INFO"


settings = Settings()
