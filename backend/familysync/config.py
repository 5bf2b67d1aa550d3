"""Application configuration via environment variables."""
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """App settings loaded from .env or environment."""

    # Presence advertisement: must match on every device of a family
    SERVICE_TYPE: str = "_doftool-family._tcp.local."
    SERVICE_PORT: int = 45678
    PROTOCOL_VERSION: str = "1"

    # Device identity; empty values fall back to a fresh id / the host name
    DEVICE_ID: str = ""
    DEVICE_NAME: str = ""
    ADVERTISE_ADDRESS: str = ""

    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: str = "http://localhost:3000"

    class Config:
        env_file = ".env"


settings = Settings()
