"""Centralised library settings loaded from environment / .env file."""

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Redis
    redis_url: str = "redis://localhost:6379/0"
    redis_max_connections: int = 10
    redis_health_check_interval: int = 60  # PING a pooled connection idle this long
    redis_socket_timeout: float = 5.0

    # Locks
    lock_ttl_seconds: int = Field(30, ge=1)  # default lease; never zero
    lock_key_prefix: str = "lock:"

    # Scripts
    warm_scripts_on_startup: bool = True

    model_config = {"env_file": ".env", "extra": "ignore"}


settings = Settings()
