"""Application configuration via environment variables."""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Service configuration loaded from environment variables."""

    model_config = {"env_prefix": ""}

    # Upstream
    post_api: str = Field(description="Base URL of the upstream posts collection")
    upstream_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        description="Deadline for one whole upstream round trip (connect to last byte)",
    )
    list_delay_seconds: float = Field(
        default=3.0,
        ge=0,
        description="Artificial delay after the list fetch. 0 disables it.",
    )

    # Server
    host: str = Field(default="0.0.0.0", description="Server bind host")
    port: int = Field(default=4000, description="Server bind port")
    log_level: str = Field(default="info", description="Log level")
    frontend_url: str = Field(
        default="http://localhost:3000", description="Allowed CORS origin for the front-end"
    )

    @field_validator("post_api")
    @classmethod
    def _validate_post_api(cls, v: str) -> str:
        v = v.strip().rstrip("/")
        if not v:
            raise ValueError("POST_API must not be empty")
        return v
