import logging

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    host: str = Field(default="127.0.0.1", validation_alias="EDUSPARK_HOST")
    port: int = Field(default=8765, validation_alias="EDUSPARK_PORT")
    # Comma separated list of allowed frontend origins
    cors_origins: str = Field(
        default="http://localhost:3000,http://localhost:9002,http://127.0.0.1:3000",
        validation_alias="EDUSPARK_CORS_ORIGINS",
    )

    # Canvas used for concept maps and flowcharts (the mind map is responsive up to this width)
    canvas_width: int = Field(default=1200, validation_alias="EDUSPARK_CANVAS_WIDTH")
    canvas_height: int = Field(default=800, validation_alias="EDUSPARK_CANVAS_HEIGHT")
    # Default viewport of a new session
    viewport_width: int = Field(default=1280, validation_alias="EDUSPARK_VIEWPORT_WIDTH")
    viewport_height: int = Field(default=900, validation_alias="EDUSPARK_VIEWPORT_HEIGHT")
    # Seconds to wait after a fullscreen change before redrawing connectors
    fullscreen_delay: float = Field(default=0.1, validation_alias="EDUSPARK_FULLSCREEN_DELAY")

    max_sessions: int = Field(default=50, validation_alias="EDUSPARK_MAX_SESSIONS")
    log_level: str = Field(default="INFO", validation_alias="EDUSPARK_LOG_LEVEL")

    # pydantic-settings v2 style config
    model_config = SettingsConfigDict(env_file=".env", extra="ignore", populate_by_name=True)

    @property
    def cors_origin_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]


def configure_logging(level: str | None = None) -> None:
    """Set up root logging once for the server and CLI entry points."""
    logging.basicConfig(
        level=(level or settings.log_level).upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


settings = Settings()
