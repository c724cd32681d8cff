from functools import lru_cache
from typing import Optional

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

TOPIC_FORMAT = "projects/{project}/topics/{topic}"


class Settings(BaseSettings):
    """Sink settings, read from PARTITION_SINK_* environment variables or .env."""

    model_config = SettingsConfigDict(
        env_prefix="PARTITION_SINK_", env_file=".env", case_sensitive=False, extra="ignore"
    )

    DESTINATION: Optional[str] = None
    PROJECT: Optional[str] = None
    TOPIC: Optional[str] = None
    MIN_BATCH_SIZE: int = 100
    PUBLISHER_CHANNELS: int = 10
    FLUSH_TIMEOUT_SEC: Optional[float] = None
    LOG_LEVEL: str = "INFO"

    @model_validator(mode="after")
    def _check(self):
        if self.MIN_BATCH_SIZE <= 0:
            raise ValueError("MIN_BATCH_SIZE must be > 0")
        if self.PUBLISHER_CHANNELS <= 0:
            raise ValueError("PUBLISHER_CHANNELS must be > 0")
        if self.FLUSH_TIMEOUT_SEC is not None and self.FLUSH_TIMEOUT_SEC < 0:
            raise ValueError("FLUSH_TIMEOUT_SEC must be >= 0")
        return self

    @property
    def destination(self) -> str:
        if self.DESTINATION:
            return self.DESTINATION
        if self.PROJECT and self.TOPIC:
            return TOPIC_FORMAT.format(project=self.PROJECT, topic=self.TOPIC)
        raise ValueError("set DESTINATION, or both PROJECT and TOPIC")


@lru_cache()
def get_settings() -> Settings:
    return Settings()
