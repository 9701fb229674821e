from functools import lru_cache

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from questionflow.flow_core.constants import (
    DEFAULT_AUTO_ADVANCE_DELAY_MS,
    DEFAULT_AUTO_SAVE_INTERVAL_MS,
)

load_dotenv()


class Settings(BaseSettings):
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    redis_url: str | None = Field(default=None, alias="REDIS_URL")
    # Optional components to compose a URL when REDIS_URL is not provided
    redis_host: str | None = Field(default=None, alias="REDIS_HOST")
    redis_port: int | None = Field(default=None, alias="REDIS_PORT")
    redis_db: int | None = Field(default=None, alias="REDIS_DB")
    redis_password: str | None = Field(default=None, alias="REDIS_PASSWORD")
    redis_namespace: str = Field(default="questionflow", alias="REDIS_NAMESPACE")
    # Flow defaults applied when a session does not override them
    auto_advance_delay_ms: int = Field(
        default=DEFAULT_AUTO_ADVANCE_DELAY_MS, alias="AUTO_ADVANCE_DELAY_MS"
    )
    auto_save_interval_ms: int = Field(
        default=DEFAULT_AUTO_SAVE_INTERVAL_MS, alias="AUTO_SAVE_INTERVAL_MS"
    )
    snapshot_ttl_days: int = Field(default=30, alias="SNAPSHOT_TTL_DAYS")
    # Directory of questionnaire JSON definitions
    questionnaire_dir: str | None = Field(default=None, alias="QUESTIONNAIRE_DIR")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @property
    def redis_conn_url(self) -> str | None:
        """Return a Redis connection URL.
        Prefers `REDIS_URL`; otherwise constructs from host/port/db/password.
        """
        if self.redis_url:
            return self.redis_url
        if not self.redis_host:
            return None
        host = self.redis_host
        port = self.redis_port or 6379
        db = self.redis_db or 0
        password = (self.redis_password or "").strip()
        auth = f":{password}@" if password else ""
        return f"redis://{auth}{host}:{port}/{db}"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()  # type: ignore[call-arg]
