from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


SERVICE_VERSION = "0.1.0"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    service_name: str = Field(default="users-service", alias="SERVICE_NAME")
    host: str = Field(default="127.0.0.1", alias="HOST")
    port: int = Field(default=3030, alias="PORT")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    max_body_bytes: int = Field(default=16 * 1024, alias="MAX_BODY_BYTES")

    metrics_backend: Literal["prometheus", "pushgateway"] = Field(default="prometheus", alias="METRICS_BACKEND")
    pushgateway_url: str = Field(default="localhost:9091", alias="PUSHGATEWAY_URL")
    pushgateway_job: str = Field(default="users-service", alias="PUSHGATEWAY_JOB")
    push_interval_seconds: float = Field(default=15.0, alias="PUSH_INTERVAL_SECONDS")

    trace_exporter: Literal["otlp", "console", "none"] = Field(default="otlp", alias="TRACE_EXPORTER")
    otlp_endpoint: str = Field(default="http://localhost:4318/v1/traces", alias="OTLP_ENDPOINT")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
