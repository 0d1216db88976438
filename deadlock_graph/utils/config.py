from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore", populate_by_name=True)

    app_env: str = Field(default="dev", alias="APP_ENV")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    http_host: str = Field(default="0.0.0.0", alias="HTTP_HOST")
    http_port: int = Field(default=8080, alias="PORT")

    cors_allow_origin: str = Field(default="*", alias="CORS_ALLOW_ORIGIN")

    # client side: where CheckClient sends graphs
    api_url: str = Field(default="http://localhost:8080", alias="API_URL")

    def base_api_url(self) -> str:
        return self.api_url.rstrip("/")


settings = Settings()
