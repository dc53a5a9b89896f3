from functools import lru_cache
from typing import Optional

from pydantic import Field, HttpUrl
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    github_token: Optional[str] = Field(default=None, alias="GITHUB_TOKEN")
    github_base_url: HttpUrl = Field(
        default="https://api.github.com", alias="GITHUB_BASE_URL"
    )
    # gitlab is only queried anonymously, the token just enables the backend
    gitlab_token: Optional[str] = Field(default=None, alias="GITLAB_TOKEN")
    gitlab_base_url: HttpUrl = Field(
        default="https://gitlab.com/api/v4", alias="GITLAB_BASE_URL"
    )
    crates_db_path: str = Field(default="data/crates.sqlite3", alias="CRATES_DB_PATH")
    crates_dump_url: HttpUrl = Field(
        default="https://static.crates.io/db-dump.tar.gz", alias="CRATES_DUMP_URL"
    )
    framework_crate: str = Field(default="bevy", alias="FRAMEWORK_CRATE")
    license_endpoint_fallback: bool = Field(default=False, alias="LICENSE_ENDPOINT_FALLBACK")
    http_timeout_seconds: float = Field(default=20, alias="HTTP_TIMEOUT_SECONDS")
    user_agent: str = Field(default="bevy-website-generate-assets", alias="USER_AGENT")
    cors_origins: list[str] = Field(default=["*"], alias="CORS_ORIGINS")
    # POST /catalog only walks directories below this one
    asset_root: str = Field(default="assets", alias="ASSET_ROOT")
    api_host: str = Field(default="0.0.0.0", alias="API_HOST")
    api_port: int = Field(default=8020, alias="API_PORT")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "ignore"  # ignore unrelated env vars to avoid validation errors


@lru_cache
def get_settings() -> Settings:
    return Settings()
