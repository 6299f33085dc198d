"""
Configuration management using Pydantic BaseSettings.
All values can be overridden via environment variables or a .env file.
"""
from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # ── MySQL-protocol store ───────────────────────────────────────────────
    db_host: str = "mysql"
    db_port: int = 3306
    db_user: str = "root"
    db_password: str = ""
    db_name: str = "sweetholic"
    db_pool_size: int = 20
    db_max_overflow: int = 10
    # Full SQLAlchemy URL; takes precedence over the parts above when set
    database_url: Optional[str] = None

    @property
    def db_url(self) -> str:
        if self.database_url:
            return self.database_url
        return (
            f"mysql+aiomysql://{self.db_user}:{self.db_password}"
            f"@{self.db_host}:{self.db_port}/{self.db_name}"
        )

    # ── Identity (token issuance lives in the auth service) ────────────────
    jwt_secret: str = "change-me"
    jwt_algorithm: str = "HS256"

    # ── Pagination ─────────────────────────────────────────────────────────
    default_page_size: int = 20
    max_page_size: int = 100

    # ── Observability ──────────────────────────────────────────────────────
    otel_enabled: bool = True
    otel_exporter_otlp_endpoint: str = "http://jaeger:4317"
    service_name: str = "sweetholic-api"
    environment: str = "development"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()
