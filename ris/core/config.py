# ris/core/config.py
import json
from typing import List, Optional, Union, Any, Sequence
from pydantic import (
    AnyHttpUrl, PostgresDsn, field_validator, ValidationInfo, SecretStr, Field
)
from pydantic_settings import BaseSettings, SettingsConfigDict

import structlog

logger = structlog.get_logger(__name__)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=('.env.prod', '.env'),
        env_file_encoding='utf-8',
        case_sensitive=True,
        extra='ignore'
    )

    PROJECT_NAME: str = "RIS Order Engine"
    PROJECT_VERSION: str = "0.1.0"
    ENVIRONMENT: str = "development"
    API_V1_STR: str = "/api/v1"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    POSTGRES_SERVER: str = "db"
    POSTGRES_PORT: int = 5432
    POSTGRES_USER: str = "ris_user"
    POSTGRES_PASSWORD: SecretStr = SecretStr("changeme")
    POSTGRES_DB: str = "ris_db"
    # Any SQLAlchemy URL is accepted here; only the assembled default is Postgres.
    SQLALCHEMY_DATABASE_URI: Optional[str] = Field(default=None, validate_default=True)

    @field_validator("SQLALCHEMY_DATABASE_URI", mode='before')
    @classmethod
    def assemble_db_connection(cls, v: Optional[str], info: ValidationInfo) -> Any:
        if isinstance(v, str): return v
        values = info.data
        password = values.get("POSTGRES_PASSWORD")
        return str(PostgresDsn.build(
            scheme="postgresql+psycopg",
            username=values.get("POSTGRES_USER"),
            password=password.get_secret_value() if isinstance(password, SecretStr) else password,
            host=values.get("POSTGRES_SERVER"),
            port=values.get("POSTGRES_PORT"),
            path=f"{values.get('POSTGRES_DB') or ''}",
        ))

    BACKEND_CORS_ORIGINS: List[Union[str, AnyHttpUrl]] = ["http://localhost:5173", "http://127.0.0.1:5173"]

    @field_validator("BACKEND_CORS_ORIGINS", mode='before')
    @classmethod
    def assemble_cors_origins(cls, v: Union[str, List[str]]) -> Sequence[Union[str, AnyHttpUrl]]:
        if isinstance(v, str):
            if v.startswith("["):
                 try: return json.loads(v)
                 except json.JSONDecodeError: raise ValueError("Invalid JSON string for BACKEND_CORS_ORIGINS")
            else: return [origin.strip() for origin in v.split(",") if origin.strip()]
        elif isinstance(v, list): return v
        raise ValueError("Invalid format for BACKEND_CORS_ORIGINS")

    # --- Identifier generation ---
    # IANA zone name defining "today" for accession/order number scoping. Host local zone when unset.
    RIS_TIMEZONE: Optional[str] = None
    ACCESSION_NUMBER_SCHEME: str = Field(default="CONTIGUOUS", description="CONTIGUOUS (DX20240601001) or DASHED (DX-20240601-001)")
    IDENTIFIER_MAX_ATTEMPTS: int = Field(default=5, ge=1)

    @field_validator("ACCESSION_NUMBER_SCHEME", mode='before')
    @classmethod
    def normalize_accession_scheme(cls, v: Any) -> str:
        value = str(v).strip().upper()
        if value not in ("CONTIGUOUS", "DASHED"):
            raise ValueError("ACCESSION_NUMBER_SCHEME must be CONTIGUOUS or DASHED")
        return value

    # --- Listing ---
    ORDERS_DEFAULT_PAGE_SIZE: int = 10
    ORDERS_MAX_PAGE_SIZE: int = 100

    # --- Health information exchange ---
    ORGANIZATION_ID: str = "ORGANIZATION_ID"

    def model_post_init(self, __context: Any) -> None:
        if self.RIS_TIMEZONE:
            try:
                from zoneinfo import ZoneInfo
                ZoneInfo(self.RIS_TIMEZONE)
            except Exception as e:
                logger.warning("Invalid RIS_TIMEZONE, falling back to host local time", timezone=self.RIS_TIMEZONE, error=str(e))
                self.RIS_TIMEZONE = None


settings = Settings()
