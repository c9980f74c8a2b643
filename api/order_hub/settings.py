# order_hub/settings.py
"""
Order Hub Settings - PostgreSQL, caller defaults, attachments and payment pass-through.
"""
from __future__ import annotations
from pathlib import Path
from typing import List, Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, AliasChoices

class Settings(BaseSettings):
    # =========================================================================
    # File Storage (attachments, logs)
    # =========================================================================
    ORDER_DATA_ROOT: Path = Field(
        default=(Path(__file__).resolve().parents[2] / "order-data"),
        validation_alias=AliasChoices("ORDER_DATA_ROOT", "oh_data_root"),
    )

    # =========================================================================
    # PostgreSQL Database
    # =========================================================================
    DB_URL: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("DB_URL", "DATABASE_URL"),
        description="Full async SQLAlchemy URL; overrides DB_HOST/DB_PORT/...",
    )
    DB_HOST: str = Field(default="localhost", validation_alias="DB_HOST")
    DB_PORT: int = Field(default=5432, validation_alias="DB_PORT")
    DB_NAME: str = Field(default="order_hub", validation_alias="DB_NAME")
    DB_USER: str = Field(default="postgres", validation_alias="DB_USER")
    DB_PASSWORD: str = Field(default="postgres", validation_alias="DB_PASSWORD")

    # Connection pool settings
    DB_POOL_SIZE: int = Field(default=5, validation_alias="DB_POOL_SIZE")
    DB_MAX_OVERFLOW: int = Field(default=10, validation_alias="DB_MAX_OVERFLOW")
    DB_ECHO: bool = Field(default=False, validation_alias="DB_ECHO")

    # =========================================================================
    # Caller context (used when X-Client-Id / X-Org-Id headers are absent)
    # =========================================================================
    DEFAULT_CLIENT_ID: int = Field(default=1, validation_alias="DEFAULT_CLIENT_ID")
    DEFAULT_ORG_ID: int = Field(default=1, validation_alias="DEFAULT_ORG_ID")

    # =========================================================================
    # Sales order response
    # =========================================================================
    EXPIRY_HOURS: int = Field(default=24, validation_alias="EXPIRY_HOURS")
    EXPIRY_TIMEZONE: Optional[str] = Field(
        default=None,
        validation_alias="EXPIRY_TIMEZONE",
        description="IANA zone for expiryDate; system local time if unset",
    )

    # =========================================================================
    # Payment pass-through
    # =========================================================================
    PAYMENT_SERVICE_URL: Optional[str] = Field(default=None, validation_alias="PAYMENT_SERVICE_URL")
    PAYMENT_TIMEOUT: float = Field(default=30.0, validation_alias="PAYMENT_TIMEOUT")

    CORS_ORIGINS: List[str] = Field(
        default=[
            "http://localhost:5173",
            "http://127.0.0.1:5173",
            "http://127.0.0.1:8000",
        ],
        validation_alias="CORS_ORIGINS",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def ATTACHMENTS_ROOT(self) -> Path:
        return Path(self.ORDER_DATA_ROOT) / "attachments"

settings = Settings()
