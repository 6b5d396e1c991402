"""Pydantic models for parsing the config.yaml configuration file.

This module contains Pydantic models that correspond to the structure of config.yaml.
These models handle validation and type conversion of the YAML configuration data.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

DEV_SIGNING_SECRET = "dev-signing-secret-change-me-before-deploying"


class CORSConfig(BaseModel):
    """CORS configuration for the application."""

    origins: list[str] = Field(default=["http://localhost:3000"])
    allow_credentials: bool = True
    allow_methods: list[str] = Field(
        default=["GET", "POST", "PUT", "DELETE", "OPTIONS"]
    )
    allow_headers: list[str] = Field(default=["*"])


class AppConfig(BaseModel):
    """Application configuration model."""

    environment: Literal["development", "production", "test"] = Field(
        default="development", description="Application environment"
    )
    host: str = Field(default="localhost", description="Application host")
    port: int = Field(default=8000, description="Application port")
    cors: CORSConfig = Field(
        default_factory=CORSConfig, description="CORS configuration"
    )


class JWTConfig(BaseModel):
    """Bearer token signing and validation configuration."""

    signing_secret: str = Field(
        default=DEV_SIGNING_SECRET,
        description="Symmetric key used to sign and verify issued tokens",
    )
    validity_seconds: int = Field(
        default=86400, gt=0, description="Token lifetime in whole seconds"
    )
    algorithm: Literal["HS256", "HS384", "HS512"] = Field(
        default="HS256", description="HMAC algorithm used for signing"
    )
    bearer_prefix: str = Field(
        default="Bearer ", description="Authorization header prefix carrying a token"
    )


class WeChatConfig(BaseModel):
    """WeChat mini-program credentials and code2session endpoint."""

    appid: str = Field(default="", description="Mini-program app id")
    secret: str = Field(default="", description="Mini-program app secret")
    session_url: str = Field(
        default="https://api.weixin.qq.com/sns/jscode2session",
        description="jscode2session endpoint URL",
    )
    connect_timeout: float = Field(
        default=5.0, gt=0, description="Connect timeout in seconds"
    )
    read_timeout: float = Field(
        default=10.0, gt=0, description="Read timeout in seconds"
    )


class LoggingConfig(BaseModel):
    """Logging configuration model."""

    level: str = Field(default="INFO", description="Logging level")
    format: Literal["json", "plain"] = Field(default="json", description="Log format")
    file: str | None = Field(default=None, description="Log file path")
    max_size_mb: int = Field(default=10, description="Maximum log file size in MB")
    backup_count: int = Field(
        default=5, description="Number of backup log files to keep"
    )


class DatabaseConfig(BaseModel):
    """Database configuration model."""

    url: str = Field(
        default="sqlite:///./wxauth.db", description="Database connection URL"
    )
    echo: bool = Field(default=False, description="Echo SQL statements")
    pool_size: int = Field(default=10, description="Connection pool size")
    max_overflow: int = Field(default=10, description="Maximum pool overflow")
    pool_timeout: int = Field(default=30, description="Pool timeout in seconds")
    pool_recycle: int = Field(default=1800, description="Pool recycle time in seconds")
    create_tables_on_startup: bool = Field(
        default=True, description="Create missing tables when the API starts"
    )


class ConfigData(BaseModel):
    """Root configuration model that matches the config.yaml structure."""

    app: AppConfig = Field(
        default_factory=AppConfig, description="Application configuration"
    )
    jwt: JWTConfig = Field(
        default_factory=JWTConfig, description="Token configuration"
    )
    wechat: WeChatConfig = Field(
        default_factory=WeChatConfig, description="WeChat provider configuration"
    )
    database: DatabaseConfig = Field(
        default_factory=DatabaseConfig, description="Database configuration"
    )
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig, description="Logging configuration"
    )
