"""Configuration settings using Pydantic for validation."""

from typing import Any, Optional
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
import logging
import os
import re

from ..exceptions import ConfigurationError


class ServerConfig(BaseModel):
    """BetaCrew exchange server configuration."""
    host: str = Field(default="localhost", description="Feed server host")
    port: int = Field(default=3000, description="Feed server TCP port")
    connect_timeout_seconds: float = Field(default=10.0, description="Per-connection connect timeout")
    read_timeout_seconds: float = Field(default=30.0, description="Per-read timeout while awaiting data")

    @field_validator('port')
    @classmethod
    def validate_port(cls, v):
        if not 1 <= v <= 65535:
            raise ValueError("Port must be between 1 and 65535")
        return v

    @field_validator('connect_timeout_seconds', 'read_timeout_seconds')
    @classmethod
    def validate_timeout(cls, v):
        if v <= 0:
            raise ValueError("Timeouts must be positive")
        return v


class RetryConfig(BaseModel):
    """Retry configuration for individual resend exchanges."""
    max_attempts: int = Field(default=1, description="Attempts per missing sequence")
    initial_backoff_seconds: float = Field(default=0.5, description="Initial backoff delay")
    max_backoff_seconds: float = Field(default=5.0, description="Maximum backoff delay")
    backoff_multiplier: float = Field(default=2.0, description="Backoff multiplier")
    jitter: bool = Field(default=True, description="Add jitter to backoff")

    @field_validator('max_attempts')
    @classmethod
    def validate_max_attempts(cls, v):
        if v < 1:
            raise ValueError("max_attempts must be at least 1")
        return v


class OutputConfig(BaseModel):
    """Output sink configuration."""
    type: str = Field(default="file", description="Output sink: file or s3")
    path: str = Field(default="betacrew_output.json", description="Local output file path")
    indent: Optional[int] = Field(default=2, description="JSON indentation")

    @field_validator('type')
    @classmethod
    def validate_type(cls, v):
        if v not in ['file', 's3']:
            raise ValueError("Output type must be 'file' or 's3'")
        return v


class AWSConfig(BaseModel):
    """AWS configuration for the S3 output sink."""
    region: str = Field(default="us-east-1", description="AWS region")
    s3_bucket: str = Field(default="betacrew-feed", description="S3 bucket for output")
    s3_prefix: str = Field(default="betacrew", description="S3 key prefix")
    max_attempts: int = Field(default=3, description="botocore retry attempts per S3 call")
    connect_timeout_seconds: float = Field(default=10.0, description="S3 connect timeout")
    read_timeout_seconds: float = Field(default=30.0, description="S3 read timeout")

    # LocalStack overrides for local development
    localstack_endpoint: Optional[str] = Field(default=None, description="LocalStack endpoint URL")

    @field_validator('s3_prefix')
    @classmethod
    def validate_prefix(cls, v):
        return v.strip('/')


class LoggingConfig(BaseModel):
    """Logging configuration."""
    level: str = Field(default="INFO", description="Log level")
    format: str = Field(default="text", description="Log format: json or text")
    output: str = Field(default="stdout", description="Console destination: stdout or stderr")
    file: Optional[str] = Field(default="betacrew-client.log", description="Optional log file")

    @field_validator('level')
    @classmethod
    def validate_level(cls, v):
        if not isinstance(logging.getLevelName(v.upper()), int):
            raise ValueError(f"Unknown log level: {v}")
        return v.upper()

    @field_validator('format')
    @classmethod
    def validate_format(cls, v):
        if v.lower() not in ['json', 'text']:
            raise ValueError("Log format must be 'json' or 'text'")
        return v.lower()


class FeedClientSettings(BaseSettings):
    """Main feed client settings."""

    model_config = SettingsConfigDict(
        env_prefix="BETACREW_",
        env_nested_delimiter="__",
        case_sensitive=False,
    )

    service_name: str = Field(default="betacrew-client", description="Service name")

    server: ServerConfig = Field(default_factory=ServerConfig)
    recovery: RetryConfig = Field(default_factory=RetryConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
    aws: AWSConfig = Field(default_factory=AWSConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def substitute_env_vars(obj: Any) -> Any:
    """
    Recursively substitute environment variables in configuration objects.

    Supports syntax:
    - ${VAR_NAME} - Required variable (raises error if not found)
    - ${VAR_NAME:-default} - Optional variable with default value

    Raises:
        ValueError: If required environment variable is not found
    """
    if isinstance(obj, dict):
        return {key: substitute_env_vars(value) for key, value in obj.items()}
    elif isinstance(obj, list):
        return [substitute_env_vars(item) for item in obj]
    elif isinstance(obj, str):
        def replace_env_var(match):
            var_expr = match.group(1)

            if ':-' in var_expr:
                var_name, default_value = var_expr.split(':-', 1)
                return os.getenv(var_name.strip(), default_value)
            else:
                var_name = var_expr.strip()
                value = os.getenv(var_name)
                if value is None:
                    raise ValueError(f"Required environment variable '{var_name}' is not set")
                return value

        return re.sub(r'\$\{([^}]+)\}', replace_env_var, obj)
    else:
        return obj


def load_settings(config_file: Optional[str] = None) -> FeedClientSettings:
    """
    Load settings from config file and environment variables.

    The config file supports environment variable substitution using ${VAR_NAME} syntax.

    Args:
        config_file: Path to YAML configuration file

    Raises:
        ValueError: If required environment variables are missing
        FileNotFoundError: If config file doesn't exist
        ConfigurationError: If the file is not a YAML mapping
    """
    if config_file and os.path.exists(config_file):
        import yaml

        with open(config_file, 'r') as f:
            raw_config = yaml.safe_load(f) or {}

        if not isinstance(raw_config, dict):
            raise ConfigurationError(f"Configuration file {config_file} must contain a mapping")

        config_data = substitute_env_vars(raw_config)
        return FeedClientSettings(**config_data)

    elif config_file:
        raise FileNotFoundError(f"Configuration file not found: {config_file}")

    # Load from environment variables only
    return FeedClientSettings()
