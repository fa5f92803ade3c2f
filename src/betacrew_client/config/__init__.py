"""Configuration for the BetaCrew feed client."""

from .settings import (
    AWSConfig,
    FeedClientSettings,
    LoggingConfig,
    OutputConfig,
    RetryConfig,
    ServerConfig,
    load_settings,
    substitute_env_vars,
)

__all__ = [
    "AWSConfig",
    "FeedClientSettings",
    "LoggingConfig",
    "OutputConfig",
    "RetryConfig",
    "ServerConfig",
    "load_settings",
    "substitute_env_vars",
]
