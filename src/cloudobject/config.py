"""Configuration loading and Pydantic models for cloudobject."""

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field

from cloudobject import __version__


class ConnectionConfig(BaseModel):
    """Storage service endpoint and transport configuration."""

    storage_url: str = ""
    auth_token: str = ""
    timeout: float = 30.0
    chunk_size: int = 64 * 1024
    user_agent: str = f"cloudobject/{__version__}"


class LoggingConfig(BaseModel):
    """Log level and output format."""

    level: str = "INFO"
    format: str = "text"


class ObservabilityConfig(BaseModel):
    """Client-side metrics configuration."""

    metrics: bool = False


class CloudObjectConfig(BaseModel):
    """Top-level cloudobject configuration."""

    connection: ConnectionConfig = Field(default_factory=ConnectionConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    observability: ObservabilityConfig = Field(default_factory=ObservabilityConfig)


def _parse_connection(data: dict[str, Any] | None) -> dict[str, Any]:
    """Parse the connection section from YAML data into a dict for Pydantic.

    Only keys present in the file are passed through, so absent keys keep
    the model defaults.
    """
    if data is None:
        return {}
    keys = ("storage_url", "auth_token", "timeout", "chunk_size", "user_agent")
    return {key: data[key] for key in keys if key in data}


def _parse_logging(data: dict[str, Any] | None) -> dict[str, Any]:
    """Parse the logging section from YAML data."""
    if data is None:
        return {}
    return {
        "level": str(data.get("level", "INFO")).upper(),
        "format": data.get("format", "text"),
    }


def _parse_observability(data: dict[str, Any] | None) -> dict[str, Any]:
    """Parse the observability section from YAML data."""
    if data is None:
        return {}
    return {"metrics": data.get("metrics", False)}


def load_config(path: Path) -> CloudObjectConfig:
    """Load a CloudObjectConfig from a YAML file.

    Args:
        path: Path to the YAML configuration file.

    Returns:
        A fully populated CloudObjectConfig validated by Pydantic.

    Raises:
        FileNotFoundError: If the config file does not exist.
        yaml.YAMLError: If the file is not valid YAML.
    """
    with open(path, "r") as fh:
        raw: dict[str, Any] = yaml.safe_load(fh) or {}

    return CloudObjectConfig(
        connection=ConnectionConfig(**_parse_connection(raw.get("connection"))),
        logging=LoggingConfig(**_parse_logging(raw.get("logging"))),
        observability=ObservabilityConfig(**_parse_observability(raw.get("observability"))),
    )
