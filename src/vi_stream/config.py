"""
vi-stream Configuration
=======================

This module handles configuration loading for the animation stream service.

Configuration Sources (in order of precedence):
    1. Environment variables (highest priority)
    2. config.yaml file
    3. Default values (lowest priority)

Environment Variable Mapping:
    VI_FRAMES_DIR          -> frames.directory
    VI_FRAMES_FALLBACK_DIR -> frames.fallback_directory
    VI_FRAME_DELAY_MS      -> animation.frame_delay_ms
    VI_MAX_STREAM_MS       -> animation.max_stream_ms
    VI_REDIRECT_URL        -> routing.redirect_url
    VI_LOG_LEVEL           -> logging.level
    VI_LOG_FORMAT          -> logging.format
    PORT / VI_PORT         -> server.port

Example:
    from vi_stream.config import settings

    print(settings.animation.frame_delay_ms)
    print(settings.frames.directory)
"""

import os
import logging
from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import BaseModel, Field


logger = logging.getLogger(__name__)

BUNDLED_FRAMES_DIR = Path(__file__).parent / "assets" / "frames"


# =============================================================================
# Configuration Models
# =============================================================================

class ServiceConfig(BaseModel):
    """Service identification configuration."""

    name: str = Field(default="vi-stream", description="Service name")
    version: str = Field(default="0.1.0", description="Service version")


class FramesConfig(BaseModel):
    """Frame asset discovery configuration."""

    directory: str = Field(
        default="frames",
        description="Primary frame directory (relative to the working directory)",
    )
    fallback_directory: str = Field(
        default=str(BUNDLED_FRAMES_DIR),
        description="Directory used when the primary one does not exist",
    )
    extension: str = Field(
        default=".txt",
        min_length=1,
        description="File extension that marks a frame asset",
    )


class AnimationConfig(BaseModel):
    """Animation cadence and session budget."""

    frame_delay_ms: int = Field(
        default=70,
        gt=0,
        description="Delay between successive ticks in milliseconds",
    )
    max_stream_ms: int = Field(
        default=5000,
        gt=0,
        description="Hard wall-clock cap on a single stream session",
    )
    queue_size: int = Field(
        default=8,
        ge=1,
        description="Maximum buffered chunks per response before backpressure",
    )


class RoutingConfig(BaseModel):
    """Client routing configuration."""

    redirect_url: str = Field(
        default="https://github.com/ArneshRC/Vi",
        description="Where non-terminal clients are redirected",
    )
    terminal_agents: List[str] = Field(
        default_factory=lambda: ["curl", "wget"],
        description="User-agent tokens that identify command-line clients",
    )


class ServerConfig(BaseModel):
    """Server configuration."""

    host: str = Field(default="0.0.0.0", description="Bind host")
    port: int = Field(default=8000, ge=1, le=65535, description="Bind port")


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default="INFO", description="Log level")
    format: str = Field(default="text", description="Log format: json or text")


class Settings(BaseModel):
    """
    Main settings class for vi-stream.

    Loads configuration from YAML file and environment variables.
    Environment variables take precedence over file values.
    """

    service: ServiceConfig = Field(default_factory=ServiceConfig)
    frames: FramesConfig = Field(default_factory=FramesConfig)
    animation: AnimationConfig = Field(default_factory=AnimationConfig)
    routing: RoutingConfig = Field(default_factory=RoutingConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


# =============================================================================
# Configuration Loading
# =============================================================================

def load_config(config_path: Optional[str] = None) -> Settings:
    """
    Load configuration from YAML file and environment variables.

    Priority (highest to lowest):
        1. Environment variables
        2. YAML config file
        3. Default values

    Args:
        config_path: Path to config.yaml. If None, searches common locations.

    Returns:
        Settings: Loaded configuration
    """
    if config_path is None:
        search_paths = [
            Path("config.yaml"),
            Path("config.yml"),
            Path(__file__).parent.parent.parent / "config.yaml",
        ]
        for path in search_paths:
            if path.exists():
                config_path = str(path)
                break

    config_data = {}
    if config_path and Path(config_path).exists():
        logger.info(f"Loading config from: {config_path}")
        with open(config_path, "r") as f:
            config_data = yaml.safe_load(f) or {}
    else:
        logger.debug("No config file found, using defaults and environment variables")

    _apply_env_overrides(config_data)

    return Settings.model_validate(config_data)


def _apply_env_overrides(config_data: dict) -> None:
    """Apply environment variable overrides to config data."""

    # Frame assets
    if env_dir := os.environ.get("VI_FRAMES_DIR"):
        config_data.setdefault("frames", {})["directory"] = env_dir
    if env_fallback := os.environ.get("VI_FRAMES_FALLBACK_DIR"):
        config_data.setdefault("frames", {})["fallback_directory"] = env_fallback

    # Animation timing
    if env_delay := os.environ.get("VI_FRAME_DELAY_MS"):
        config_data.setdefault("animation", {})["frame_delay_ms"] = int(env_delay)
    if env_budget := os.environ.get("VI_MAX_STREAM_MS"):
        config_data.setdefault("animation", {})["max_stream_ms"] = int(env_budget)

    # Routing
    if env_redirect := os.environ.get("VI_REDIRECT_URL"):
        config_data.setdefault("routing", {})["redirect_url"] = env_redirect

    # Server settings (PaaS hosts use the PORT env var)
    if env_port := os.environ.get("PORT"):
        config_data.setdefault("server", {})["port"] = int(env_port)
    elif env_port := os.environ.get("VI_PORT"):
        config_data.setdefault("server", {})["port"] = int(env_port)

    # Logging settings
    if env_log := os.environ.get("VI_LOG_LEVEL"):
        config_data.setdefault("logging", {})["level"] = env_log
    if env_fmt := os.environ.get("VI_LOG_FORMAT"):
        config_data.setdefault("logging", {})["format"] = env_fmt


def setup_logging(settings: Settings) -> None:
    """Configure logging based on settings."""
    log_level = getattr(logging, settings.logging.level.upper(), logging.INFO)

    if settings.logging.format == "json":
        log_format = '{"time": "%(asctime)s", "level": "%(levelname)s", "module": "%(name)s", "message": "%(message)s"}'
    else:
        log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    logging.basicConfig(
        level=log_level,
        format=log_format,
        datefmt="%Y-%m-%dT%H:%M:%S",
    )


# =============================================================================
# Global Settings Instance
# =============================================================================

# Global settings instance - loaded on import
settings = load_config()
setup_logging(settings)
