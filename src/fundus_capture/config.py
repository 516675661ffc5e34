"""
Fundus Capture Configuration
============================

This module handles configuration loading for the capture pipeline.

Configuration Sources (in order of precedence):
    1. Environment variables (highest priority)
    2. config.yaml file
    3. Default values (lowest priority)

Environment Variable Mapping:
    FUNDUS_CONFIG_PATH     -> path of the YAML file to load
    FUNDUS_BURST_COUNT     -> burst.count
    FUNDUS_BURST_DELAY_MS  -> burst.inter_frame_delay_ms
    FUNDUS_TILE_SIZE       -> enhancement.tile_size
    FUNDUS_CLIP_LIMIT      -> enhancement.clip_limit
    FUNDUS_JPEG_QUALITY    -> export.jpeg_quality
    FUNDUS_CAMERA_DEVICE   -> camera.device
    FUNDUS_LOG_LEVEL       -> logging.level

Nothing is loaded at import time; callers build their own Settings.

Example:
    from fundus_capture.config import load_config

    settings = load_config()
    print(settings.burst.count)
    print(settings.enhancement.clip_limit)
"""

import os
import logging
from pathlib import Path
from typing import Optional, Union

import yaml
from pydantic import BaseModel, Field


logger = logging.getLogger(__name__)


# =============================================================================
# Configuration Models
# =============================================================================

class BurstConfig(BaseModel):
    """Burst capture configuration."""

    count: int = Field(default=5, ge=1, description="Grab attempts per burst")
    inter_frame_delay_ms: int = Field(
        default=110,
        ge=0,
        description="Pause between grab attempts in milliseconds",
    )
    working_width: int = Field(
        default=256,
        ge=3,
        description="Width frames are resized to before sharpness scoring",
    )


class EnhancementConfig(BaseModel):
    """Contrast enhancement configuration."""

    tile_size: int = Field(default=64, gt=0, description="Tile edge in pixels")
    clip_limit: float = Field(
        default=0.01,
        gt=0,
        le=1.0,
        description="Histogram clip fraction (0, 1]",
    )


class ExportConfig(BaseModel):
    """Encoded output configuration."""

    jpeg_quality: int = Field(default=92, ge=1, le=100, description="JPEG quality")


class CameraConfig(BaseModel):
    """Camera device configuration."""

    device: Union[int, str] = Field(
        default=0,
        description="OpenCV camera index or stream URL",
    )


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default="INFO", description="Log level")
    format: str = Field(default="text", description="Log format: json or text")


class Settings(BaseModel):
    """
    Main settings class for the fundus capture pipeline.

    Loads configuration from YAML file and environment variables.
    Environment variables take precedence over file values.
    """

    burst: BurstConfig = Field(default_factory=BurstConfig)
    enhancement: EnhancementConfig = Field(default_factory=EnhancementConfig)
    export: ExportConfig = Field(default_factory=ExportConfig)
    camera: CameraConfig = Field(default_factory=CameraConfig)
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
        config_path: Path to config.yaml. If None, uses FUNDUS_CONFIG_PATH
            or searches common locations.

    Returns:
        Settings: Loaded configuration
    """
    if config_path is None:
        config_path = os.environ.get("FUNDUS_CONFIG_PATH")

    if config_path is None:
        search_paths = [
            Path("config.yaml"),
            Path("config.yml"),
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

    # Burst settings
    if env_count := os.environ.get("FUNDUS_BURST_COUNT"):
        config_data.setdefault("burst", {})["count"] = int(env_count)
    if env_delay := os.environ.get("FUNDUS_BURST_DELAY_MS"):
        config_data.setdefault("burst", {})["inter_frame_delay_ms"] = int(env_delay)

    # Enhancement settings
    if env_tile := os.environ.get("FUNDUS_TILE_SIZE"):
        config_data.setdefault("enhancement", {})["tile_size"] = int(env_tile)
    if env_clip := os.environ.get("FUNDUS_CLIP_LIMIT"):
        config_data.setdefault("enhancement", {})["clip_limit"] = float(env_clip)

    # Export settings
    if env_quality := os.environ.get("FUNDUS_JPEG_QUALITY"):
        config_data.setdefault("export", {})["jpeg_quality"] = int(env_quality)

    # Camera: numeric values are device indices, anything else a URL/path
    if env_device := os.environ.get("FUNDUS_CAMERA_DEVICE"):
        device = int(env_device) if env_device.isdigit() else env_device
        config_data.setdefault("camera", {})["device"] = device

    # Logging settings
    if env_log := os.environ.get("FUNDUS_LOG_LEVEL"):
        config_data.setdefault("logging", {})["level"] = env_log


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
