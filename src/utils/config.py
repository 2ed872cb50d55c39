"""Configuration management for the cédula reader.

Loads and validates YAML configuration with sensible defaults
for capture, preprocessing, OCR, scan loop, and API settings.
"""

import logging
from pathlib import Path

import yaml
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class CaptureConfig(BaseModel):
    """Configuration for the frame capture device."""

    device: int | str = 0
    width: int = 640
    height: int = 480


class PreprocessingConfig(BaseModel):
    """Configuration for per-frame image preprocessing."""

    enabled: bool = True
    denoise_enabled: bool = False
    denoise_method: str = "bilateral"
    contrast_enabled: bool = True
    clahe_clip_limit: float = 2.0
    clahe_tile_size: int = 8
    binarize_enabled: bool = False
    binarize_method: str = "otsu"
    min_sharpness: float = 0.0


class OCRConfig(BaseModel):
    """Configuration for Tesseract OCR engine."""

    tesseract_cmd: str | None = None
    lang: str = "spa"
    psm: int = 6


class APIConfig(BaseModel):
    """Configuration for the HTTP session service."""

    max_sessions: int = Field(default=100, ge=1)


class ScanConfig(BaseModel):
    """Configuration for the scan driver loop."""

    interval_s: float = Field(default=0.5, ge=0.0)
    stop_on_complete: bool = True
    max_frames: int | None = Field(default=None, ge=1)


class AppConfig(BaseModel):
    """Top-level application configuration."""

    capture: CaptureConfig = Field(default_factory=CaptureConfig)
    preprocessing: PreprocessingConfig = Field(default_factory=PreprocessingConfig)
    ocr: OCRConfig = Field(default_factory=OCRConfig)
    scan: ScanConfig = Field(default_factory=ScanConfig)
    api: APIConfig = Field(default_factory=APIConfig)
    log_level: str = "INFO"


def load_config(path: Path | None = None) -> AppConfig:
    """Load configuration from a YAML file.

    Args:
        path: Path to the YAML configuration file.
            Defaults to configs/config.yaml.

    Returns:
        Validated application configuration.
    """
    if path is None:
        path = Path("configs/config.yaml")

    if path.exists():
        logger.info("Loading configuration from %s", path)
        with open(path) as f:
            raw = yaml.safe_load(f) or {}
        return AppConfig(**raw)

    logger.info("No config file found at %s, using defaults", path)
    return AppConfig()
