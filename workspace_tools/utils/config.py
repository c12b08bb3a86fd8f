"""Configuration management for the workspace tools.

Loads and validates YAML configuration with defaults tuned for
Romanian ID card OCR and the online documentation MCP server.
"""

import logging
from pathlib import Path

import yaml
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

ROMANIAN_CHAR_WHITELIST = (
    "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789"
    "ĂÂÎȘȚăâîșț.,- /"
)


class PreprocessingConfig(BaseModel):
    """Configuration for image preprocessing pipeline."""

    max_image_size: int = 2048
    enhance_enabled: bool = True
    gamma: float = 0.8
    noise_push: int = 10
    deskew_enabled: bool = False
    deskew_angle_threshold: float = 0.5
    deskew_max_angle: float = 15.0


class OCRConfig(BaseModel):
    """Configuration for Tesseract OCR engine."""

    tesseract_cmd: str | None = None
    default_lang: str = "ron"
    psm: int = 11
    oem: int = 2
    char_whitelist: str = ROMANIAN_CHAR_WHITELIST
    preserve_interword_spaces: bool = True
    pdf_dpi: int = 300
    max_pdf_pages: int = 2


class ExtractionConfig(BaseModel):
    """Thresholds deciding when an extracted record is flagged as an error."""

    min_confidence: int = 70
    max_errors: int = 2


class ValidationConfig(BaseModel):
    """Configuration for validation rules engine."""

    rules_path: str = "configs/validation_rules.yaml"


class UploadConfig(BaseModel):
    """Limits applied to uploaded ID card scans."""

    allowed_content_types: list[str] = Field(
        default_factory=lambda: ["image/jpeg", "image/png", "application/pdf"]
    )
    max_file_size_mb: int = 10
    batch_concurrency: int = 2
    max_batch_files: int = 20


class DocsConfig(BaseModel):
    """Configuration for the online documentation MCP server."""

    server_name: str = "online-docs-mcp"
    user_agent: str = "online-docs-mcp/0.1.0"
    timeout_seconds: float = 15.0
    default_search_limit: int = 5
    max_search_limit: int = 20
    max_queries_per_source: int = 3
    body_fallback_chars: int = 2000


class AppConfig(BaseModel):
    """Top-level application configuration."""

    preprocessing: PreprocessingConfig = Field(default_factory=PreprocessingConfig)
    ocr: OCRConfig = Field(default_factory=OCRConfig)
    extraction: ExtractionConfig = Field(default_factory=ExtractionConfig)
    validation: ValidationConfig = Field(default_factory=ValidationConfig)
    upload: UploadConfig = Field(default_factory=UploadConfig)
    docs: DocsConfig = Field(default_factory=DocsConfig)
    api_host: str = "0.0.0.0"
    api_port: int = 8000
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
        with open(path, encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
        return AppConfig(**raw)

    logger.info("No config file found at %s, using defaults", path)
    return AppConfig()
