"""Tests for configuration loading and validation."""

from pathlib import Path

import yaml

from workspace_tools.utils.config import (
    ROMANIAN_CHAR_WHITELIST,
    AppConfig,
    DocsConfig,
    ExtractionConfig,
    OCRConfig,
    PreprocessingConfig,
    UploadConfig,
    ValidationConfig,
    load_config,
)


class TestPreprocessingConfig:
    """Tests for PreprocessingConfig defaults and overrides."""

    def test_defaults(self) -> None:
        cfg = PreprocessingConfig()
        assert cfg.max_image_size == 2048
        assert cfg.enhance_enabled is True
        assert cfg.gamma == 0.8
        assert cfg.noise_push == 10
        assert cfg.deskew_enabled is False

    def test_override(self) -> None:
        cfg = PreprocessingConfig(deskew_enabled=True, gamma=1.0)
        assert cfg.deskew_enabled is True
        assert cfg.gamma == 1.0


class TestOCRConfig:
    """Tests for OCRConfig defaults and overrides."""

    def test_defaults(self) -> None:
        cfg = OCRConfig()
        assert cfg.default_lang == "ron"
        assert cfg.psm == 11
        assert cfg.oem == 2
        assert cfg.char_whitelist == ROMANIAN_CHAR_WHITELIST
        assert cfg.pdf_dpi == 300
        assert cfg.max_pdf_pages == 2
        assert cfg.tesseract_cmd is None

    def test_whitelist_has_romanian_letters(self) -> None:
        for char in "ĂÂÎȘȚăâîșț":
            assert char in ROMANIAN_CHAR_WHITELIST


class TestSectionDefaults:
    """Tests for the smaller configuration sections."""

    def test_extraction(self) -> None:
        cfg = ExtractionConfig()
        assert cfg.min_confidence == 70
        assert cfg.max_errors == 2

    def test_validation(self) -> None:
        assert ValidationConfig().rules_path == "configs/validation_rules.yaml"

    def test_upload(self) -> None:
        cfg = UploadConfig()
        assert cfg.allowed_content_types == ["image/jpeg", "image/png", "application/pdf"]
        assert cfg.max_file_size_mb == 10
        assert cfg.max_batch_files == 20

    def test_docs(self) -> None:
        cfg = DocsConfig()
        assert cfg.default_search_limit == 5
        assert cfg.max_search_limit == 20
        assert cfg.max_queries_per_source == 3


class TestAppConfig:
    """Tests for the top-level AppConfig."""

    def test_defaults(self) -> None:
        cfg = AppConfig()
        assert isinstance(cfg.preprocessing, PreprocessingConfig)
        assert isinstance(cfg.ocr, OCRConfig)
        assert isinstance(cfg.docs, DocsConfig)
        assert cfg.api_port == 8000
        assert cfg.log_level == "INFO"

    def test_nested_override(self) -> None:
        cfg = AppConfig(upload=UploadConfig(batch_concurrency=4), log_level="DEBUG")
        assert cfg.upload.batch_concurrency == 4
        assert cfg.log_level == "DEBUG"


class TestLoadConfig:
    """Tests for the load_config function."""

    def test_load_project_config(self, config_dir: Path) -> None:
        cfg = load_config(config_dir / "config.yaml")
        assert cfg.ocr.default_lang == "ron"
        assert cfg.upload.max_file_size_mb == 10
        assert cfg.upload.max_batch_files == 20
        assert cfg.docs.server_name == "online-docs-mcp"

    def test_load_missing_file_returns_defaults(self) -> None:
        cfg = load_config(Path("/nonexistent/path/config.yaml"))
        assert cfg == AppConfig()

    def test_load_custom_yaml(self, tmp_path: Path) -> None:
        config_data = {
            "ocr": {"default_lang": "ron+eng", "psm": 6},
            "extraction": {"min_confidence": 50},
            "log_level": "DEBUG",
        }
        config_file = tmp_path / "config.yaml"
        with open(config_file, "w") as f:
            yaml.dump(config_data, f)

        cfg = load_config(config_file)
        assert cfg.ocr.default_lang == "ron+eng"
        assert cfg.ocr.psm == 6
        assert cfg.extraction.min_confidence == 50
        assert cfg.log_level == "DEBUG"

    def test_load_empty_yaml(self, tmp_path: Path) -> None:
        config_file = tmp_path / "empty.yaml"
        config_file.write_text("")
        assert isinstance(load_config(config_file), AppConfig)
