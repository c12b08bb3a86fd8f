"""Tests for PDF handling and scan processing."""

from pathlib import Path
from unittest.mock import MagicMock, patch

import numpy as np
import pytest
from PIL import Image

from workspace_tools.ocr.document_processor import DocumentProcessor, DocumentResult
from workspace_tools.ocr.pdf_handler import PDFHandler
from workspace_tools.ocr.tesseract_engine import OCRResult
from workspace_tools.utils.config import AppConfig


def _mock_pil_image(width: int = 300, height: int = 200) -> Image.Image:
    """Create a mock PIL image."""
    return Image.fromarray(np.zeros((height, width, 3), dtype=np.uint8))


def _ocr_result(text: str = "CNP 1900515123458", confidence: float = 0.9) -> OCRResult:
    return OCRResult(text=text, words=[], language="ron", confidence=confidence)


class TestPDFHandler:
    """Tests for the PDFHandler class."""

    def test_defaults(self) -> None:
        handler = PDFHandler()
        assert handler.dpi == 300
        assert handler.max_pages == 2

    @patch("workspace_tools.ocr.pdf_handler.convert_from_path")
    def test_pdf_to_images_from_path(self, mock_convert: MagicMock) -> None:
        mock_convert.return_value = [_mock_pil_image(), _mock_pil_image()]
        handler = PDFHandler(dpi=200)

        with patch.object(Path, "exists", return_value=True):
            images = handler.pdf_to_images(Path("/fake/card.pdf"))

        assert len(images) == 2
        assert all(img.shape == (200, 300, 3) for img in images)
        mock_convert.assert_called_once_with(
            "/fake/card.pdf", dpi=200, first_page=1, last_page=2
        )

    @patch("workspace_tools.ocr.pdf_handler.convert_from_bytes")
    def test_pdf_to_images_from_bytes(self, mock_convert: MagicMock) -> None:
        mock_convert.return_value = [_mock_pil_image().convert("L")]
        handler = PDFHandler(max_pages=1)

        images = handler.pdf_to_images(b"%PDF-1.4 fake content")

        assert len(images) == 1
        assert images[0].shape == (200, 300, 3)
        assert mock_convert.call_args.kwargs["last_page"] == 1

    def test_pdf_to_images_file_not_found(self) -> None:
        with pytest.raises(FileNotFoundError):
            PDFHandler().pdf_to_images(Path("/nonexistent/file.pdf"))

    @patch("workspace_tools.ocr.pdf_handler.convert_from_bytes")
    def test_conversion_error_wrapped(self, mock_convert: MagicMock) -> None:
        mock_convert.side_effect = OSError("poppler missing")
        with pytest.raises(RuntimeError, match="PDF conversion failed"):
            PDFHandler().pdf_to_images(b"%PDF-1.4")


@patch("workspace_tools.ocr.document_processor.TesseractEngine")
@patch("workspace_tools.ocr.document_processor.PDFHandler")
class TestDocumentProcessor:
    """Tests for the DocumentProcessor class."""

    def test_process_image_bytes(
        self, mock_pdf_cls: MagicMock, mock_ocr_cls: MagicMock, png_bytes: bytes
    ) -> None:
        mock_ocr_cls.return_value.extract_text.return_value = _ocr_result()

        result = DocumentProcessor(AppConfig()).process(png_bytes, "card.png")

        assert isinstance(result, DocumentResult)
        assert result.page_count == 1
        assert result.source_file == "card.png"
        assert result.combined_text == "CNP 1900515123458"
        assert result.confidence == 0.9
        assert result.pages[0].quality_metrics is not None
        mock_pdf_cls.return_value.pdf_to_images.assert_not_called()

    def test_process_pdf_bytes(
        self, mock_pdf_cls: MagicMock, mock_ocr_cls: MagicMock
    ) -> None:
        mock_pdf_cls.return_value.pdf_to_images.return_value = [
            np.zeros((200, 300, 3), dtype=np.uint8),
            np.zeros((200, 300, 3), dtype=np.uint8),
        ]
        mock_ocr_cls.return_value.extract_text.side_effect = [
            _ocr_result("front", 0.8),
            _ocr_result("back", 0.6),
        ]

        result = DocumentProcessor(AppConfig()).process(b"%PDF-1.4 content", "card.pdf")

        assert result.page_count == 2
        assert result.combined_text == "front\n\nback"
        assert abs(result.confidence - 0.7) < 1e-9

    def test_process_image_file_path(
        self, mock_pdf_cls: MagicMock, mock_ocr_cls: MagicMock, tmp_path: Path
    ) -> None:
        mock_ocr_cls.return_value.extract_text.return_value = _ocr_result()
        img_path = tmp_path / "card.png"
        _mock_pil_image().save(str(img_path))

        result = DocumentProcessor(AppConfig()).process(img_path, "card.png")
        assert result.page_count == 1

    def test_pdf_path_uses_pdf_handler(
        self, mock_pdf_cls: MagicMock, mock_ocr_cls: MagicMock
    ) -> None:
        mock_pdf_cls.return_value.pdf_to_images.return_value = [
            np.zeros((200, 300, 3), dtype=np.uint8)
        ]
        mock_ocr_cls.return_value.extract_text.return_value = _ocr_result()

        DocumentProcessor(AppConfig()).process(Path("/fake/card.pdf"), "card.pdf")
        mock_pdf_cls.return_value.pdf_to_images.assert_called_once()

    def test_empty_bytes_rejected(
        self, mock_pdf_cls: MagicMock, mock_ocr_cls: MagicMock
    ) -> None:
        with pytest.raises(ValueError, match="Invalid or empty file"):
            DocumentProcessor(AppConfig()).process(b"", "empty.png")

    def test_pdf_without_pages_rejected(
        self, mock_pdf_cls: MagicMock, mock_ocr_cls: MagicMock
    ) -> None:
        mock_pdf_cls.return_value.pdf_to_images.return_value = []
        with pytest.raises(ValueError, match="Invalid or empty file"):
            DocumentProcessor(AppConfig()).process(b"%PDF-1.4", "empty.pdf")

    def test_progress_reported(
        self, mock_pdf_cls: MagicMock, mock_ocr_cls: MagicMock, png_bytes: bytes
    ) -> None:
        mock_ocr_cls.return_value.extract_text.return_value = _ocr_result()
        progress: list[int] = []

        DocumentProcessor(AppConfig()).process(png_bytes, "card.png", progress.append)
        assert progress == [20, 30, 100]

    def test_preprocessing_failure_uses_original(
        self, mock_pdf_cls: MagicMock, mock_ocr_cls: MagicMock, png_bytes: bytes
    ) -> None:
        mock_ocr_cls.return_value.extract_text.return_value = _ocr_result()
        processor = DocumentProcessor(AppConfig())

        with patch.object(
            processor.preprocessing, "process", side_effect=RuntimeError("bad image")
        ):
            result = processor.process(png_bytes, "card.png")

        page = result.pages[0]
        assert page.used_original is True
        assert page.quality_metrics is None

    def test_ocr_failure_retries_original(
        self, mock_pdf_cls: MagicMock, mock_ocr_cls: MagicMock, png_bytes: bytes
    ) -> None:
        mock_ocr_cls.return_value.extract_text.side_effect = [
            RuntimeError("tesseract crashed"),
            _ocr_result(),
        ]

        result = DocumentProcessor(AppConfig()).process(png_bytes, "card.png")

        assert result.pages[0].used_original is True
        assert mock_ocr_cls.return_value.extract_text.call_count == 2
        retried_image = mock_ocr_cls.return_value.extract_text.call_args_list[1].args[0]
        assert retried_image.ndim == 3

    def test_ocr_failure_on_original_propagates(
        self, mock_pdf_cls: MagicMock, mock_ocr_cls: MagicMock, png_bytes: bytes
    ) -> None:
        mock_ocr_cls.return_value.extract_text.side_effect = RuntimeError("no tesseract")
        processor = DocumentProcessor(AppConfig())

        with patch.object(
            processor.preprocessing, "process", side_effect=RuntimeError("bad image")
        ):
            with pytest.raises(RuntimeError, match="no tesseract"):
                processor.process(png_bytes, "card.png")
