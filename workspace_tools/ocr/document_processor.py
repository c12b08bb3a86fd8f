"""Unified card scan processing pipeline.

Combines PDF handling, image preprocessing and OCR into a single
processing interface for image and PDF uploads.
"""

import io
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

import numpy as np
from PIL import Image

from workspace_tools.preprocessing.pipeline import PreprocessingPipeline, QualityMetrics
from workspace_tools.utils.config import AppConfig
from workspace_tools.utils.logger import get_logger

from .pdf_handler import PDFHandler
from .tesseract_engine import OCRResult, OCRWord, TesseractEngine

logger = get_logger(__name__)

ProgressCallback = Callable[[int], None]


@dataclass
class PageResult:
    """OCR results for a single page of a scan."""

    page_number: int
    ocr_result: OCRResult
    quality_metrics: QualityMetrics | None
    used_original: bool = False


@dataclass
class DocumentResult:
    """Complete processing results for a scan."""

    source_file: str
    page_count: int
    pages: list[PageResult]
    combined_text: str

    @property
    def confidence(self) -> float:
        """Mean OCR confidence over all pages, on a 0-1 scale."""
        if not self.pages:
            return 0.0
        return sum(p.ocr_result.confidence for p in self.pages) / len(self.pages)

    @property
    def words(self) -> list[OCRWord]:
        """OCR words of every page, in page order."""
        return [word for page in self.pages for word in page.ocr_result.words]


class DocumentProcessor:
    """End-to-end scan processing pipeline.

    Loads images or PDFs, preprocesses each page and runs OCR. A page
    whose preprocessing fails is read as-is; a page whose OCR fails on
    the preprocessed image is retried once on the original.

    Args:
        config: Application configuration object.
    """

    def __init__(self, config: AppConfig) -> None:
        self.config = config
        self.pdf_handler = PDFHandler(
            dpi=config.ocr.pdf_dpi, max_pages=config.ocr.max_pdf_pages
        )
        self.preprocessing = PreprocessingPipeline(config.preprocessing)
        self.ocr_engine = TesseractEngine(
            tesseract_cmd=config.ocr.tesseract_cmd,
            default_lang=config.ocr.default_lang,
            oem=config.ocr.oem,
            char_whitelist=config.ocr.char_whitelist,
            preserve_interword_spaces=config.ocr.preserve_interword_spaces,
        )

    def process(
        self,
        source: Path | bytes,
        filename: str = "document",
        on_progress: ProgressCallback | None = None,
    ) -> DocumentResult:
        """Process a scan from file path or bytes.

        Args:
            source: Path to an image or PDF file, or raw file bytes.
            filename: Display name for the source document.
            on_progress: Optional callback receiving a 0-100 percentage.

        Returns:
            Complete document processing results.

        Raises:
            ValueError: If the source is empty.
        """
        logger.info("Processing document: %s", filename)
        if isinstance(source, bytes) and not source:
            raise ValueError("Invalid or empty file")

        images = self._load_images(source)
        if not images:
            raise ValueError("Invalid or empty file")

        pages: list[PageResult] = []
        for i, image in enumerate(images):
            if on_progress:
                on_progress(20)
            pages.append(self._process_page(i + 1, image, on_progress))

        combined_text = "\n\n".join(p.ocr_result.text for p in pages)

        if on_progress:
            on_progress(100)

        logger.info("Processed %d page(s) from %s", len(pages), filename)
        return DocumentResult(
            source_file=filename,
            page_count=len(pages),
            pages=pages,
            combined_text=combined_text,
        )

    def _process_page(
        self,
        page_number: int,
        image: np.ndarray,
        on_progress: ProgressCallback | None,
    ) -> PageResult:
        """Preprocess and OCR one page, falling back to the original image."""
        metrics: QualityMetrics | None = None
        try:
            processed, metrics = self.preprocessing.process(image)
        except Exception as exc:
            logger.warning(
                "Image preprocessing failed on page %d, using original: %s",
                page_number,
                exc,
            )
            processed = image

        if on_progress:
            on_progress(30)

        try:
            ocr_result = self.ocr_engine.extract_text(processed, psm=self.config.ocr.psm)
            used_original = processed is image
        except Exception as exc:
            if processed is image:
                raise
            logger.warning(
                "OCR failed on preprocessed page %d, retrying with original: %s",
                page_number,
                exc,
            )
            ocr_result = self.ocr_engine.extract_text(image, psm=self.config.ocr.psm)
            used_original = True

        return PageResult(
            page_number=page_number,
            ocr_result=ocr_result,
            quality_metrics=metrics,
            used_original=used_original,
        )

    def _load_images(self, source: Path | bytes) -> list[np.ndarray]:
        """Load scan images from a file path or bytes.

        Args:
            source: Path or raw bytes of the scan.

        Returns:
            List of RGB images as numpy arrays.
        """
        if isinstance(source, bytes):
            if source[:4] == b"%PDF":
                return self.pdf_handler.pdf_to_images(source)
            img = Image.open(io.BytesIO(source))
            return [np.array(img.convert("RGB"))]

        path = Path(source)
        if path.suffix.lower() == ".pdf":
            return self.pdf_handler.pdf_to_images(path)

        with Image.open(path) as img:
            return [np.array(img.convert("RGB"))]
