"""ID card scan processing service.

Ties upload checks, OCR, field extraction and validation together.
Used by both the REST API and the CLI.
"""

import mimetypes
import re
from collections.abc import Iterable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path

from workspace_tools.extraction.romanian_id import RomanianIDExtractor
from workspace_tools.models import ExtractedData
from workspace_tools.ocr.document_processor import DocumentProcessor, ProgressCallback
from workspace_tools.ocr.tesseract_engine import OCRWord
from workspace_tools.utils.config import AppConfig, UploadConfig, load_config
from workspace_tools.utils.logger import get_logger
from workspace_tools.validation.rules_engine import RulesEngine, ValidationReport

logger = get_logger(__name__)

BatchItem = tuple[Path | bytes, str]


class UnsupportedFileError(ValueError):
    """Raised when an upload is not an accepted scan.

    Args:
        message: Human readable reason.
        too_large: Whether the file was rejected for its size.
    """

    def __init__(self, message: str, too_large: bool = False) -> None:
        super().__init__(message)
        self.too_large = too_large


def guess_content_type(filename: str) -> str:
    """Guess a MIME type from a file name, ``application/octet-stream`` if unknown."""
    content_type, _ = mimetypes.guess_type(filename)
    return content_type or "application/octet-stream"


def validate_upload(
    filename: str,
    content_type: str | None,
    size: int,
    config: UploadConfig | None = None,
) -> None:
    """Reject files that are not JPEG, PNG or PDF scans or are too large.

    Args:
        filename: Name of the uploaded file.
        content_type: Declared MIME type; guessed from the name when
            missing or generic.
        size: File size in bytes.
        config: Upload limits.

    Raises:
        UnsupportedFileError: If the type or size is not accepted.
    """
    config = config or UploadConfig()
    if not content_type or content_type == "application/octet-stream":
        content_type = guess_content_type(filename)

    if content_type not in config.allowed_content_types:
        raise UnsupportedFileError(
            f"Unsupported file type: {content_type}. Please upload JPG, PNG, or PDF files."
        )

    max_bytes = config.max_file_size_mb * 1024 * 1024
    if size > max_bytes:
        raise UnsupportedFileError(
            f"File {filename} is too large. Maximum size is {config.max_file_size_mb}MB.",
            too_large=True,
        )


def _word_key(text: str) -> str:
    return re.sub(r"\W", "", text).lower()


def estimate_field_confidences(
    values: dict[str, str], words: Iterable[OCRWord], default: float
) -> dict[str, float]:
    """Score each extracted field from the OCR words it was read from.

    A field scores the mean confidence of the OCR words matching one of
    its tokens. Fields no word matches, such as a date of birth decoded
    from the CNP, get ``default``; empty fields score 0.

    Args:
        values: Extracted field values keyed by field name.
        words: Recognised words with their 0-1 confidences.
        default: Score for fields without a matching word.

    Returns:
        Confidence per field on a 0-1 scale.
    """
    by_key: dict[str, list[float]] = {}
    for word in words:
        key = _word_key(word.text)
        if key:
            by_key.setdefault(key, []).append(word.confidence)

    scores: dict[str, float] = {}
    for name, value in values.items():
        if not value:
            scores[name] = 0.0
            continue
        matched = [
            conf for token in value.split() for conf in by_key.get(_word_key(token), [])
        ]
        scores[name] = round(sum(matched) / len(matched), 3) if matched else default
    return scores


@dataclass
class CardAnalysis:
    """Extraction record together with the data behind it."""

    record: ExtractedData
    validation: ValidationReport | None = None
    raw_text: str = ""
    page_count: int = 0

    @property
    def field_confidences(self) -> dict[str, float]:
        """Per-field confidences after validation, empty when processing failed."""
        return self.validation.field_confidences if self.validation else {}

    @property
    def overall_confidence(self) -> float | None:
        """Mean of the per-field confidences, ``None`` when there are none."""
        scores = self.field_confidences
        return round(sum(scores.values()) / len(scores), 3) if scores else None


class IDCardService:
    """Runs ID card scans through OCR, extraction and validation.

    Args:
        config: Application configuration; loaded from disk when omitted.
        processor: Scan processor, created from ``config`` when omitted.
        extractor: Field extractor, created from ``config`` when omitted.
        rules_engine: Validation engine, created from ``config`` when omitted.
    """

    def __init__(
        self,
        config: AppConfig | None = None,
        processor: DocumentProcessor | None = None,
        extractor: RomanianIDExtractor | None = None,
        rules_engine: RulesEngine | None = None,
    ) -> None:
        self.config = config or load_config()
        self.processor = processor or DocumentProcessor(self.config)
        self.extractor = extractor or RomanianIDExtractor(self.config.extraction)
        self.rules_engine = rules_engine or RulesEngine(
            Path(self.config.validation.rules_path)
        )

    def analyze(
        self,
        source: Path | bytes,
        filename: str,
        on_progress: ProgressCallback | None = None,
    ) -> CardAnalysis:
        """Process one scan and validate the extracted fields.

        Failures never propagate: they produce an error record whose
        only message is ``Processing failed: <reason>``.

        Args:
            source: Path or raw bytes of the scan.
            filename: Name recorded on the result.
            on_progress: Optional callback receiving a 0-100 percentage.

        Returns:
            The extraction record with its validation report.
        """
        try:
            document = self.processor.process(source, filename, on_progress)
            record = self.extractor.extract(
                filename, document.combined_text, document.confidence * 100
            )
            confidences = estimate_field_confidences(
                record.field_values(), document.words, document.confidence
            )
            validation = self.rules_engine.validate(
                record.field_values(), field_confidences=confidences
            )
        except Exception as exc:
            logger.error("Processing failed for %s: %s", filename, exc)
            return CardAnalysis(
                record=ExtractedData.failed(filename, f"Processing failed: {exc}")
            )

        return CardAnalysis(
            record=record,
            validation=validation,
            raw_text=document.combined_text,
            page_count=document.page_count,
        )

    def process(
        self,
        source: Path | bytes,
        filename: str,
        on_progress: ProgressCallback | None = None,
    ) -> ExtractedData:
        """Process one scan into an extraction record. Never raises."""
        return self.analyze(source, filename, on_progress).record

    def analyze_batch(self, items: Iterable[BatchItem]) -> list[CardAnalysis]:
        """Analyze several scans with a bounded worker pool.

        Args:
            items: ``(source, filename)`` pairs.

        Returns:
            One analysis per item, in input order.
        """
        items = list(items)
        if not items:
            return []

        workers = max(1, min(self.config.upload.batch_concurrency, len(items)))
        logger.info("Processing %d scan(s) with %d worker(s)", len(items), workers)
        with ThreadPoolExecutor(max_workers=workers) as pool:
            return list(pool.map(lambda item: self.analyze(*item), items))

    def process_batch(self, items: Iterable[BatchItem]) -> list[ExtractedData]:
        """Process several scans; records come back in input order."""
        return [analysis.record for analysis in self.analyze_batch(items)]
