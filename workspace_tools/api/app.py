"""FastAPI application for the Romanian ID card OCR API.

Provides REST endpoints for single and batch card extraction, the
extracted field catalogue and health checks.
"""

import shutil
import time
from typing import Annotated

from fastapi import FastAPI, File, HTTPException, UploadFile
from fastapi.middleware.cors import CORSMiddleware

from workspace_tools import __version__
from workspace_tools.models import FIELD_LABELS
from workspace_tools.service import (
    CardAnalysis,
    IDCardService,
    UnsupportedFileError,
    validate_upload,
)
from workspace_tools.utils.config import UploadConfig
from workspace_tools.utils.logger import get_logger

from .schemas import (
    BatchExtractionResponse,
    BatchItemResponse,
    ExtractionResponse,
    FieldInfo,
    FieldsResponse,
    HealthResponse,
    ValidationResultResponse,
)

logger = get_logger(__name__)

app = FastAPI(
    title="Romanian ID OCR API",
    description="Extract name, CNP, dates and address from Romanian identity cards",
    version=__version__,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

_FIELD_DESCRIPTIONS = {
    "name": "Surname followed by given names, title-cased",
    "cnp": "13-digit personal numeric code",
    "date_of_birth": "Printed date of birth or the one encoded in the CNP",
    "emission_date": "Issue date as printed on the card",
    "expiration_date": "Expiry date as printed on the card",
    "address": "Domicile address",
    "place_of_issue": "Issuing authority",
}


def _get_components() -> IDCardService:
    """Initialize and return the shared processing service."""
    return IDCardService()


def _require_service() -> IDCardService:
    """Return the shared service, answering 500 when it cannot be built."""
    try:
        return _get_components()
    except Exception as exc:
        logger.error("Service initialisation failed: %s", exc)
        raise HTTPException(status_code=500, detail=str(exc)) from exc


def _to_response(analysis: CardAnalysis, elapsed_ms: float) -> ExtractionResponse:
    """Build the API response for one processed scan."""
    record = analysis.record
    validation = analysis.validation
    return ExtractionResponse(
        id=record.id,
        file_name=record.file_name,
        status=record.status.value,
        confidence=record.confidence,
        errors=record.errors,
        notes=record.notes,
        validation_passed=validation.all_valid if validation else None,
        validation=[
            ValidationResultResponse(
                field_name=r.field_name,
                is_valid=r.is_valid,
                message=r.message,
                rule_name=r.rule_name,
            )
            for r in (validation.results if validation else [])
        ],
        field_confidences=analysis.field_confidences,
        raw_text=analysis.raw_text,
        page_count=analysis.page_count,
        processing_time_ms=elapsed_ms,
        **record.field_values(),
    )


def _check_upload(file: UploadFile, content: bytes, config: UploadConfig) -> None:
    """Translate upload rejections into HTTP errors."""
    try:
        validate_upload(
            file.filename or "document", file.content_type, len(content), config
        )
    except UnsupportedFileError as exc:
        raise HTTPException(
            status_code=413 if exc.too_large else 400, detail=str(exc)
        ) from exc


@app.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Return system health status."""
    return HealthResponse(
        status="healthy",
        version=__version__,
        tesseract_available=shutil.which("tesseract") is not None,
    )


@app.post("/extract", response_model=ExtractionResponse)
async def extract_document(
    file: Annotated[UploadFile, File(...)],
) -> ExtractionResponse:
    """Extract the card fields from one uploaded scan.

    Args:
        file: Uploaded JPEG, PNG or PDF scan.

    Returns:
        Extracted fields with status, confidence and validation results.
    """
    start_time = time.time()
    service = _require_service()
    content = await file.read()
    _check_upload(file, content, service.config.upload)

    try:
        analysis = service.analyze(content, file.filename or "document")
    except Exception as exc:
        logger.error("Extraction failed: %s", exc)
        raise HTTPException(status_code=500, detail=str(exc)) from exc

    return _to_response(analysis, (time.time() - start_time) * 1000)


@app.post("/extract/batch", response_model=BatchExtractionResponse)
async def extract_batch(
    files: Annotated[list[UploadFile], File(...)],
) -> BatchExtractionResponse:
    """Extract the card fields from several uploaded scans.

    At most ``max_batch_files`` scans are accepted per request. Rejected
    uploads are reported per file; accepted ones are processed by a
    small worker pool. Results keep the upload order.

    Args:
        files: List of uploaded scans.

    Returns:
        Batch extraction results with per-file outcomes.
    """
    start_time = time.time()
    service = _require_service()
    max_files = service.config.upload.max_batch_files
    if len(files) > max_files:
        raise HTTPException(
            status_code=400,
            detail=f"Too many files. Maximum is {max_files} files per batch.",
        )

    results: list[BatchItemResponse | None] = []
    accepted: list[tuple[int, bytes, str]] = []

    for index, file in enumerate(files):
        filename = file.filename or "unknown"
        content = await file.read()
        try:
            _check_upload(file, content, service.config.upload)
        except HTTPException as exc:
            results.append(BatchItemResponse(filename=filename, error=exc.detail))
            continue
        results.append(None)
        accepted.append((index, content, filename))

    if accepted:
        try:
            analyses = service.analyze_batch(
                (content, filename) for _, content, filename in accepted
            )
        except Exception as exc:
            logger.error("Batch extraction failed: %s", exc)
            raise HTTPException(status_code=500, detail=str(exc)) from exc

        elapsed_ms = (time.time() - start_time) * 1000
        for (index, _, filename), analysis in zip(accepted, analyses):
            results[index] = BatchItemResponse(
                filename=filename, result=_to_response(analysis, elapsed_ms)
            )

    items = [item for item in results if item is not None]
    successful = sum(
        1 for item in items if item.result and item.result.status == "completed"
    )
    return BatchExtractionResponse(
        success=successful > 0,
        total_documents=len(files),
        successful=successful,
        failed=len(files) - successful,
        results=items,
    )


@app.get("/fields", response_model=FieldsResponse)
async def list_fields() -> FieldsResponse:
    """List the fields extracted from a Romanian ID card."""
    return FieldsResponse(
        document_type="romanian_id",
        fields=[
            FieldInfo(name=name, label=label, description=_FIELD_DESCRIPTIONS[name])
            for name, label in FIELD_LABELS.items()
        ],
    )
