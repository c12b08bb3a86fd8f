"""Pydantic request/response schemas for the FastAPI endpoints."""

from pydantic import BaseModel


class ValidationResultResponse(BaseModel):
    """Response schema for a validation check result."""

    field_name: str
    is_valid: bool
    message: str
    rule_name: str


class ExtractionResponse(BaseModel):
    """Fields read from one ID card scan."""

    id: str
    file_name: str
    name: str
    cnp: str
    address: str
    date_of_birth: str
    emission_date: str
    expiration_date: str
    place_of_issue: str
    status: str
    confidence: int
    errors: list[str]
    notes: list[str]
    validation_passed: bool | None = None
    validation: list[ValidationResultResponse] = []
    raw_text: str = ""
    page_count: int = 0
    field_confidences: dict[str, float] = {}
    processing_time_ms: float = 0.0


class BatchItemResponse(BaseModel):
    """Response schema for a single item in a batch extraction."""

    filename: str
    result: ExtractionResponse | None = None
    error: str | None = None


class BatchExtractionResponse(BaseModel):
    """Response schema for batch extraction of multiple scans."""

    success: bool
    total_documents: int
    successful: int
    failed: int
    results: list[BatchItemResponse]


class FieldInfo(BaseModel):
    """Description of one extracted ID card field."""

    name: str
    label: str
    description: str


class FieldsResponse(BaseModel):
    """Response schema listing the extracted fields."""

    document_type: str
    fields: list[FieldInfo]


class HealthResponse(BaseModel):
    """Response schema for the health check endpoint."""

    status: str
    version: str
    tesseract_available: bool
