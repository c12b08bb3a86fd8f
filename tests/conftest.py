"""Shared test fixtures for the workspace tools test suite."""

import io
from pathlib import Path

import numpy as np
import pytest
from PIL import Image

from workspace_tools.ocr.document_processor import DocumentResult, PageResult
from workspace_tools.ocr.tesseract_engine import OCRResult, OCRWord

# Tesseract output for the front of a card, line breaks as Tesseract emits them.
SAMPLE_CARD_TEXT = """ROMANIA ROUMANIE ROMANIA
CARTE DE IDENTITATE
SERIA CJ NR 123456
CNP 1900515123458
Nume/Nom/Last name
POPESCU
Prenume/Prenom/First name
ION ANDREI
Cetățenie/Nationalite/Nationality
Română / ROU
Loc nastere/Lieu de naissance/Place of birth
Mun.Cluj-Napoca jud.Cluj
Domiciliu/Adresse/Address
Mun.Cluj-Napoca Str.Atelierului nr.10 ap.5
Emisă de/Delivree par/Issued by
SPCLEP Cluj-Napoca
Valabilitate/Validite/Validity
12.03.15-21.09.2025
"""


@pytest.fixture
def sample_image() -> np.ndarray:
    """Create a simple synthetic grayscale test image."""
    image = np.zeros((200, 300), dtype=np.uint8)
    image[50:150, 50:250] = 255
    return image


@pytest.fixture
def sample_color_image() -> np.ndarray:
    """Create a simple synthetic RGB test image."""
    image = np.zeros((200, 300, 3), dtype=np.uint8)
    image[50:150, 50:250] = (255, 255, 255)
    return image


@pytest.fixture
def card_text() -> str:
    """Raw OCR text of a legible card."""
    return SAMPLE_CARD_TEXT


@pytest.fixture
def png_bytes() -> bytes:
    """A small PNG file."""
    buf = io.BytesIO()
    Image.fromarray(np.zeros((100, 200, 3), dtype=np.uint8)).save(buf, format="PNG")
    return buf.getvalue()


def make_document_result(
    text: str = SAMPLE_CARD_TEXT,
    confidence: float = 0.9,
    filename: str = "card.png",
    words: list[OCRWord] | None = None,
) -> DocumentResult:
    """Build a one-page processing result around the given OCR text."""
    ocr_result = OCRResult(
        text=text, words=words or [], language="ron", confidence=confidence
    )
    return DocumentResult(
        source_file=filename,
        page_count=1,
        pages=[PageResult(page_number=1, ocr_result=ocr_result, quality_metrics=None)],
        combined_text=text,
    )


@pytest.fixture
def make_document():
    """Factory building processing results from OCR text."""
    return make_document_result


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def config_dir(project_root: Path) -> Path:
    """Return the configs directory path."""
    return project_root / "configs"
