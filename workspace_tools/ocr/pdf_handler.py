"""PDF to image conversion for scanned ID card documents.

A scanned card is one or two pages (front and back), so only the
leading pages of a PDF are rendered.
"""

from pathlib import Path

import numpy as np
from pdf2image import convert_from_bytes, convert_from_path

from workspace_tools.utils.logger import get_logger

logger = get_logger(__name__)


class PDFHandler:
    """Renders the leading PDF pages to RGB images for OCR.

    Args:
        dpi: Resolution for PDF rendering. Higher values produce
            better OCR results but use more memory.
        max_pages: Number of leading pages to render.
    """

    def __init__(self, dpi: int = 300, max_pages: int = 2) -> None:
        self.dpi = dpi
        self.max_pages = max_pages

    def pdf_to_images(self, pdf_source: Path | bytes) -> list[np.ndarray]:
        """Render a card PDF to images.

        Args:
            pdf_source: Path to a PDF file or raw PDF bytes.

        Returns:
            List of page images as RGB numpy arrays.

        Raises:
            FileNotFoundError: If a path is given and the file does not exist.
            RuntimeError: If PDF conversion fails.
        """
        page_range = {"dpi": self.dpi, "first_page": 1, "last_page": self.max_pages}
        try:
            if isinstance(pdf_source, str | Path):
                path = Path(pdf_source)
                if not path.exists():
                    raise FileNotFoundError(f"PDF file not found: {path}")
                pil_images = convert_from_path(str(path), **page_range)
            else:
                pil_images = convert_from_bytes(pdf_source, **page_range)
        except FileNotFoundError:
            raise
        except Exception as exc:
            raise RuntimeError(f"PDF conversion failed: {exc}") from exc

        images = [np.array(img.convert("RGB")) for img in pil_images]
        logger.info("Rendered %d PDF page(s) at %d DPI", len(images), self.dpi)
        return images
