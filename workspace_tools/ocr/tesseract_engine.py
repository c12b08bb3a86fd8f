"""Tesseract OCR engine wrapper tuned for Romanian ID cards.

Provides OCR text extraction with word-level confidence scores,
restricted to the characters printed on the card.
"""

import shlex
from dataclasses import dataclass

import numpy as np
import pytesseract
from PIL import Image

from workspace_tools.utils.config import ROMANIAN_CHAR_WHITELIST
from workspace_tools.utils.logger import get_logger

logger = get_logger(__name__)

SPARSE_TEXT_PSM = 11
LSTM_COMBINED_OEM = 2


@dataclass
class OCRWord:
    """A single word recognised by OCR with its confidence (0-1)."""

    text: str
    confidence: float


@dataclass
class OCRResult:
    """Complete OCR result for one image."""

    text: str
    words: list[OCRWord]
    language: str
    confidence: float


class TesseractEngine:
    """Wrapper around Tesseract OCR for card text extraction.

    Args:
        tesseract_cmd: Path to the Tesseract executable.
            If ``None``, uses the system default.
        default_lang: Default OCR language code.
        oem: Tesseract OCR engine mode.
        char_whitelist: Characters Tesseract may emit. Empty disables
            the whitelist.
        preserve_interword_spaces: Keep runs of spaces between words.
    """

    def __init__(
        self,
        tesseract_cmd: str | None = None,
        default_lang: str = "ron",
        oem: int = LSTM_COMBINED_OEM,
        char_whitelist: str = ROMANIAN_CHAR_WHITELIST,
        preserve_interword_spaces: bool = True,
    ) -> None:
        if tesseract_cmd:
            pytesseract.pytesseract.tesseract_cmd = tesseract_cmd
        self.default_lang = default_lang
        self.oem = oem
        self.char_whitelist = char_whitelist
        self.preserve_interword_spaces = preserve_interword_spaces

    def build_config(self, psm: int = SPARSE_TEXT_PSM) -> str:
        """Build the Tesseract command-line configuration string.

        Args:
            psm: Tesseract page segmentation mode.

        Returns:
            Config string accepted by pytesseract.
        """
        parts = [f"--psm {psm}", f"--oem {self.oem}"]
        if self.char_whitelist:
            parts.append(
                "-c " + shlex.quote(f"tessedit_char_whitelist={self.char_whitelist}")
            )
        if self.preserve_interword_spaces:
            parts.append("-c preserve_interword_spaces=1")
        return " ".join(parts)

    def extract_text(
        self,
        image: np.ndarray,
        lang: str | None = None,
        psm: int = SPARSE_TEXT_PSM,
    ) -> OCRResult:
        """Extract text from an image with word-level confidences.

        Args:
            image: Input image as a numpy array.
            lang: OCR language code. Defaults to the engine default.
            psm: Tesseract page segmentation mode.

        Returns:
            OCRResult containing full text, word details, and confidence
            on a 0-1 scale.
        """
        lang = lang or self.default_lang
        config = self.build_config(psm)

        pil_image = Image.fromarray(image)
        text = pytesseract.image_to_string(pil_image, lang=lang, config=config)

        data = pytesseract.image_to_data(
            pil_image,
            lang=lang,
            config=config,
            output_type=pytesseract.Output.DICT,
        )

        words: list[OCRWord] = []
        total_conf = 0.0

        for i in range(len(data["text"])):
            conf = float(data["conf"][i])
            word_text = data["text"][i].strip()

            if conf > 0 and word_text:
                words.append(OCRWord(text=word_text, confidence=conf / 100.0))
                total_conf += conf

        avg_conf = (total_conf / len(words) / 100.0) if words else 0.0

        logger.info(
            "OCR extracted %d words with average confidence %.2f",
            len(words),
            avg_conf,
        )
        return OCRResult(
            text=text,
            words=words,
            language=lang,
            confidence=avg_conf,
        )
