"""Normalisation helpers for raw Tesseract output of Romanian ID cards."""

import re

_CHAR_FIXES: list[tuple[str, str]] = [
    (r"[àáâãäå]", "ă"),
    (r"[ÀÁÂÃÄÅ]", "Ă"),
    (r"[èéêë]", "ê"),
    (r"[ÈÉÊË]", "Ê"),
    (r"[ìíîï]", "î"),
    (r"[ÌÍÎÏ]", "Î"),
    (r"ß", "ș"),
    # digits and pipes read inside words
    (r"\|", "l"),
    (r"0", "O"),
    (r"5", "S"),
    (r"1", "l"),
]

_DIGIT_LOOKALIKES = str.maketrans({"O": "0", "l": "1", "I": "1", "S": "5", "B": "8", "Z": "2"})


def clean_ocr_text(text: str) -> str:
    """Fix common OCR misreads and flatten the text to a single line.

    Accented Latin letters Tesseract substitutes for Romanian ones are
    mapped back, digit look-alikes inside words are turned into letters
    and every whitespace run becomes one space.

    Args:
        text: Raw OCR output.

    Returns:
        Cleaned single-line text.
    """
    for pattern, replacement in _CHAR_FIXES:
        text = re.sub(pattern, replacement, text)
    return re.sub(r"\s+", " ", text).strip()


def normalize_digits(text: str) -> str:
    """Map letter look-alikes back to digits for numeric fields."""
    return text.translate(_DIGIT_LOOKALIKES)


def capitalize_name(name: str) -> str:
    """Title-case a name word by word (``POPESCU ION`` -> ``Popescu Ion``)."""
    return " ".join(word[:1].upper() + word[1:] for word in name.lower().split(" "))


def normalize_date(date: str) -> str:
    """Use dots as the date separator (``01/02/1990`` -> ``01.02.1990``)."""
    return re.sub(r"[/-]", ".", date)


def clean_address(address: str) -> str:
    """Collapse whitespace and repeated commas in an address."""
    address = re.sub(r"\s+", " ", address)
    address = re.sub(r",{2,}", ",", address)
    return address.strip()
