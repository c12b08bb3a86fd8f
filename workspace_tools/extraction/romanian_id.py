"""Rule-based field extraction for Romanian identity cards.

Reads the holder's name, CNP, date of birth, validity dates, address
and issuing authority from Tesseract output using label-anchored
regular expressions, the machine readable zone (``IDROU...``) and
positional fallbacks. Extraction is best effort: a field that cannot
be read stays empty and an explanatory message is recorded.
"""

import math
import re

from workspace_tools.models import ExtractedData, ProcessingStatus
from workspace_tools.utils.config import ExtractionConfig
from workspace_tools.utils.logger import get_logger

from .text_cleanup import (
    capitalize_name,
    clean_address,
    clean_ocr_text,
    normalize_date,
    normalize_digits,
)

logger = get_logger(__name__)

STOP_WORDS: tuple[str, ...] = (
    "NAT", "NATIONALITATE", "NAȚIONALITATE", "CETĂȚENIE", "ROMÂNĂ", "ROMANA",
    "ROU", "SEX", "SEXUL", "SERIA", "NR", "NR.", "DATA", "ELIBERAT", "VALABIL",
    "PÂNĂ", "PANA", "LOC", "JUDET", "JUDEȚ", "JUDETUL", "JUDEȚUL", "DOMICILIU",
    "ADRESA", "ADRESĂ", "CNP", "COD", "EMITENT", "ISSUED", "BY", "BORN", "DATE",
    "OF", "BIRTH", "EXPIRARE", "EXP", "ID", "CARD", "CARTE", "IDENTITATE",
    "IDENTITY", "DOCUMENT", "DOC", "DOC.",
)  # fmt: skip

# Words of the trilingual field labels printed next to the name fields.
LABEL_WORDS: tuple[str, ...] = (
    "Nume", "Nom", "Last", "name", "Prenume", "Prenom", "First", "Cetățenie",
    "Nationalite", "Nationality", "Sex", "Sexe", "Loc", "nastere", "Lieu", "de",
    "naissance", "Place", "of", "birth",
)  # fmt: skip

BIRTH_LABELS: tuple[str, ...] = (
    "Loc nastere",
    "nastere",
    "născut",
    "Born",
    "Date of birth",
    "Data nasterii",
    "Data nașterii",
)

_STOP_WORD_SET = frozenset(w.lower() for w in STOP_WORDS)
_LABEL_WORDS_LOWER = tuple(w.lower() for w in LABEL_WORDS)
_STOP_WORD_RE = re.compile(
    r"\b(" + "|".join(re.escape(w) for w in STOP_WORDS) + r")\b", re.IGNORECASE
)

_NAME_TOKEN_RE = re.compile(r"^[A-ZĂÂÎȘȚ][A-ZĂÂÎȘȚa-zăâîșț-]+$")
_CAPITALIZED_WORD_RE = re.compile(r"^[A-ZĂÂÎȘȚ][A-ZĂÂÎȘȚa-zăâîșț-]*$")
_MRZ_NAME_RE = re.compile(r"IDROU([A-Z<]+)<<([A-Z<]+)")
_MRZ_LOOSE_RE = re.compile(r"IDROU([A-ZĂÂÎȘȚ-]{6,40})")
_MRZ_SPLIT_RE = re.compile(r"[A-ZĂÂÎȘȚ-]{2,}[A-Z][a-zăâîșț-]")

_CNP_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"CNP[:\s]*([1-8]\d{12})", re.IGNORECASE),
    re.compile(r"([1-8]\d{12})"),
)

_FULL_YEAR_DATE = r"\d{1,2}[./-]\d{1,2}[./-]\d{4}"
_ANY_YEAR_DATE = r"\d{1,2}[./-]\d{1,2}[./-]\d{2,4}"
_FIRST_FULL_DATE_RE = re.compile(rf"\b({_FULL_YEAR_DATE})\b")
_DATE_RANGE_RE = re.compile(rf"({_ANY_YEAR_DATE})[\s\-–—]+({_ANY_YEAR_DATE})")
_ANY_DATE_RE = re.compile(_ANY_YEAR_DATE)

_ADDRESS_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"(?:Domiciliul|Adresa)[:\s]*([^\n\r]+)", re.IGNORECASE),
    re.compile(r"(?:Str\.|Street)[:\s]*([^\n\r]+)", re.IGNORECASE),
    re.compile(r"(?:Municipiul|Orașul)[:\s]*([^\n\r]+)", re.IGNORECASE),
)
# house, floor and apartment numbers the cleanup turned into letters
_HOUSE_NUMBER_RE = re.compile(r"(?i:\b(nr|et|ap))\.(\s*)([0-9lIOS]{1,4})\b")
_APARTMENT_RE = re.compile(r"ap\.\s*\d+", re.IGNORECASE)
_ADDRESS_END_RE = re.compile(
    r"\s(?:Emis[ăa]|Eliberat|Issued|Delivr[ée]e|Valabil|Validit|IDROU)", re.IGNORECASE
)

_PLACE_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"(?:Eliberat de|Issued by)[:\s]*([^\n\r]+)", re.IGNORECASE),
    re.compile(
        r"(?:SPCLEP|SPCEP|S\.P\.C\.L\.E\.P\.|S\.P\.C\.E\.P\.)[:\s]*([^\n\r]+)",
        re.IGNORECASE,
    ),
    re.compile(r"(?:Primăria|PRIMARIA)[:\s]*([^\n\r]+)", re.IGNORECASE),
)
_PLACE_END_RE = re.compile(r"\s(?:Valabil|Validit|IDROU)", re.IGNORECASE)

# First CNP digit -> century of birth. 7-9 are foreign residents.
_CENTURY_BY_SEX_DIGIT = {
    "1": 1900, "2": 1900,
    "3": 1800, "4": 1800,
    "5": 2000, "6": 2000,
    "7": 2000, "8": 2000, "9": 2000,
}  # fmt: skip


def is_valid_cnp(cnp: str) -> bool:
    """Check the shape of a CNP: 13 ASCII digits, first digit 1-8."""
    return bool(re.fullmatch(r"[0-9]{13}", cnp)) and "1" <= cnp[0] <= "8"


def birth_date_from_cnp(cnp: str) -> str | None:
    """Decode the ``S YY MM DD`` prefix of a CNP into ``DD.MM.YYYY``.

    Returns:
        The date of birth, or ``None`` when the prefix is not a
        plausible date.
    """
    if len(cnp) != 13 or not cnp[:7].isdigit():
        return None
    century = _CENTURY_BY_SEX_DIGIT.get(cnp[0])
    if century is None:
        return None

    year = century + int(cnp[1:3])
    month = int(cnp[3:5])
    day = int(cnp[5:7])
    if year > 1800 and 1 <= month <= 12 and 1 <= day <= 31:
        return f"{cnp[5:7]}.{cnp[3:5]}.{year}"
    return None


def _name_after_label(line: str, label: str, max_words: int) -> str:
    """Collect up to ``max_words`` capitalised words following ``label``.

    Tokens that belong to the printed labels, stop words, tokens with
    digits and single characters are skipped until the first name word
    is found; after that they end the name.
    """
    found = False
    name_words: list[str] = []
    label = label.lower()

    for token in line.split():
        if not found:
            if label in token.lower():
                found = True
            continue

        lower = token.lower()
        if (
            any(lw in lower for lw in _LABEL_WORDS_LOWER)
            or len(token) < 2
            or re.search(r"\d", token)
            or lower in _STOP_WORD_SET
        ):
            if name_words:
                break
            continue

        if _NAME_TOKEN_RE.match(token):
            name_words.append(token)
            if len(name_words) == max_words:
                break
        elif name_words:
            break

    return " ".join(name_words)


def _clean_name_tokens(name: str) -> str:
    """Drop stop words, immediate repeats and single characters."""
    tokens = name.split()
    kept = [
        token
        for i, token in enumerate(tokens)
        if token.lower() not in _STOP_WORD_SET
        and (i == 0 or token != tokens[i - 1])
        and len(token) > 1
    ]
    return " ".join(kept)


def _cut_at_next_label(value: str, end_re: re.Pattern[str]) -> str:
    """Truncate ``value`` where the next printed card label starts."""
    match = end_re.search(value)
    return value[: match.start()].strip() if match else value


class RomanianIDExtractor:
    """Extracts the printed fields of a Romanian ID card from OCR text.

    Args:
        config: Thresholds deciding when a record is flagged as an error.
    """

    def __init__(self, config: ExtractionConfig | None = None) -> None:
        self.config = config or ExtractionConfig()

    def extract(self, file_name: str, text: str, confidence: float) -> ExtractedData:
        """Build an extraction record from raw OCR output.

        Args:
            file_name: Name of the scanned file.
            text: Raw Tesseract text.
            confidence: OCR confidence as a percentage (0-100).

        Returns:
            Record with every field that could be read. Its status is
            ``error`` when the errors and extraction notes together
            exceed ``max_errors`` or the OCR confidence is below the
            configured minimum.
        """
        cleaned = clean_ocr_text(text)
        normalized = normalize_digits(cleaned)
        logger.debug("Cleaned OCR text for %s: %s", file_name, cleaned)

        data = ExtractedData(
            file_name=file_name,
            confidence=int(math.floor(confidence + 0.5)),
        )

        name, method = self._extract_name(cleaned)
        if name:
            data.name = capitalize_name(name)
            data.notes.append(f"Name extraction: {method}")
        else:
            data.errors.append("Name not found or illegible")
            data.notes.append("Name extraction: failed")

        data.cnp = self._extract_cnp(cleaned, normalized)
        if not data.cnp:
            data.errors.append("CNP not found or invalid")

        dob, from_cnp = self._extract_birth_date(normalized, data.cnp)
        if dob:
            data.date_of_birth = normalize_date(dob)
            if from_cnp:
                data.notes.append("Date of birth extracted from CNP")
        else:
            data.errors.append("Date of birth not found")

        validity = self._extract_validity(normalized)
        if validity:
            data.emission_date, data.expiration_date = validity
        else:
            data.errors.append("Emission/Expiration dates not found")

        data.address = self._extract_address(cleaned)
        if not data.address:
            data.errors.append("Address not found or incomplete")

        data.place_of_issue = self._extract_place_of_issue(cleaned)
        if not data.place_of_issue:
            data.errors.append("Place of issue not found")

        if (
            len(data.errors) + len(data.notes) > self.config.max_errors
            or confidence < self.config.min_confidence
        ):
            data.status = ProcessingStatus.ERROR

        logger.info(
            "Extracted %s: status=%s, confidence=%d, %d error(s)",
            file_name,
            data.status,
            data.confidence,
            len(data.errors),
        )
        return data

    def _extract_name(self, cleaned: str) -> tuple[str, str]:
        """Find the holder's name and the method that produced it.

        Returns:
            ``(name, method)``; ``name`` is empty when nothing was found.
        """
        last_name = ""
        first_name = ""
        for line in cleaned.splitlines():
            if not last_name and re.search(r"Nume|Nom|Last\s*name", line, re.IGNORECASE):
                last_name = (
                    _name_after_label(line, "Nume", 2)
                    or _name_after_label(line, "Nom", 2)
                    or _name_after_label(line, "Last name", 2)
                )
            if not first_name and re.search(
                r"Prenume|Prenom|First\s*name", line, re.IGNORECASE
            ):
                first_name = (
                    _name_after_label(line, "Prenume", 3)
                    or _name_after_label(line, "Prenom", 3)
                    or _name_after_label(line, "First name", 3)
                )

        method = "label-based"
        if not (last_name and first_name):
            mrz = _MRZ_NAME_RE.search(cleaned)
            if mrz:
                last_name = mrz.group(1).replace("<", " ").strip()
                first_name = mrz.group(2).replace("<", " ").strip()
                method = "MRZ"

        last_name = _clean_name_tokens(last_name)
        if first_name:
            tokens: list[str] = []
            for token in first_name.split():
                if token.lower() in _STOP_WORD_SET:
                    break
                tokens.append(token)
            first_name = _clean_name_tokens(" ".join(tokens))

        if last_name and first_name:
            if first_name in last_name or last_name in first_name:
                return last_name, method
            return f"{last_name} {first_name}", method

        name = self._name_from_loose_mrz(cleaned)
        if name:
            return name, "MRZ fallback"

        words: list[str] = []
        for word in cleaned.split():
            if _STOP_WORD_RE.search(word):
                break
            if _CAPITALIZED_WORD_RE.match(word):
                words.append(word)
                if len(words) == 4:
                    break
            elif words:
                break
        if len(words) >= 2:
            return _clean_name_tokens(" ".join(words)), "fallback"

        if last_name or first_name:
            partial = " ".join(part for part in (last_name, first_name) if part)
            return _clean_name_tokens(partial), "partial"
        return "", "failed"

    def _name_from_loose_mrz(self, cleaned: str) -> str:
        """Split an ``IDROU`` block without ``<<`` into surname and given names."""
        match = _MRZ_LOOSE_RE.search(cleaned)
        if not match:
            return ""

        block = match.group(1)
        split = _MRZ_SPLIT_RE.search(block)
        cut = split.start() if split and split.start() > 0 else 6
        last, first = block[:cut], block[cut:]
        first = re.sub(r"([A-ZĂÂÎȘȚ]{2,})", r"-\1", first)
        first = re.sub(r"^-", "", first)
        return _clean_name_tokens(f"{last} {first}")

    def _extract_cnp(self, cleaned: str, normalized: str) -> str:
        """Find a structurally valid CNP, undoing digit/letter confusion."""
        for pattern in _CNP_PATTERNS:
            match = pattern.search(cleaned)
            if match:
                if is_valid_cnp(match.group(1)):
                    return match.group(1)
                candidate = normalize_digits(match.group(1))
                if is_valid_cnp(candidate):
                    return candidate

            match = pattern.search(normalized)
            if match and is_valid_cnp(match.group(1)):
                return match.group(1)
        return ""

    def _extract_birth_date(self, normalized: str, cnp: str) -> tuple[str, bool]:
        """Find the date of birth.

        A date printed after a birth label wins; otherwise the date
        encoded in the CNP, and last the first full-year date in the
        text. The CNP comes before the loose date because the only
        full-year date on most cards is the expiration date.

        Returns:
            ``(date, decoded_from_cnp)``; ``date`` is empty when none.
        """
        for label in BIRTH_LABELS:
            match = re.search(
                re.escape(label) + rf"\D{{0,20}}({_FULL_YEAR_DATE})",
                normalized,
                re.IGNORECASE,
            )
            if match:
                return match.group(1), False

        if cnp:
            decoded = birth_date_from_cnp(cnp)
            if decoded:
                return decoded, True

        match = _FIRST_FULL_DATE_RE.search(normalized)
        return (match.group(1) if match else ""), False

    def _extract_validity(self, normalized: str) -> tuple[str, str] | None:
        """Find the emission and expiration dates.

        The card prints them as a range (``12.03.15-21.09.2025``); when
        no range is found the first two dates in the text are used.
        """
        match = _DATE_RANGE_RE.search(normalized)
        if match:
            return normalize_date(match.group(1)), normalize_date(match.group(2))

        dates = _ANY_DATE_RE.findall(normalized)
        if len(dates) >= 2:
            return normalize_date(dates[0]), normalize_date(dates[1])
        return None

    def _extract_address(self, cleaned: str) -> str:
        """Find the domicile address.

        The flattened text runs on into the next card fields, so the
        value ends after the apartment number or at the next label.
        """
        for pattern in _ADDRESS_PATTERNS:
            match = pattern.search(cleaned)
            if not match or len(match.group(1).strip()) <= 5:
                continue

            address = _HOUSE_NUMBER_RE.sub(
                lambda m: f"{m.group(1)}.{m.group(2)}{normalize_digits(m.group(3))}",
                _cut_at_next_label(match.group(1).strip(), _ADDRESS_END_RE),
            )
            apartment = _APARTMENT_RE.search(address)
            if apartment:
                address = address[: apartment.end()]
            return clean_address(address)
        return ""

    def _extract_place_of_issue(self, cleaned: str) -> str:
        """Find the issuing authority."""
        for pattern in _PLACE_PATTERNS:
            match = pattern.search(cleaned)
            if match and len(match.group(1).strip()) > 2:
                return _cut_at_next_label(match.group(1).strip(), _PLACE_END_RE)
        return ""
