"""Configurable validation rules engine for extracted ID card fields.

Validates required fields, date formats and the CNP (structure and
control digit), with confidence adjustments and cross-field checks
between the CNP, the date of birth and the validity dates.
"""

import re
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any

import yaml

from workspace_tools.extraction.romanian_id import birth_date_from_cnp, is_valid_cnp
from workspace_tools.utils.logger import get_logger

logger = get_logger(__name__)


DATE_FORMATS: list[str] = [
    "%d.%m.%Y",
    "%d.%m.%y",
]

CNP_CONTROL_WEIGHTS = "279146358279"


@dataclass
class ValidationResult:
    """Result of a single field validation check."""

    field_name: str
    is_valid: bool
    message: str
    rule_name: str
    confidence_adjustment: float = 0.0


@dataclass
class ValidationReport:
    """Aggregated validation report for one card."""

    all_valid: bool
    results: list[ValidationResult]
    warnings: list[str] = field(default_factory=list)
    field_confidences: dict[str, float] = field(default_factory=dict)

    @property
    def failures(self) -> list[ValidationResult]:
        """Checks that did not pass."""
        return [r for r in self.results if not r.is_valid]


def cnp_control_digit(cnp: str) -> int:
    """Compute the control digit of a CNP from its first 12 digits.

    Each digit is multiplied by the constant ``279146358279``; the sum
    modulo 11 is the control digit, except that 10 becomes 1.
    """
    total = sum(int(d) * int(w) for d, w in zip(cnp[:12], CNP_CONTROL_WEIGHTS))
    remainder = total % 11
    return 1 if remainder == 10 else remainder


def _parse_date(value: str) -> datetime | None:
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(value, fmt)
        except ValueError:
            continue
    return None


class RulesEngine:
    """Configurable validation rules engine.

    Applies field-level and cross-field validation rules loaded from
    a YAML configuration file, with confidence score adjustments.

    Args:
        rules_path: Path to the validation rules YAML file.
    """

    def __init__(
        self, rules_path: Path = Path("configs/validation_rules.yaml")
    ) -> None:
        self.rules = self._load_rules(rules_path)
        self._validators: dict[str, Any] = {
            "date_format": self._validate_date,
            "required": self._validate_required,
            "regex": self._validate_regex,
            "cnp": self._validate_cnp,
            "cnp_checksum": self._validate_cnp_checksum,
        }

    def _load_rules(self, path: Path) -> dict:
        """Load validation rules from YAML file.

        Args:
            path: Path to the rules file.

        Returns:
            Dictionary of document-type-specific rules.
        """
        if path.exists():
            with open(path, encoding="utf-8") as f:
                data = yaml.safe_load(f)
                if data:
                    logger.info("Loaded validation rules from %s", path)
                    return data
        logger.debug("Using default validation rules")
        return self._default_rules()

    def _default_rules(self) -> dict:
        """Rules applied when no rules file is available."""
        return {
            "romanian_id": {
                "name": [{"type": "required"}],
                "cnp": [
                    {"type": "required"},
                    {"type": "cnp"},
                    {"type": "cnp_checksum"},
                ],
                "date_of_birth": [{"type": "date_format"}],
                "emission_date": [{"type": "date_format"}],
                "expiration_date": [{"type": "date_format"}],
                "address": [{"type": "required"}],
            },
        }

    @property
    def document_types(self) -> list[str]:
        """Document types with configured rules."""
        return sorted(self.rules)

    def validate(
        self,
        fields: dict[str, Any],
        document_type: str = "romanian_id",
        field_confidences: dict[str, float] | None = None,
    ) -> ValidationReport:
        """Validate extracted fields against document-type rules.

        Empty strings count as missing values.

        Args:
            fields: Extracted field name-value pairs.
            document_type: Type of document for rule selection.
            field_confidences: Initial confidence scores per field.

        Returns:
            Validation report with results and adjusted confidences.
        """
        results: list[ValidationResult] = []
        warnings: list[str] = []
        adjusted = dict(field_confidences or {})
        values = {k: (v if v != "" else None) for k, v in fields.items()}

        doc_rules = self.rules.get(document_type, {})
        if not doc_rules:
            warnings.append(f"No rules configured for {document_type}")

        for field_name, rules in doc_rules.items():
            value = values.get(field_name)

            for rule in rules:
                rule_type = rule.get("type")
                validator = self._validators.get(rule_type)

                if not validator:
                    warnings.append(f"Unknown rule type: {rule_type}")
                    continue

                result = validator(field_name, value, rule)
                results.append(result)

                if field_name in adjusted:
                    adjusted[field_name] += result.confidence_adjustment
                    adjusted[field_name] = max(0.0, min(1.0, adjusted[field_name]))

        results.extend(self._cross_validate(values))

        all_valid = all(r.is_valid for r in results)
        logger.info(
            "Validation for %s: %s (%d checks)",
            document_type,
            "PASSED" if all_valid else "FAILED",
            len(results),
        )

        return ValidationReport(
            all_valid=all_valid,
            results=results,
            warnings=warnings,
            field_confidences=adjusted,
        )

    def _validate_date(
        self, field_name: str, value: Any, rule: dict
    ) -> ValidationResult:
        """Check that a value is a real ``DD.MM.YYYY`` or ``DD.MM.YY`` date."""
        if value is None:
            return ValidationResult(
                field_name, True, "No value to validate", "date_format"
            )

        if _parse_date(str(value)):
            return ValidationResult(
                field_name, True, "Valid date format", "date_format", 0.1
            )
        return ValidationResult(
            field_name, False, f"Invalid date format: {value}", "date_format", -0.2
        )

    def _validate_required(
        self, field_name: str, value: Any, rule: dict
    ) -> ValidationResult:
        """Check if a required field is present and non-empty."""
        if value is not None and str(value).strip():
            return ValidationResult(
                field_name, True, "Required field present", "required", 0.0
            )
        return ValidationResult(
            field_name,
            False,
            f"Required field missing: {field_name}",
            "required",
            -0.5,
        )

    def _validate_regex(
        self, field_name: str, value: Any, rule: dict
    ) -> ValidationResult:
        """Validate a field value against a custom regex pattern."""
        if value is None:
            return ValidationResult(field_name, True, "No value to validate", "regex")

        pattern = rule.get("pattern", "")
        if re.match(pattern, str(value)):
            return ValidationResult(field_name, True, "Matches pattern", "regex", 0.05)
        return ValidationResult(
            field_name,
            False,
            f"Does not match pattern: {pattern}",
            "regex",
            -0.1,
        )

    def _validate_cnp(
        self, field_name: str, value: Any, rule: dict
    ) -> ValidationResult:
        """Check the CNP shape and that it encodes a plausible birth date."""
        if value is None:
            return ValidationResult(field_name, True, "No value to validate", "cnp")

        cnp = str(value)
        if not is_valid_cnp(cnp):
            return ValidationResult(
                field_name, False, f"Malformed CNP: {cnp}", "cnp", -0.3
            )
        if birth_date_from_cnp(cnp) is None:
            return ValidationResult(
                field_name, False, f"CNP encodes no valid birth date: {cnp}", "cnp", -0.2
            )
        return ValidationResult(field_name, True, "Well-formed CNP", "cnp", 0.1)

    def _validate_cnp_checksum(
        self, field_name: str, value: Any, rule: dict
    ) -> ValidationResult:
        """Verify the CNP control digit."""
        if value is None or not is_valid_cnp(str(value)):
            return ValidationResult(
                field_name, True, "No CNP to checksum", "cnp_checksum"
            )

        cnp = str(value)
        expected = cnp_control_digit(cnp)
        if int(cnp[12]) == expected:
            return ValidationResult(
                field_name, True, "CNP control digit matches", "cnp_checksum", 0.2
            )
        return ValidationResult(
            field_name,
            False,
            f"CNP control digit is {cnp[12]}, expected {expected}",
            "cnp_checksum",
            -0.3,
        )

    def _cross_validate(self, fields: dict[str, Any]) -> list[ValidationResult]:
        """Run cross-field validation checks.

        Checks that the card expires after it was issued and that the
        date of birth agrees with the one encoded in the CNP.

        Args:
            fields: All extracted field values.

        Returns:
            List of cross-field validation results.
        """
        results: list[ValidationResult] = []

        emission = _parse_date(str(fields.get("emission_date") or ""))
        expiration = _parse_date(str(fields.get("expiration_date") or ""))
        if emission and expiration:
            if expiration > emission:
                results.append(
                    ValidationResult(
                        "validity_period",
                        True,
                        "Expiration date follows emission date",
                        "cross_field",
                        0.1,
                    )
                )
            else:
                results.append(
                    ValidationResult(
                        "validity_period",
                        False,
                        "Expiration date is not after emission date",
                        "cross_field",
                        -0.15,
                    )
                )

        cnp = fields.get("cnp")
        birth = fields.get("date_of_birth")
        if cnp and birth and is_valid_cnp(str(cnp)):
            encoded = birth_date_from_cnp(str(cnp))
            if encoded is not None:
                matches = encoded == str(birth)
                results.append(
                    ValidationResult(
                        "date_of_birth_cnp",
                        matches,
                        "Date of birth matches CNP"
                        if matches
                        else f"Date of birth {birth} differs from CNP date {encoded}",
                        "cross_field",
                        0.1 if matches else -0.15,
                    )
                )

        return results
