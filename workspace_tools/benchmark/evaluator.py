"""Accuracy benchmarking for ID card field extraction.

Compares extracted records against labelled ground truth and computes
per-field precision, recall, F1 and exact-match accuracy. Values that
differ only in diacritics, case, spacing or date separators count as
correct but not as exact matches.
"""

import csv
import json
import re
import unicodedata
from collections.abc import Iterable
from dataclasses import dataclass, field
from difflib import SequenceMatcher
from pathlib import Path

from workspace_tools.models import ExtractedData
from workspace_tools.utils.logger import get_logger

logger = get_logger(__name__)

_DATE_RE = re.compile(r"^(\d{1,2})[./\- ](\d{1,2})[./\- ](\d{2,4})$")


@dataclass
class FieldMetrics:
    """Precision, recall, F1 and accuracy for one field."""

    field_name: str
    true_positives: int = 0
    false_positives: int = 0
    false_negatives: int = 0
    exact_matches: int = 0
    total: int = 0

    @property
    def precision(self) -> float:
        """Fraction of predicted values that are correct."""
        predicted = self.true_positives + self.false_positives
        return self.true_positives / predicted if predicted else 0.0

    @property
    def recall(self) -> float:
        """Fraction of expected values that were found correctly."""
        expected = self.true_positives + self.false_negatives
        return self.true_positives / expected if expected else 0.0

    @property
    def f1(self) -> float:
        p, r = self.precision, self.recall
        return 2 * p * r / (p + r) if p + r else 0.0

    @property
    def accuracy(self) -> float:
        """Fraction of values matching exactly (case-insensitive)."""
        return self.exact_matches / self.total if self.total else 0.0


@dataclass
class BenchmarkResult:
    """Aggregated benchmark results across all cards and fields."""

    total_documents: int
    successful_documents: int
    overall_accuracy: float
    overall_f1: float
    field_metrics: dict[str, FieldMetrics]
    avg_processing_time_ms: float = 0.0
    errors: list[str] = field(default_factory=list)


def normalize_value(value: str) -> str:
    """Reduce a field value to a comparison key.

    Strips diacritics (``ș`` and ``ş`` both become ``s``), lowercases,
    drops punctuation and whitespace, and rewrites dates as
    ``DD.MM.YYYY`` with zero padding.
    """
    value = value.strip()
    date = _DATE_RE.match(value)
    if date:
        day, month, year = date.groups()
        return f"{int(day):02d}.{int(month):02d}.{year}"

    decomposed = unicodedata.normalize("NFKD", value)
    stripped = "".join(c for c in decomposed if not unicodedata.combining(c))
    return re.sub(r"[\s.,;:\-]+", "", stripped.lower())


def predictions_from_records(
    records: Iterable[ExtractedData],
) -> dict[str, dict[str, str]]:
    """Map extraction records to ``{file_name: {field: value}}``.

    Fields that were not extracted are left out so they count as
    false negatives.
    """
    return {
        record.file_name: {k: v for k, v in record.field_values().items() if v}
        for record in records
    }


class Evaluator:
    """Evaluates extracted fields against ground truth labels.

    Args:
        similarity_threshold: Minimum similarity ratio (0-1) between the
            normalized values for a non-exact match to count as correct.
    """

    def __init__(self, similarity_threshold: float = 0.9) -> None:
        self.similarity_threshold = similarity_threshold

    def evaluate(
        self,
        predictions: dict[str, dict[str, str]],
        ground_truth: dict[str, dict[str, str]],
    ) -> BenchmarkResult:
        """Compare predictions against ground truth and compute metrics.

        Args:
            predictions: Mapping of file name to extracted field values.
            ground_truth: Mapping of file name to expected field values.

        Returns:
            Aggregated benchmark results with per-field metrics.
        """
        field_metrics: dict[str, FieldMetrics] = {}
        errors: list[str] = []
        missing = 0

        for filename, expected in ground_truth.items():
            predicted = predictions.get(filename)
            if predicted is None:
                errors.append(f"Missing prediction for {filename}")
                missing += 1

            for field_name, expected_value in expected.items():
                metrics = field_metrics.setdefault(field_name, FieldMetrics(field_name))
                metrics.total += 1

                value = (predicted or {}).get(field_name)
                if not value:
                    metrics.false_negatives += 1
                elif value.strip().lower() == str(expected_value).strip().lower():
                    metrics.true_positives += 1
                    metrics.exact_matches += 1
                elif self.matches(value, str(expected_value)):
                    metrics.true_positives += 1
                else:
                    metrics.false_positives += 1

        scored = [m for m in field_metrics.values() if m.total]
        return BenchmarkResult(
            total_documents=len(ground_truth),
            successful_documents=len(ground_truth) - missing,
            overall_accuracy=(
                sum(m.accuracy for m in scored) / len(scored) if scored else 0.0
            ),
            overall_f1=sum(m.f1 for m in scored) / len(scored) if scored else 0.0,
            field_metrics=field_metrics,
            errors=errors,
        )

    def matches(self, predicted: str, expected: str) -> bool:
        """Check whether two values agree once normalized."""
        pred_key = normalize_value(predicted)
        exp_key = normalize_value(expected)
        if pred_key == exp_key:
            return True
        if not pred_key or not exp_key:
            return False
        ratio = SequenceMatcher(None, pred_key, exp_key).ratio()
        return ratio >= self.similarity_threshold

    def generate_report(
        self, result: BenchmarkResult, output_path: Path | None = None
    ) -> str:
        """Format benchmark results as a text table.

        Args:
            result: Benchmark results to format.
            output_path: Optional path to write the report to.

        Returns:
            The report text.
        """
        rule = "-" * 64
        lines = [
            "=" * 64,
            "ID CARD EXTRACTION BENCHMARK",
            "=" * 64,
            f"Cards:               {result.total_documents}",
            f"With predictions:    {result.successful_documents}",
            f"Exact accuracy:      {result.overall_accuracy:.2%}",
            f"Mean F1:             {result.overall_f1:.3f}",
            f"Avg time per card:   {result.avg_processing_time_ms:.0f}ms",
            "",
            rule,
            f"{'Field':<18} {'Precision':>10} {'Recall':>10} {'F1':>10} {'Exact':>10}",
            rule,
        ]
        for name, m in sorted(result.field_metrics.items()):
            lines.append(
                f"{name:<18} {m.precision:>10.2%} {m.recall:>10.2%} "
                f"{m.f1:>10.3f} {m.accuracy:>10.2%}"
            )
        lines.append(rule)

        if result.errors:
            lines.append("Errors:")
            lines.extend(f"  - {error}" for error in result.errors)

        report = "\n".join(lines)
        if output_path:
            output_path.parent.mkdir(parents=True, exist_ok=True)
            output_path.write_text(report, encoding="utf-8")
            logger.info("Report written to %s", output_path)
        return report


def load_ground_truth(path: Path) -> dict[str, dict[str, str]]:
    """Load labelled field values from JSON or CSV.

    JSON: ``{"card.jpg": {"cnp": "...", ...}, ...}``. CSV: one row per
    card with a ``file_name`` (or ``filename``) column; empty cells are
    ignored.

    Raises:
        ValueError: If the file format is not supported.
    """
    if path.suffix == ".json":
        return json.loads(path.read_text(encoding="utf-8"))

    if path.suffix == ".csv":
        truth: dict[str, dict[str, str]] = {}
        with open(path, newline="", encoding="utf-8") as f:
            for row in csv.DictReader(f):
                name = row.pop("file_name", None) or row.pop("filename", None)
                if name:
                    truth[name] = {k: v for k, v in row.items() if k and v}
        return truth

    raise ValueError(f"Unsupported ground truth format: {path.suffix}")
