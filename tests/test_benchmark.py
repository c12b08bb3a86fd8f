"""Tests for the accuracy benchmarking system."""

import json
from pathlib import Path

import pytest

from workspace_tools.benchmark.evaluator import (
    BenchmarkResult,
    Evaluator,
    FieldMetrics,
    load_ground_truth,
    normalize_value,
    predictions_from_records,
)
from workspace_tools.models import ExtractedData


class TestFieldMetrics:
    """Tests for the FieldMetrics data class."""

    def test_precision_partial(self) -> None:
        m = FieldMetrics("cnp", true_positives=3, false_positives=2)
        assert m.precision == 0.6

    def test_precision_zero_denom(self) -> None:
        assert FieldMetrics("cnp").precision == 0.0

    def test_recall(self) -> None:
        m = FieldMetrics("cnp", true_positives=3, false_negatives=1)
        assert m.recall == 0.75

    def test_f1(self) -> None:
        m = FieldMetrics("cnp", true_positives=1, false_positives=1, false_negatives=1)
        assert m.f1 == pytest.approx(0.5)

    def test_accuracy(self) -> None:
        m = FieldMetrics("cnp", exact_matches=1, total=4)
        assert m.accuracy == 0.25


class TestNormalizeValue:
    """Tests for comparison keys."""

    def test_diacritics_removed(self) -> None:
        assert normalize_value("Ștefan cel Mare") == "stefancelmare"

    def test_cedilla_and_comma_forms_agree(self) -> None:
        assert normalize_value("Şoseaua") == normalize_value("Șoseaua")

    def test_punctuation_and_spacing(self) -> None:
        assert normalize_value("Str. Atelierului, nr.10") == "stratelieruluinr10"

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("1.5.1990", "01.05.1990"),
            ("15/05/1990", "15.05.1990"),
            ("15-05-1990", "15.05.1990"),
            ("12.03.15", "12.03.15"),
        ],
    )
    def test_dates(self, raw: str, expected: str) -> None:
        assert normalize_value(raw) == expected


class TestEvaluator:
    """Tests for the Evaluator class."""

    def test_perfect_match(self) -> None:
        truth = {"a.jpg": {"cnp": "1900515123458", "name": "Popescu Ion"}}
        result = Evaluator().evaluate(truth, truth)
        assert result.overall_accuracy == 1.0
        assert result.overall_f1 == 1.0
        assert result.errors == []

    def test_mixed_results(self) -> None:
        predictions = {
            "a.jpg": {
                "cnp": "1900515123458",
                "name": "Popescu Ion",
                "address": "Str. Ștefan",
            }
        }
        truth = {
            "a.jpg": {
                "cnp": "1900515123458",
                "name": "POPESCU ION",
                "address": "Str Stefan",
                "place_of_issue": "SPCLEP Cluj",
            }
        }
        result = Evaluator().evaluate(predictions, truth)

        address = result.field_metrics["address"]
        assert address.true_positives == 1
        assert address.exact_matches == 0
        assert result.field_metrics["name"].exact_matches == 1
        assert result.field_metrics["place_of_issue"].false_negatives == 1
        assert result.overall_accuracy == pytest.approx(0.5)
        assert result.overall_f1 == pytest.approx(0.75)

    def test_wrong_value_is_false_positive(self) -> None:
        result = Evaluator().evaluate(
            {"a.jpg": {"cnp": "2850101123456"}}, {"a.jpg": {"cnp": "1900515123458"}}
        )
        assert result.field_metrics["cnp"].false_positives == 1

    def test_missing_prediction(self) -> None:
        truth = {"a.jpg": {"cnp": "1"}, "b.jpg": {"cnp": "2"}}
        result = Evaluator().evaluate({"a.jpg": {"cnp": "1"}}, truth)
        assert result.total_documents == 2
        assert result.successful_documents == 1
        assert result.errors == ["Missing prediction for b.jpg"]

    def test_similarity_threshold(self) -> None:
        evaluator = Evaluator(similarity_threshold=0.8)
        assert evaluator.matches("Popescu Ion Andrei", "Popescu Ion Andre")
        assert not evaluator.matches("Popescu", "Ionescu Maria")

    def test_generate_report(self, tmp_path: Path) -> None:
        result = BenchmarkResult(
            total_documents=2,
            successful_documents=2,
            overall_accuracy=0.5,
            overall_f1=0.75,
            field_metrics={"cnp": FieldMetrics("cnp", true_positives=1, total=1)},
            errors=["Missing prediction for c.jpg"],
        )
        output = tmp_path / "reports" / "bench.txt"
        report = Evaluator().generate_report(result, output)

        assert "ID CARD EXTRACTION BENCHMARK" in report
        assert "cnp" in report
        assert "Missing prediction for c.jpg" in report
        assert output.read_text(encoding="utf-8") == report


class TestPredictionsFromRecords:
    """Tests for predictions_from_records."""

    def test_skips_empty_fields(self) -> None:
        record = ExtractedData(file_name="a.jpg", cnp="1900515123458")
        assert predictions_from_records([record]) == {
            "a.jpg": {"cnp": "1900515123458"}
        }


class TestLoadGroundTruth:
    """Tests for ground truth loading."""

    def test_json(self, tmp_path: Path) -> None:
        path = tmp_path / "truth.json"
        path.write_text(json.dumps({"a.jpg": {"cnp": "1900515123458"}}))
        assert load_ground_truth(path) == {"a.jpg": {"cnp": "1900515123458"}}

    def test_csv(self, tmp_path: Path) -> None:
        path = tmp_path / "truth.csv"
        path.write_text(
            "file_name,name,cnp\na.jpg,Popescu Ion,1900515123458\nb.jpg,,2850101123456\n",
            encoding="utf-8",
        )
        assert load_ground_truth(path) == {
            "a.jpg": {"name": "Popescu Ion", "cnp": "1900515123458"},
            "b.jpg": {"cnp": "2850101123456"},
        }

    def test_unsupported_format(self, tmp_path: Path) -> None:
        with pytest.raises(ValueError, match="Unsupported ground truth format"):
            load_ground_truth(tmp_path / "truth.xlsx")
