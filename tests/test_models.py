"""Tests for the extraction record model."""

from workspace_tools.models import FIELD_LABELS, ExtractedData, ProcessingStatus


class TestExtractedData:
    """Tests for ExtractedData."""

    def test_defaults(self) -> None:
        data = ExtractedData(file_name="card.jpg")
        assert data.status == ProcessingStatus.COMPLETED
        assert data.name == ""
        assert data.errors == []
        assert len(data.id) == 13

    def test_failed_record(self) -> None:
        data = ExtractedData.failed("card.jpg", "Processing failed: boom")
        assert data.status == ProcessingStatus.ERROR
        assert data.confidence == 0
        assert data.errors == ["Processing failed: boom"]

    def test_to_dict_uses_camel_case(self) -> None:
        data = ExtractedData(
            file_name="card.jpg",
            date_of_birth="15.05.1990",
            place_of_issue="SPCLEP Cluj",
            confidence=91,
        )
        result = data.to_dict()
        assert result["fileName"] == "card.jpg"
        assert result["dateOfBirth"] == "15.05.1990"
        assert result["placeOfIssue"] == "SPCLEP Cluj"
        assert result["status"] == "completed"
        assert result["confidence"] == 91

    def test_field_values_cover_labels(self) -> None:
        data = ExtractedData(file_name="card.jpg", cnp="1900515123458")
        values = data.field_values()
        assert set(values) == set(FIELD_LABELS)
        assert values["cnp"] == "1900515123458"
