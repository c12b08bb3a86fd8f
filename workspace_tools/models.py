"""Data records produced by the Romanian ID card extraction pipeline."""

import uuid
from dataclasses import dataclass, field
from enum import StrEnum


class ProcessingStatus(StrEnum):
    """Lifecycle state of a scanned card."""

    PROCESSING = "processing"
    COMPLETED = "completed"
    ERROR = "error"


# Column headings for the extracted fields, in display order.
FIELD_LABELS: dict[str, str] = {
    "name": "Name",
    "cnp": "CNP",
    "date_of_birth": "Date of Birth",
    "emission_date": "Emission Date",
    "expiration_date": "Expiration Date",
    "address": "Address",
    "place_of_issue": "Place of Issue",
}


def new_record_id() -> str:
    """Return a fresh identifier for an extraction record."""
    return uuid.uuid4().hex[:13]


@dataclass
class ExtractedData:
    """Flat record of the fields read from one ID card scan.

    Empty strings mean the field could not be extracted; ``errors``
    explains which ones, ``notes`` records how the name and date of
    birth were found.
    """

    file_name: str
    name: str = ""
    cnp: str = ""
    address: str = ""
    date_of_birth: str = ""
    emission_date: str = ""
    expiration_date: str = ""
    place_of_issue: str = ""
    status: ProcessingStatus = ProcessingStatus.COMPLETED
    confidence: int = 0
    errors: list[str] = field(default_factory=list)
    notes: list[str] = field(default_factory=list)
    id: str = field(default_factory=new_record_id)

    @classmethod
    def failed(cls, file_name: str, message: str) -> "ExtractedData":
        """Build the record returned when a scan could not be processed."""
        return cls(
            file_name=file_name,
            status=ProcessingStatus.ERROR,
            confidence=0,
            errors=[message],
        )

    def field_values(self) -> dict[str, str]:
        """Return the extracted card fields keyed by snake_case name."""
        return {
            "name": self.name,
            "cnp": self.cnp,
            "date_of_birth": self.date_of_birth,
            "emission_date": self.emission_date,
            "expiration_date": self.expiration_date,
            "address": self.address,
            "place_of_issue": self.place_of_issue,
        }

    def to_dict(self) -> dict[str, object]:
        """Serialize using the camelCase keys of the upload UI's JSON record."""
        return {
            "id": self.id,
            "fileName": self.file_name,
            "name": self.name,
            "cnp": self.cnp,
            "address": self.address,
            "dateOfBirth": self.date_of_birth,
            "emissionDate": self.emission_date,
            "expirationDate": self.expiration_date,
            "placeOfIssue": self.place_of_issue,
            "status": self.status.value,
            "confidence": self.confidence,
            "errors": list(self.errors),
            "notes": list(self.notes),
        }
