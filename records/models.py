# records/models.py

from dataclasses import asdict, dataclass, replace
from typing import Literal

GENDER_UNKNOWN = "unknown"


@dataclass(frozen=True)
class Record:
    """
    One student row, normalized from the sheet.

    Only `admission_status` and `remark` are ever edited locally;
    every other field is display-only and replaced on the next fetch.
    """
    id: str = ""
    family_id: str = ""
    group_key: str = ""          # Gram Panchayat
    name: str = ""
    guardian_name: str = ""
    national_id: str = ""        # Aadhaar, not validated
    date_of_birth: str = ""
    age: int = 0
    phone: str = ""
    gender: str = GENDER_UNKNOWN  # "M" | "F" | "unknown" | anything else as given
    admission_status: str = ""
    remark: str = ""

    def with_edit(self, admission_status: str, remark: str) -> "Record":
        return replace(self, admission_status=admission_status, remark=remark)

    def to_dict(self):
        return asdict(self)


@dataclass
class SaveOutcome:
    """
    Result of one EditReconciler.save() call.

    status:
    - "saved":     remote push succeeded
    - "failed":    transport or application error (local edit is kept)
    - "unchanged": nothing to save, gateway was not contacted
    """
    record_id: str
    status: Literal["saved", "failed", "unchanged"]
    message: str | None = None
    found: bool = True

    def to_dict(self):
        return {
            "id": self.record_id,
            "status": self.status,
            "message": self.message,
            "found": self.found,
        }
