# records/normalizer.py

import logging
import math
from collections.abc import Mapping

from records.models import GENDER_UNKNOWN, Record

logger = logging.getLogger(__name__)


# Record field -> (sheet header, default).
# Header names are the "cleaned" keys emitted by the sheet endpoint.
FIELD_SOURCES = {
    "id": ("ID", ""),
    "family_id": ("FamilyId", ""),
    "group_key": ("GramPanchayat", ""),
    "name": ("StudentName", ""),
    "guardian_name": ("FatherName", ""),
    "national_id": ("Aadhaar", ""),
    "date_of_birth": ("DOB", ""),
    "age": ("Age", 0),
    "phone": ("Mobile", ""),
    "gender": ("Gender", GENDER_UNKNOWN),
    "admission_status": ("AdmissionDetailed", ""),
    "remark": ("Remark", ""),
}

_MISSING = object()


def lookup(row, key):
    """
    Resolve `key` in a loosely-keyed row.

    Exact match first, then a case-insensitive scan. When several keys
    differ only by case the first one in sorted order wins, so the
    result does not depend on the row's insertion order.
    """
    if key in row:
        return row[key]

    wanted = key.lower()
    candidates = sorted(
        k for k in row
        if isinstance(k, str) and k.lower() == wanted
    )
    if candidates:
        return row[candidates[0]]
    return _MISSING


def coerce_text(value) -> str:
    if value is None or value is _MISSING:
        return ""
    if isinstance(value, bool):
        # as the sheet displays it
        return "TRUE" if value else "FALSE"
    if isinstance(value, float):
        if not math.isfinite(value):
            return ""
        if value.is_integer():
            return str(int(value))
    return str(value)


def coerce_age(value) -> int:
    """
    Known limitation: a malformed age is indistinguishable from 0.
    """
    if value is None or value is _MISSING or isinstance(value, bool):
        return 0

    if isinstance(value, (int, float)):
        try:
            number = float(value)
        except (OverflowError, ValueError):
            return 0
    else:
        text = str(value).strip()
        if not text:
            return 0
        try:
            number = float(text)
        except ValueError:
            return 0

    if not math.isfinite(number) or number < 0:
        return 0
    return int(number)


def coerce_gender(value) -> str:
    text = coerce_text(value)
    return text or GENDER_UNKNOWN


def normalize_row(row) -> Record:
    if not isinstance(row, Mapping):
        logger.warning("Skipping malformed row of type %s", type(row).__name__)
        return Record()

    values = {}
    for field, (header, default) in FIELD_SOURCES.items():
        raw = lookup(row, header)

        if field == "age":
            values[field] = coerce_age(raw)
        elif field == "gender":
            values[field] = coerce_gender(raw)
        elif raw is _MISSING:
            values[field] = default
        else:
            values[field] = coerce_text(raw)

    return Record(**values)


def normalize(raw_rows) -> list[Record]:
    """
    Convert sheet rows into Records.

    Never raises for the batch as a whole: one record per input row,
    degraded to defaults where a row is malformed.
    """
    if not raw_rows:
        return []
    return [normalize_row(row) for row in raw_rows]
