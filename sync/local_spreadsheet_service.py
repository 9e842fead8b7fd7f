# sync/local_spreadsheet_service.py

import csv
from pathlib import Path

from records.normalizer import FIELD_SOURCES


def export_records_to_csv(records, output_path: str):
    """
    Write records to CSV using the sheet's header names,
    so the file can be pasted back into the roster sheet.
    """
    path = Path(output_path)
    path.parent.mkdir(parents=True, exist_ok=True)

    headers = [header for header, _ in FIELD_SOURCES.values()]
    fields = list(FIELD_SOURCES)

    with open(path, "w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(headers)
        for record in records:
            row = record.to_dict()
            writer.writerow([row[field] for field in fields])

    return {
        "status": "ok",
        "rows_written": len(records),
        "path": str(path),
    }
