# sync/google_sheets_adapter.py

import logging
import re
import threading

import httplib2
from google.auth.exceptions import GoogleAuthError
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from sync.gateway import ConnectivityError, UpstreamError
from sync.google_auth import get_credentials

logger = logging.getLogger(__name__)


# Headers whose casing the frontend relies on
CANONICAL_HEADERS = {
    "gender": "Gender",
    "aadhaar": "Aadhaar",
    "dob": "DOB",
    "id": "ID",
}

ADMISSION_COLUMNS = ["admissiondetailed", "admission"]
REMARK_COLUMNS = ["remark", "remarks"]

LOCK_TIMEOUT_SECONDS = 10

# One lock per process: the Sheets API has no script lock of its own
_WRITE_LOCK = threading.Lock()

# Transport and credential failures below the discovery client
TRANSPORT_ERRORS = (OSError, httplib2.HttpLib2Error, GoogleAuthError)


def clean_header(header) -> str:
    """
    "Student\\n Name" -> "StudentName", " dob " -> "DOB"
    """
    key = re.sub(r'["\n\r]', "", str(header))
    key = re.sub(r"\s+", "", key)
    return CANONICAL_HEADERS.get(key.lower(), key)


def _loose_header(header) -> str:
    return re.sub(r'["\n\r\s]', "", str(header).lower())


def find_column(headers, possible_names):
    for i, header in enumerate(headers):
        if _loose_header(header) in possible_names:
            return i
    return -1


def column_letter(index: int) -> str:
    """0 -> A, 25 -> Z, 26 -> AA"""
    letters = ""
    n = index + 1
    while n:
        n, rem = divmod(n - 1, 26)
        letters = chr(ord("A") + rem) + letters
    return letters


def rows_to_records(values):
    """
    Sheet values (header row first) -> list of dicts with cleaned keys
    and the 1-based sheet row number under `_rowIndex`.
    """
    if len(values) < 2:
        return []

    headers = [clean_header(h) for h in values[0]]
    result = []

    for offset, row in enumerate(values[1:]):
        obj = {"_rowIndex": offset + 2}
        for index, key in enumerate(headers):
            # the API trims trailing empty cells
            obj[key] = row[index] if index < len(row) else ""
        result.append(obj)

    return result


class SheetsGateway:
    """
    Talks to the roster sheet directly through the Sheets API,
    behaving like the Apps Script endpoint (same rows, same replies).
    """

    def __init__(self, spreadsheet_id: str, sheet_tab: str | None = None, service=None):
        if not spreadsheet_id:
            raise ValueError("Spreadsheet id is not configured (ROSTER_SPREADSHEET_ID).")
        self.spreadsheet_id = spreadsheet_id
        self.sheet_tab = sheet_tab

        if service is None:
            service = build("sheets", "v4", credentials=get_credentials())
        self.service = service

    def _tab(self):
        if self.sheet_tab:
            return self.sheet_tab

        meta = self.service.spreadsheets().get(
            spreadsheetId=self.spreadsheet_id,
            fields="sheets.properties.title",
        ).execute()

        sheets = meta.get("sheets", [])
        if not sheets:
            raise UpstreamError("No sheets found in spreadsheet")

        # first sheet, whatever it is called
        self.sheet_tab = sheets[0]["properties"]["title"]
        return self.sheet_tab

    def fetch_values(self):
        result = self.service.spreadsheets().values().get(
            spreadsheetId=self.spreadsheet_id,
            range=f"'{self._tab()}'",
        ).execute()
        return result.get("values", [])

    # -------------------------------------------------
    # Gateway interface
    # -------------------------------------------------

    def fetch_rows(self):
        try:
            values = self.fetch_values()
        except HttpError as e:
            raise ConnectivityError(f"Sheets API error: {e.status_code}") from e
        except TRANSPORT_ERRORS as e:
            raise ConnectivityError("Unable to connect to Google Sheet.") from e

        rows = rows_to_records(values)
        logger.info("Read %d rows from sheet %r", len(rows), self.sheet_tab)
        return rows

    def push_update(self, record_id, admission_status, remark):
        acquired = _WRITE_LOCK.acquire(timeout=LOCK_TIMEOUT_SECONDS)
        if not acquired:
            logger.warning("Write lock busy for %ss, updating anyway", LOCK_TIMEOUT_SECONDS)

        try:
            return self._update(str(record_id), admission_status, remark)
        except (HttpError, UpstreamError) + TRANSPORT_ERRORS as e:
            return {"status": "error", "message": str(e)}
        finally:
            if acquired:
                _WRITE_LOCK.release()

    def _update(self, id_to_find, admission_status, remark):
        values = self.fetch_values()
        if not values:
            return {"status": "error", "message": "ID column not found in Sheet"}

        headers = values[0]
        id_index = find_column(headers, ["id"])
        admission_index = find_column(headers, ADMISSION_COLUMNS)
        remark_index = find_column(headers, REMARK_COLUMNS)

        if id_index == -1:
            return {"status": "error", "message": "ID column not found in Sheet"}

        row_number = -1
        for i, row in enumerate(values[1:], start=2):
            cell = row[id_index] if id_index < len(row) else ""
            if str(cell) == id_to_find:
                row_number = i
                break

        if row_number == -1:
            return {"status": "error", "message": f"Student ID not found: {id_to_find}"}

        tab = self._tab()
        data = []
        if admission_index != -1:
            data.append({
                "range": f"'{tab}'!{column_letter(admission_index)}{row_number}",
                "values": [[admission_status]],
            })
        if remark_index != -1:
            data.append({
                "range": f"'{tab}'!{column_letter(remark_index)}{row_number}",
                "values": [[remark]],
            })

        if data:
            self.service.spreadsheets().values().batchUpdate(
                spreadsheetId=self.spreadsheet_id,
                body={"valueInputOption": "RAW", "data": data},
            ).execute()

        return {"status": "success", "message": f"Updated row {row_number}"}
