# records/store.py

import logging
import threading

logger = logging.getLogger(__name__)


class RecordStore:
    """
    Authoritative in-memory roster.

    - records are replaced wholesale by set_records() and patched one
      at a time by patch(); both build a new tuple and swap it in
    - selected_group / query only drive visible_records(), they never
      touch the collection
    - error is the store-wide banner message (fetch or save failure)
    """

    def __init__(self):
        self._lock = threading.RLock()
        self._records = ()
        self.selected_group = ""
        self.query = ""
        self.error = None

    # -------------------------------------------------
    # Collection
    # -------------------------------------------------

    @property
    def records(self):
        return self._records

    def set_records(self, records):
        with self._lock:
            self._records = tuple(records)
            self._reconcile_group()
        logger.info(
            "Roster replaced: %d records, group=%r",
            len(self._records), self.selected_group,
        )

    def get(self, record_id):
        if not record_id:
            return None
        for record in self._records:
            if record.id == record_id:
                return record
        return None

    def patch(self, record_id, admission_status, remark) -> bool:
        """
        Apply an edit to every record with this id.
        Returns False when nothing matched (including an empty id).
        """
        if not record_id:
            return False

        with self._lock:
            found = False
            updated = []
            for record in self._records:
                if record.id == record_id:
                    record = record.with_edit(admission_status, remark)
                    found = True
                updated.append(record)

            if found:
                self._records = tuple(updated)
        return found

    # -------------------------------------------------
    # View selection
    # -------------------------------------------------

    def groups(self):
        return sorted({r.group_key for r in self._records if r.group_key})

    def _reconcile_group(self):
        available = self.groups()
        if not self.selected_group or self.selected_group not in available:
            self.selected_group = available[0] if available else ""

    def select_group(self, group_key):
        with self._lock:
            self.selected_group = group_key or ""

    def set_query(self, query):
        with self._lock:
            self.query = query or ""

    def visible_records(self):
        records = self._records
        group = self.selected_group
        term = self.query.lower()

        visible = []
        for r in records:
            if r.group_key != group:
                continue
            if term and not (
                term in r.name.lower()
                or term in r.id.lower()
                or term in r.phone.lower()
            ):
                continue
            visible.append(r)
        return visible

    # -------------------------------------------------
    # Error banner
    # -------------------------------------------------

    def set_error(self, message):
        self.error = message

    def clear_error(self):
        self.error = None
