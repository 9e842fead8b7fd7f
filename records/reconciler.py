# records/reconciler.py

import itertools
import logging
import threading
import time

from records.models import SaveOutcome
from sync.gateway import GatewayError

logger = logging.getLogger(__name__)

SAVE_FAILED_MESSAGE = "Failed to save to cloud. Changes are local only."
PUSH_INCOMPLETE_MESSAGE = "Update did not complete."

# How long "saved" / "failed" stay visible before falling back to "idle"
SAVED_DISPLAY_SECONDS = 2.0
FAILED_DISPLAY_SECONDS = 3.0


def response_error(response):
    """
    Application-level failure reason in an update response, or None.
    """
    if response.get("error"):
        return str(response["error"])
    if response.get("status") == "error":
        return str(response.get("message") or "Update rejected by sheet.")
    return None


class EditReconciler:
    """
    Optimistic save of the two editable fields.

    Policy (deliberate): the local edit is applied before the remote
    push and is NOT rolled back when the push fails. A failure only
    raises the store-wide banner; there is no retry.

    Per-record save state: idle -> saving -> saved | failed -> idle.
    The fall back to idle is computed from the clock on read, nothing
    waits on it.
    """

    def __init__(
        self,
        store,
        gateway,
        *,
        clock=time.monotonic,
        saved_display=SAVED_DISPLAY_SECONDS,
        failed_display=FAILED_DISPLAY_SECONDS,
    ):
        self.store = store
        self.gateway = gateway
        self.clock = clock
        self.saved_display = saved_display
        self.failed_display = failed_display

        self._lock = threading.Lock()
        self._seq = itertools.count(1)
        self._latest = {}     # record id -> seq of the newest save call
        self._states = {}     # record id -> (state, expires_at | None, message)

    # -------------------------------------------------
    # Save
    # -------------------------------------------------

    def save(self, record_id, admission_status, remark) -> SaveOutcome:
        record_id = "" if record_id is None else str(record_id)
        admission_status = admission_status or ""
        remark = remark or ""

        current = self.store.get(record_id)
        if (
            current is not None
            and current.admission_status == admission_status
            and current.remark == remark
        ):
            return SaveOutcome(record_id, "unchanged", found=True)

        with self._lock:
            seq = next(self._seq)
            self._latest[record_id] = seq
            self._states[record_id] = ("saving", None, None)
            # optimistic apply, in call order
            found = self.store.patch(record_id, admission_status, remark)

        if not found:
            logger.info("No local record for id=%r, pushing update anyway", record_id)

        # stays set if the push raises something unexpected
        error = PUSH_INCOMPLETE_MESSAGE
        try:
            error = self._push(record_id, admission_status, remark)
        finally:
            with self._lock:
                if self._latest.get(record_id) == seq:
                    # a refresh may have landed while the push was in flight
                    self.store.patch(record_id, admission_status, remark)
                    self._finish(record_id, error)

            if error is not None:
                logger.warning("Save failed for id=%r: %s", record_id, error)
                self.store.set_error(SAVE_FAILED_MESSAGE)

        if error is not None:
            return SaveOutcome(record_id, "failed", message=error, found=found)

        logger.info("Saved id=%r", record_id)
        return SaveOutcome(record_id, "saved", found=found)

    def _push(self, record_id, admission_status, remark):
        try:
            response = self.gateway.push_update(record_id, admission_status, remark)
        except GatewayError as e:
            return str(e) or SAVE_FAILED_MESSAGE
        return response_error(response)

    def _finish(self, record_id, error):
        now = self.clock()
        if error is None:
            self._states[record_id] = ("saved", now + self.saved_display, None)
        else:
            self._states[record_id] = ("failed", now + self.failed_display, error)

    # -------------------------------------------------
    # State
    # -------------------------------------------------

    def state(self, record_id):
        """
        Current save state for one record: "idle", "saving", "saved" or "failed".
        """
        return self.status(record_id)["state"]

    def status(self, record_id):
        entry = self._states.get(record_id)
        if entry is None:
            return {"id": record_id, "state": "idle", "message": None}

        state, expires_at, message = entry
        if expires_at is not None and self.clock() >= expires_at:
            self._forget(record_id, entry)
            return {"id": record_id, "state": "idle", "message": None}
        return {"id": record_id, "state": state, "message": message}

    def active_statuses(self):
        """Every record whose state is not idle."""
        result = {}
        for record_id in list(self._states):
            status = self.status(record_id)
            if status["state"] != "idle":
                result[record_id] = status
        return result

    def _forget(self, record_id, entry):
        # only a finished save expires; a newer save would have replaced the entry
        with self._lock:
            if self._states.get(record_id) is entry:
                del self._states[record_id]
                self._latest.pop(record_id, None)
