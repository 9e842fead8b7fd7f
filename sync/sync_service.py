# sync/sync_service.py

import logging

from records.normalizer import normalize
from sync.gateway import DEFAULT_CONNECTIVITY_MESSAGE, GatewayError

logger = logging.getLogger(__name__)


def refresh_records(gateway, store):
    """
    Read path: gateway -> normalizer -> store.

    On any fetch failure the previous roster is dropped (not kept
    stale), the store shows an empty set and the banner carries the
    reason. The caller offers a retry.
    """
    store.clear_error()

    try:
        rows = gateway.fetch_rows()
    except GatewayError as e:
        message = str(e) or DEFAULT_CONNECTIVITY_MESSAGE
        logger.error("Fetch failed: %s", message)
        store.set_records([])
        store.set_error(message)
        return {"status": "error", "message": message}

    records = normalize(rows)
    if not records:
        logger.warning("Sheet returned no data.")

    store.set_records(records)

    return {
        "status": "ok",
        "total": len(records),
        "groups": len(store.groups()),
    }
