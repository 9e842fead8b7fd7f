# sync/gateway.py

import json
import logging

import requests

logger = logging.getLogger(__name__)

DEFAULT_CONNECTIVITY_MESSAGE = "Unable to connect to Google Sheet."


class GatewayError(Exception):
    """Base error for anything that went wrong talking to the sheet."""


class ConnectivityError(GatewayError):
    """Transport failure, or a payload that is neither rows nor an error."""


class UpstreamError(GatewayError):
    """The endpoint answered with an `error` field."""


def build_update_payload(record_id, admission_status, remark):
    return {
        "action": "update",
        "id": record_id,
        "admissionDetailed": admission_status,
        "remark": remark,
    }


def parse_rows_response(data):
    """
    GET contract:
    - list        -> rows (possibly empty = no data)
    - {"error"}   -> UpstreamError
    - anything else is a protocol violation
    """
    if isinstance(data, list):
        return data

    if isinstance(data, dict) and data.get("error"):
        raise UpstreamError(str(data["error"]))

    raise ConnectivityError(DEFAULT_CONNECTIVITY_MESSAGE)


class AppsScriptGateway:
    """
    Client for the Apps Script web app that fronts the roster sheet.
    """

    def __init__(self, url: str, timeout: float = 30, session=None):
        if not url:
            raise ValueError("Apps Script URL is not configured (ROSTER_API_URL).")
        self.url = url
        self.timeout = timeout
        self.session = session or requests.Session()

    def fetch_rows(self):
        logger.info("Fetching roster from %s", self.url)
        try:
            resp = self.session.get(self.url, timeout=self.timeout)
            resp.raise_for_status()
            data = resp.json()
        except requests.HTTPError as e:
            raise ConnectivityError(
                f"Network response was not ok: {e.response.status_code}"
            ) from e
        except (requests.RequestException, ValueError) as e:
            raise ConnectivityError(DEFAULT_CONNECTIVITY_MESSAGE) from e

        rows = parse_rows_response(data)
        logger.info("Received %d raw rows", len(rows))
        return rows

    def push_update(self, record_id, admission_status, remark):
        """
        POST one edit. Returns the endpoint's status object;
        transport failures raise GatewayError.
        """
        payload = build_update_payload(record_id, admission_status, remark)

        try:
            # the endpoint parses the raw body, not form fields
            resp = self.session.post(
                self.url,
                data=json.dumps(payload),
                headers={"Content-Type": "text/plain;charset=utf-8"},
                timeout=self.timeout,
            )
            resp.raise_for_status()
            data = resp.json()
        except requests.HTTPError as e:
            raise GatewayError(
                f"Network response was not ok: {e.response.status_code}"
            ) from e
        except (requests.RequestException, ValueError) as e:
            raise GatewayError(f"Update request failed: {e}") from e

        if not isinstance(data, dict):
            raise GatewayError("Unexpected response to update request.")
        return data
