# sync/google_auth.py

import logging
import os
from pathlib import Path

from google.auth.transport.requests import Request
from google.oauth2 import service_account
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow

logger = logging.getLogger(__name__)


# -----------------------------
# Configuration
# -----------------------------

SCOPES = [
    "https://www.googleapis.com/auth/spreadsheets",
]

TOKEN_PATH = Path.home() / ".roster_google_token.json"
ROOT_DIR = Path(__file__).resolve().parents[1]
DEFAULT_CLIENT_SECRET_PATH = ROOT_DIR / "secrets" / "google_oauth_client.json"


# -----------------------------
# Helpers
# -----------------------------

def save_token(creds: Credentials, token_path=TOKEN_PATH):
    Path(token_path).write_text(creds.to_json())


def load_token(token_path=TOKEN_PATH):
    token_path = Path(token_path)
    if token_path.exists():
        return Credentials.from_authorized_user_file(str(token_path), SCOPES)
    return None


# -----------------------------
# Credentials
# -----------------------------

def get_credentials(token_path=TOKEN_PATH):
    """
    Credentials for the Sheets API.

    1. Service account file (GOOGLE_SERVICE_ACCOUNT_FILE), for servers
    2. Cached user token, refreshed if expired
    3. Installed-app OAuth flow in a local browser
    """
    sa_file = os.getenv("GOOGLE_SERVICE_ACCOUNT_FILE")
    if sa_file:
        logger.info("Using service account credentials from %s", sa_file)
        return service_account.Credentials.from_service_account_file(
            sa_file, scopes=SCOPES
        )

    creds = load_token(token_path)

    if creds and creds.valid:
        return creds

    if creds and creds.expired and creds.refresh_token:
        creds.refresh(Request())
        save_token(creds, token_path)
        return creds

    client_secret = Path(
        os.getenv("GOOGLE_OAUTH_CLIENT_FILE") or DEFAULT_CLIENT_SECRET_PATH
    )
    if not client_secret.exists():
        raise RuntimeError(f"OAuth client file not found: {client_secret}")

    logger.info("Starting OAuth flow for Google Sheets access")
    flow = InstalledAppFlow.from_client_secrets_file(str(client_secret), SCOPES)
    creds = flow.run_local_server(port=0)

    save_token(creds, token_path)
    return creds
