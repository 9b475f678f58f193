# discipline_scheduler/google_auth.py
"""
Google Calendar client for a stored user refresh token.

The OAuth consent flow lives elsewhere; by the time we get here a user row
either has a refresh token or the calendar is "not connected".
"""

from __future__ import annotations

from typing import List, Optional

from google.auth.exceptions import RefreshError
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build

from discipline_scheduler.errors import ConfigurationError

CALENDAR_SCOPES: List[str] = ["https://www.googleapis.com/auth/calendar"]
TOKEN_URI = "https://oauth2.googleapis.com/token"


def credentials_from_refresh_token(
    refresh_token: str,
    client_id: str,
    client_secret: str,
    scopes: Optional[List[str]] = None,
) -> Credentials:
    """
    Rehydrate credentials from a refresh token and refresh the access token.

    Raises ConfigurationError if Google refuses the refresh (revoked or expired
    grant): the user has to reconnect their calendar.
    """
    creds = Credentials(
        token=None,
        refresh_token=refresh_token,
        token_uri=TOKEN_URI,
        client_id=client_id,
        client_secret=client_secret,
        scopes=scopes or CALENDAR_SCOPES,
    )
    try:
        creds.refresh(Request())
    except RefreshError as e:
        raise ConfigurationError("Stored Google token cannot refresh. Reconnect Google Calendar.") from e
    return creds


def get_calendar_service(refresh_token: str, client_id: str, client_secret: str):
    """
    Return a Google Calendar API client acting as the token's user.
    """
    creds = credentials_from_refresh_token(refresh_token, client_id, client_secret)
    # no on-disk discovery cache
    return build("calendar", "v3", credentials=creds, cache_discovery=False)
