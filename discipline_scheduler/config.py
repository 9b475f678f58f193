# discipline_scheduler/config.py
"""
Environment-driven settings.

Required for the Supabase store and Google Calendar adapters:
  - SUPABASE_URL / SUPABASE_SERVICE_KEY
  - GOOGLE_CLIENT_ID / GOOGLE_CLIENT_SECRET
Optional:
  - SCHEDULE_TZ             IANA timezone of the user's day (default America/Edmonton)
  - PLANNING_CALENDAR_IDS   comma-separated calendars to read busy time from
                            (empty -> primary only)
  - LOG_LEVEL               default INFO
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Optional, Tuple

from discipline_scheduler.errors import ConfigurationError

DEFAULT_TZ = "America/Edmonton"


def _read_calendar_ids(raw: str) -> Tuple[str, ...]:
    """
    Parse "a,b,c" into ("a", "b", "c"); empty means ("primary",).
    """
    ids = tuple(x.strip() for x in raw.split(",") if x.strip())
    return ids or ("primary",)


@dataclass(frozen=True)
class Settings:
    supabase_url: Optional[str]
    supabase_service_key: Optional[str]
    google_client_id: Optional[str]
    google_client_secret: Optional[str]
    schedule_tz: str = DEFAULT_TZ
    planning_calendar_ids: Tuple[str, ...] = ("primary",)
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            supabase_url=os.getenv("SUPABASE_URL"),
            supabase_service_key=os.getenv("SUPABASE_SERVICE_KEY"),
            google_client_id=os.getenv("GOOGLE_CLIENT_ID"),
            google_client_secret=os.getenv("GOOGLE_CLIENT_SECRET"),
            schedule_tz=os.getenv("SCHEDULE_TZ", DEFAULT_TZ).strip() or DEFAULT_TZ,
            planning_calendar_ids=_read_calendar_ids(os.getenv("PLANNING_CALENDAR_IDS", "")),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )

    def require_supabase(self) -> Tuple[str, str]:
        if not self.supabase_url or not self.supabase_service_key:
            raise ConfigurationError("SUPABASE_URL and SUPABASE_SERVICE_KEY must be set")
        return self.supabase_url.rstrip("/"), self.supabase_service_key

    def require_google(self) -> Tuple[str, str]:
        if not self.google_client_id or not self.google_client_secret:
            raise ConfigurationError("GOOGLE_CLIENT_ID and GOOGLE_CLIENT_SECRET must be set")
        return self.google_client_id, self.google_client_secret


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
