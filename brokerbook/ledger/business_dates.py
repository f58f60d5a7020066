"""Business-date helpers for default bill and payment dates."""

from __future__ import annotations

from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo


def business_resolve_today(timezone_name: str, now_utc: datetime | None = None) -> date:
    """Resolve the current business date in the configured timezone.

    Args:
        timezone_name: IANA timezone name, for example `Asia/Kolkata`.
        now_utc: Optional offset-aware reference instant; defaults to the current time.

    Returns:
        date: Local business date.

    Raises:
        ValueError: Raised when timezone is blank or the reference instant is offset-naive.
    """

    if not isinstance(timezone_name, str) or not timezone_name.strip():
        raise ValueError("timezone_name must be a non-empty string")

    reference_instant = now_utc if now_utc is not None else datetime.now(timezone.utc)
    if reference_instant.tzinfo is None or reference_instant.utcoffset() is None:
        raise ValueError("now_utc must be offset-aware")

    return reference_instant.astimezone(ZoneInfo(timezone_name.strip())).date()


__all__ = ["business_resolve_today"]
