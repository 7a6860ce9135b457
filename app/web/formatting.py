from datetime import datetime
from typing import Optional

from app.core.clock import as_utc, utcnow

STATUS_BADGES = {
    "available": "badge-green",
    "unavailable": "badge-red",
    "conditional": "badge-yellow",
}


def relative_date(value: datetime, now: Optional[datetime] = None) -> str:
    """'Today', 'Yesterday', 'N days ago', 'N weeks ago', else the date."""
    now = now or utcnow()
    diff_days = (as_utc(now) - as_utc(value)).days

    if diff_days <= 0:
        return "Today"
    if diff_days == 1:
        return "Yesterday"
    if diff_days < 7:
        return f"{diff_days} days ago"
    if diff_days < 30:
        return f"{diff_days // 7} weeks ago"
    return value.strftime("%Y-%m-%d")


def format_datetime(value: Optional[datetime]) -> str:
    if value is None:
        return "Never"
    return as_utc(value).strftime("%Y-%m-%d %H:%M UTC")


def humanize(value) -> str:
    # "needs_repair" -> "Needs repair"
    text = getattr(value, "value", value) or ""
    return text.replace("_", " ").capitalize()


def status_badge(value) -> str:
    return STATUS_BADGES.get(getattr(value, "value", value), "badge-gray")
