"""
Date and number helpers shared by the tracker modules
"""
from __future__ import annotations

from datetime import date, datetime


def today_str() -> str:
    """Get today's date as ISO string"""
    return date.today().isoformat()


def current_month() -> str:
    """Get the current month key (YYYY-MM)"""
    return today_str()[:7]


def month_key(date_str: str) -> str:
    """Month key (YYYY-MM) of a YYYY-MM-DD date"""
    return date_str[:7]


def format_month_year(month: str) -> str:
    """'2024-03' -> 'March 2024'; empty string for an unusable key"""
    try:
        return datetime.strptime(month, "%Y-%m").strftime("%B %Y")
    except (TypeError, ValueError):
        return ""


def format_short_date(date_str: str) -> str:
    """'2024-03-05' -> '05 / 03 / 24' as printed on the daily sheets; other text is returned as is"""
    parts = date_str.split("-") if date_str else []
    if len(parts) != 3:
        return date_str or ""
    y, m, d = parts
    return f"{d} / {m} / {y[2:]}"


def safe_int(x, default: int = 0) -> int:
    """Convert to int safely, returning default on error"""
    try:
        return int(x)
    except (TypeError, ValueError):
        try:
            return int(float(x))
        except (TypeError, ValueError):
            return default


def percent(part: int, whole: int) -> int:
    """Whole-number percentage rounded half up, 0 for an empty whole"""
    if whole <= 0:
        return 0
    return int(part * 100 / whole + 0.5)
