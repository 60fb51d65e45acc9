"""Display helpers shared by API responses: money, dates, ratings, names."""
from datetime import datetime

import pytz

from souqote.config import settings


FULL_STAR = "★"
HALF_STAR = "⯪"
EMPTY_STAR = "☆"


def format_currency(amount, currency: str | None = None) -> str:
    """
    Format an amount the way en-AE displays money, e.g. "AED 1,234" or
    "AED 1,234.50". Whole amounts are shown without decimals.
    """
    currency = currency or settings.DEFAULT_CURRENCY
    if amount is None:
        amount = 0
    amount = float(amount)
    sign = "-" if amount < 0 else ""
    value = abs(amount)

    if round(value, 2) == int(round(value, 2)):
        body = f"{int(round(value)):,}"
    else:
        body = f"{value:,.2f}"
    return f"{sign}{currency} {body}"


def time_ago(dt: datetime | None, now: datetime | None = None) -> str:
    if dt is None:
        return ""
    now = now or datetime.utcnow()
    if dt.tzinfo is not None and now.tzinfo is None:
        now = now.replace(tzinfo=pytz.utc)
    elif dt.tzinfo is None and now.tzinfo is not None:
        dt = dt.replace(tzinfo=pytz.utc)

    minutes = int((now - dt).total_seconds() // 60)
    if minutes < 1:
        return "Just now"
    if minutes < 60:
        return f"{minutes}m ago"

    hours = minutes // 60
    if hours < 24:
        return f"{hours}h ago"

    return f"{hours // 24}d ago"


def render_stars(rating, max_stars: int = 5) -> str:
    rating = max(0.0, min(float(rating or 0), float(max_stars)))
    full = int(rating)
    half = 1 if rating - full >= 0.5 else 0
    empty = max_stars - full - half
    return FULL_STAR * full + HALF_STAR * half + EMPTY_STAR * empty


def _field(user, name):
    if user is None:
        return None
    if isinstance(user, dict):
        return user.get(name)
    return getattr(user, name, None)


def display_name(user, fallback: str = "User") -> str:
    first = (_field(user, "first_name") or "").strip()
    last = (_field(user, "last_name") or "").strip()
    full = f"{first} {last}".strip()
    return full or (_field(user, "company_name") or "").strip() or fallback


def initials(user, fallback: str = "U") -> str:
    first = (_field(user, "first_name") or "").strip()
    last = (_field(user, "last_name") or "").strip()
    company = (_field(user, "company_name") or "").strip()

    if first and last:
        return f"{first[0]}{last[0]}".upper()
    if first:
        return first[0].upper()
    if company:
        return company[0].upper()
    return fallback


def to_local(dt: datetime) -> datetime:
    tz = pytz.timezone(settings.TIMEZONE)
    if dt.tzinfo is None:
        dt = pytz.utc.localize(dt)
    return dt.astimezone(tz)


def format_date(dt: datetime | None) -> str:
    if dt is None:
        return ""
    local = to_local(dt)
    return f"{local.day} {local.strftime('%B %Y')}"
