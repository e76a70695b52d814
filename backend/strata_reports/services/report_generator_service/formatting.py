"""
Formatting — locale-stable date, currency, and PDF-safe text helpers.

Part of the report_generator_service package.
"""

import logging
import re as _re
from datetime import date, datetime, timezone
from typing import Any, Optional

from dateutil import parser as _date_parser

logger = logging.getLogger(__name__)

MONTH_NAMES = [
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
]
_MONTH_ABBREVS = [name[:3] for name in MONTH_NAMES]

# Fixed default so partial strings never borrow fields from "today"
_PARSE_DEFAULT = datetime(1970, 1, 1)

# Regex to strip emoji characters (Helvetica lacks emoji glyphs)
_EMOJI_RE = _re.compile(
    "["
    "\U0001F300-\U0001F9FF"  # Misc Symbols, Emoticons, Supplemental Symbols
    "\U00002702-\U000027B0"  # Dingbats
    "\U0000FE00-\U0000FE0F"  # Variation Selectors
    "\U0000200D"             # Zero Width Joiner
    "\U000024C2-\U0001F251"  # Enclosed chars
    "]+",
)

_PDF_REPLACEMENTS = {
    "\u2013": "-",    # en-dash
    "\u2014": "--",   # em-dash
    "\u2018": "'",    # left single quote
    "\u2019": "'",    # right single quote
    "\u201c": '"',    # left double quote
    "\u201d": '"',    # right double quote
    "\u2026": "...",  # ellipsis
    "\u2022": "*",    # bullet
    "\u00a0": " ",    # non-breaking space
    "\u2212": "-",    # minus sign
    "\u2192": "->",   # right arrow
    "\u2713": "OK",   # check mark
    "\u23f3": "..",   # hourglass
}


def _from_epoch(value: Any, scale: float = 1.0) -> datetime:
    """UTC datetime from an epoch value; out-of-range values raise ValueError."""
    try:
        return datetime.fromtimestamp(float(value) / scale, tz=timezone.utc)
    except (OverflowError, OSError, TypeError, ValueError) as e:
        raise ValueError(f"Timestamp out of range: {value!r}") from e


def to_datetime(value: Any) -> Optional[datetime]:
    """
    Coerce a payload date into a datetime.

    Accepts datetime/date objects, Firestore-style ``{"_seconds": n}``
    timestamps, epoch milliseconds, and ISO-ish strings.

    Returns None for empty values; raises ValueError when the value is
    present but unparseable.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if isinstance(value, dict):
        seconds = value.get("_seconds", value.get("seconds"))
        if seconds is None:
            raise ValueError(f"Unrecognized timestamp object: {value!r}")
        return _from_epoch(seconds)
    if isinstance(value, bool):
        raise ValueError(f"Not a date: {value!r}")
    if isinstance(value, (int, float)):
        return _from_epoch(value, 1000.0)
    if isinstance(value, str):
        text = value.strip()
        try:
            return _date_parser.isoparse(text)
        except ValueError:
            pass
        try:
            return _date_parser.parse(text, default=_PARSE_DEFAULT)
        except (ValueError, OverflowError) as e:
            raise ValueError(f"Unparseable date: {value!r}") from e
    raise ValueError(f"Unsupported date type: {type(value).__name__}")


def format_date(value: Any) -> str:
    """Format a date as 'Month D, YYYY'.

    Missing values render as "N/A" and unparseable ones as "Invalid Date".
    """
    try:
        dt = to_datetime(value)
    except ValueError:
        return "Invalid Date"
    if dt is None:
        return "N/A"
    return f"{MONTH_NAMES[dt.month - 1]} {dt.day}, {dt.year}"


def month_key(value: Any) -> Optional[str]:
    """Group key for monthly charts, e.g. 'Mar 2024'. None if unparseable."""
    try:
        dt = to_datetime(value)
    except ValueError:
        return None
    if dt is None:
        return None
    return f"{_MONTH_ABBREVS[dt.month - 1]} {dt.year}"


def to_number(value: Any, default: float = 0.0) -> float:
    """Lenient numeric coercion for payload amounts ("125000.00", None, 12)."""
    if value is None or isinstance(value, bool):
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        logger.debug("Non-numeric amount %r, using %s", value, default)
        return default


def format_currency(amount: Any) -> str:
    """Format an amount as US dollars with thousands separators."""
    return f"${to_number(amount):,.2f}"


def format_percent(numerator: float, denominator: float, decimals: int = 1) -> str:
    """Percentage string, '0' when the denominator is not positive."""
    if denominator <= 0:
        return "0"
    return f"{numerator / denominator * 100:.{decimals}f}"


def format_axis_currency(value: float) -> str:
    """Y-axis tick label: '$' plus thousands separators, no cents."""
    if value == int(value):
        return f"${int(value):,}"
    return f"${value:,.2f}"


def sanitize_for_pdf(text: Any) -> str:
    """Replace Unicode characters unsupported by Helvetica (Latin-1) with ASCII equivalents."""
    text = "" if text is None else str(text)
    for char, replacement in _PDF_REPLACEMENTS.items():
        text = text.replace(char, replacement)
    # Strip emoji after mapping status glyphs that share the dingbat range
    text = _EMOJI_RE.sub("", text)
    # Fallback: replace any remaining non-Latin-1 chars
    return text.encode("latin-1", errors="replace").decode("latin-1")


def sanitize_filename(title: str) -> str:
    """Download filename for a report title: non-alphanumerics become '_'."""
    stem = _re.sub(r"[^a-zA-Z0-9]", "_", title or "")
    return f"{stem or 'report'}.pdf"


def hex_to_rgb(hex_color: str) -> tuple:
    """Convert hex color string to RGB tuple."""
    hex_color = hex_color.lstrip("#")
    if len(hex_color) == 3:
        hex_color = "".join(ch * 2 for ch in hex_color)
    return (
        int(hex_color[0:2], 16),
        int(hex_color[2:4], 16),
        int(hex_color[4:6], 16),
    )
