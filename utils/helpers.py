"""
Helper utility functions
"""
from datetime import datetime, date
from functools import lru_cache
from typing import Iterable, List, Optional, Sequence
import math
import re

from dateutil import parser as date_parser

from config import settings


_DEFAULT_NON_VALUE_MARKERS = ("down", "vacant", "n/a", "na", "tbd", "pending", "-")

_DATE_FORMATS = [
    "%Y-%m-%d",  # 2026-02-01
    "%m/%d/%Y",  # 02/01/2026
    "%m/%d/%y",  # 02/01/26
    "%m-%d-%Y",  # 02-01-2026
    "%Y/%m/%d",  # 2026/02/01
    "%d/%m/%Y",  # 13/02/2026
    "%b %d, %Y",  # Feb 01, 2026
    "%B %d, %Y",  # February 01, 2026
    "%d-%b-%Y",  # 01-Feb-2026
]

# Something shaped like a date: two digit groups with a separator, or a month name
_DATE_SHAPE = re.compile(
    r"\d+\s*[/\-.]\s*\d+|\b(jan|feb|mar|apr|may|jun|jul|aug|sep|oct|nov|dec)[a-z]*\b",
    re.IGNORECASE,
)
_COLUMN_LETTERS = re.compile(r"^[A-Z]+$")


def column_index_to_letter(index: int) -> str:
    """
    Convert a 0-based column index to a spreadsheet letter
    Examples: 0 -> "A", 25 -> "Z", 26 -> "AA", 701 -> "ZZ"
    """
    if index < 0:
        raise ValueError(f"Column index must be non-negative, got {index}")

    result = ""
    while index >= 0:
        result = chr(65 + index % 26) + result
        index = index // 26 - 1
    return result


def column_letter_to_index(letter: str) -> int:
    """
    Convert a spreadsheet column letter to a 0-based index
    Examples: "A" -> 0, "Z" -> 25, "AA" -> 26
    """
    normalized = str(letter).strip().upper()
    if not _COLUMN_LETTERS.match(normalized):
        raise ValueError(f"Invalid column letter: {letter!r}")

    result = 0
    for char in normalized:
        result = result * 26 + (ord(char) - 64)
    return result - 1


def is_blank(value) -> bool:
    """True for None, NaN and whitespace-only strings"""
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    return isinstance(value, str) and value.strip() == ""


def normalize_string(value) -> str:
    """Render a cell as trimmed text (None -> "")"""
    if is_blank(value):
        return ""
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def normalize_unit_number(value) -> str:
    """
    Clean a unit identifier
    Examples: 101.0 -> "101", "  4B " -> "4B"
    """
    return re.sub(r"\s+", " ", normalize_string(value))


def parse_number(value, markers: Sequence[str] = _DEFAULT_NON_VALUE_MARKERS) -> Optional[float]:
    """
    Parse a numeric cell. Invalid input gives None, never zero.
    Examples: "$1,234.56" -> 1234.56, "($50.00)" -> -50.0, "N/A" -> None
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, (int, float)):
        number = float(value)
        return None if math.isnan(number) or math.isinf(number) else number

    if isinstance(value, date):
        return None

    text = str(value).strip()
    if text == "" or text.lower() in markers:
        return None

    negative = text.startswith("(") and text.endswith(")")
    if negative:
        text = text[1:-1]

    text = re.sub(r"[$,\s%]", "", text)
    try:
        number = float(text)
    except ValueError:
        return None

    if math.isnan(number) or math.isinf(number):
        return None
    return -number if negative else number


def parse_date(value, markers: Sequence[str] = _DEFAULT_NON_VALUE_MARKERS) -> Optional[date]:
    """
    Parse various date formats to a date object. Native date cells are
    accepted as-is; dates outside the configured year window give None.
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, datetime):
        parsed = value.date()
    elif isinstance(value, date):
        parsed = value
    elif isinstance(value, (int, float)):
        return None
    else:
        parsed = _parse_date_text(str(value).strip(), markers)

    if parsed is None:
        return None
    if not settings.MIN_VALID_YEAR <= parsed.year <= settings.MAX_VALID_YEAR:
        return None
    return parsed


def _parse_date_text(text: str, markers: Sequence[str]) -> Optional[date]:
    if not text or text.lower() in markers:
        return None

    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue

    if not _DATE_SHAPE.search(text):
        return None

    try:
        return date_parser.parse(text).date()
    except (ValueError, OverflowError):
        return None


def format_date_iso(value: Optional[date]) -> str:
    """YYYY-MM-DD, or empty string when there is no date"""
    if value is None:
        return ""
    return value.strftime(settings.DATE_FORMAT)


def flatten_row_text(row: Iterable) -> str:
    """Join a row's cells into one lowercase string"""
    return " ".join(normalize_string(cell).lower() for cell in row)


@lru_cache(maxsize=1024)
def keyword_pattern(keyword: str, whole_word: bool = True) -> "re.Pattern":
    """
    Match a keyword that does not start inside another word ("rent" but not
    the tail of "current"). With whole_word it must also end a word, allowing
    a plural "s" ("sum" matches "sums" but not "summerfield").
    """
    pattern = r"(?<![a-z])" + re.escape(keyword.lower())
    if whole_word:
        pattern += r"s?(?![a-z])"
    return re.compile(pattern)


def find_keywords(text: str, keywords: Iterable[str], whole_word: bool = True) -> List[str]:
    """Return the keywords that occur in text"""
    lowered = text.lower()
    return [k for k in keywords if keyword_pattern(k, whole_word).search(lowered)]


def generate_id(prefix: str = "") -> str:
    """Generate a unique ID"""
    from uuid import uuid4
    unique = uuid4().hex[:12]
    if prefix:
        return f"{prefix}_{unique}"
    return unique
