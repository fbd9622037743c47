"""
Base utilities for import parsers.

Common patterns for text normalization, number parsing, date parsing
and spreadsheet header matching.
"""

import math
import re
import unicodedata
from datetime import date, datetime

# Romanian diacritics folded for header comparison (comma and cedilla forms)
DIACRITIC_MAP = str.maketrans(
    {
        "ț": "t",
        "ţ": "t",
        "ă": "a",
        "â": "a",
        "î": "i",
        "ș": "s",
        "ş": "s",
    }
)


def normalize_unicode(text: str) -> str:
    """Normalize Unicode text to NFKC form."""
    return unicodedata.normalize("NFKC", text)


def normalize_header(header: str) -> str:
    """
    Normalize a column header for comparison.

    - "  Cost  preț magazin 50% " -> "cost pret magazin 50%"
    """
    return " ".join(header.strip().lower().split()).translate(DIACRITIC_MAP)


def normalize_number(value: str) -> str | None:
    """
    Normalize number string by removing thousand separators.

    Handles:
    - "1,234.56" -> "1234.56"
    - "1.234,56" -> "1234.56" (European format)
    - "1 234.56" -> "1234.56" (space separator)
    """
    if not value or not value.strip():
        return None

    cleaned = value.replace(" ", "").strip()

    # Whichever separator comes last is the decimal point
    comma_pos = cleaned.rfind(",")
    dot_pos = cleaned.rfind(".")

    if comma_pos > dot_pos:
        cleaned = cleaned.replace(".", "").replace(",", ".")
    else:
        cleaned = cleaned.replace(",", "")

    cleaned = re.sub(r"[^\d.\-]", "", cleaned)

    return cleaned if cleaned else None


def parse_number(value: object) -> float | None:
    """
    Parse a cell or text value to float.

    Returns None for blanks, booleans, non-finite and unparseable values.
    """
    if value is None or value == "" or isinstance(value, bool):
        return None

    if isinstance(value, (int, float)):
        number = float(value)
        return number if math.isfinite(number) else None

    normalized = normalize_number(str(value))
    if not normalized:
        return None

    try:
        number = float(normalized)
    except ValueError:
        return None
    return number if math.isfinite(number) else None


def clean_item_name(name: str) -> str:
    """
    Clean item name by removing noise.

    - Removes leading/trailing whitespace
    - Collapses multiple spaces
    - Removes line numbers
    """
    if not name:
        return ""

    name = normalize_unicode(name)

    # Leading line numbers (1., 1-, 1), etc.)
    name = re.sub(r"^\s*\d+[\.\-\)]\s*", "", name)

    name = " ".join(name.split())

    return name.strip()


def parse_date(value: object) -> str | None:
    """
    Parse a date value into ISO format (YYYY-MM-DD).

    Handles date/datetime objects, ISO strings and European DD/MM/YYYY or
    DD.MM.YYYY strings. Returns None when nothing matches.
    """
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if not isinstance(value, str) or not value.strip():
        return None

    text = value.strip()

    iso_match = re.match(r"(\d{4})-(\d{1,2})-(\d{1,2})", text)
    if iso_match:
        year, month, day = map(int, iso_match.groups())
        try:
            return date(year, month, day).isoformat()
        except ValueError:
            return None

    numeric_match = re.match(r"(\d{1,2})[/.](\d{1,2})[/.](\d{4})", text)
    if numeric_match:
        a, b, year = map(int, numeric_match.groups())
        # Day first unless the second part cannot be a month
        day, month = (b, a) if b > 12 else (a, b)
        try:
            return date(year, month, day).isoformat()
        except ValueError:
            return None

    return None
