"""PAINEL — Month Inference.

Derives a (month abbreviation, year) identity from a dataset's filename.
Files are expected to end in a Portuguese 3-letter month token:
``relatorio-meta-nov.csv``, ``kia-google-ago.xlsx``.

The year is not read from the filename. It is inferred from the current date
under the assumption that files are never from the future: a month later than
the current one belongs to last year.
"""

import re
import unicodedata
from datetime import date
from typing import Optional

from app.config import settings

MONTH_ORDER: dict[str, int] = {
    "jan": 1,
    "fev": 2,
    "mar": 3,
    "abr": 4,
    "mai": 5,
    "jun": 6,
    "jul": 7,
    "ago": 8,
    "set": 9,
    "out": 10,
    "nov": 11,
    "dez": 12,
}

MONTH_NAMES: dict[str, str] = {
    "jan": "Janeiro",
    "fev": "Fevereiro",
    "mar": "Março",
    "abr": "Abril",
    "mai": "Maio",
    "jun": "Junho",
    "jul": "Julho",
    "ago": "Agosto",
    "set": "Setembro",
    "out": "Outubro",
    "nov": "Novembro",
    "dez": "Dezembro",
}

UNKNOWN_ACCOUNT = "Desconhecido"

_EXTENSION_RE = re.compile(r"\.(csv|xlsx|xls)$", re.IGNORECASE)
_GOOGLE_ACCOUNT_RE = re.compile(r"^([^-]+)-google-", re.IGNORECASE)
_NON_LETTERS_RE = re.compile(r"[^a-z]")


def strip_accents(text: str) -> str:
    """Remove combining diacritics: 'Março' -> 'Marco'."""
    decomposed = unicodedata.normalize("NFD", text)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def _basename(filename: str) -> str:
    return filename.split("/")[-1] or filename


def extract_month_from_filename(filename: Optional[str]) -> Optional[str]:
    """Return the month abbreviation at the end of a filename, or None.

    Only the last non-empty ``-`` segment is considered, and it must be
    exactly one of the twelve abbreviations once lower-cased and stripped of
    accents and non-letters. ``report-2024.csv`` has no month.
    """
    if not filename:
        return None
    name = _EXTENSION_RE.sub("", _basename(filename))
    parts = [p for p in name.split("-") if p]
    last = parts[-1] if parts else ""
    token = _NON_LETTERS_RE.sub("", strip_accents(last.lower()))
    if len(token) == 3 and token in MONTH_ORDER:
        return token
    return None


def month_value(month: Optional[str]) -> int:
    """1-12 for a known abbreviation, 0 otherwise."""
    if not month:
        return 0
    return MONTH_ORDER.get(month.lower(), 0)


def resolve_today(today: Optional[date] = None) -> date:
    return today or settings.effective_today


def infer_year(month_num: int, today: Optional[date] = None) -> int:
    """Year of a month-only file relative to ``today``.

    Explicit year tokens in the filename are ignored, and files older than
    twelve months cannot be told apart from recent ones.
    """
    ref = resolve_today(today)
    if month_num > ref.month:
        return ref.year - 1
    return ref.year


def extract_account_from_filename(filename: Optional[str]) -> str:
    """Account of a Google multi-account file: ``kia-google-ago.csv`` -> ``Kia``."""
    if not filename:
        return UNKNOWN_ACCOUNT
    match = _GOOGLE_ACCOUNT_RE.match(_basename(filename))
    if match:
        account = match.group(1).lower()
        return account[:1].upper() + account[1:]
    return UNKNOWN_ACCOUNT


def month_sort_value(filename: Optional[str], today: Optional[date] = None) -> int:
    """year * 100 + month; 0 for a filename without month."""
    num = month_value(extract_month_from_filename(filename))
    if num == 0:
        return 0
    return infer_year(num, today) * 100 + num


def month_identity(month: str, year: int) -> str:
    """Canonical month id: ``"ago-2025"``."""
    return f"{month}-{year}"


def month_label(month: str, year: int) -> str:
    """Display label: ``"Agosto 2025"``."""
    return f"{MONTH_NAMES.get(month, month)} {year}"
