"""
Row and unit validation utilities
"""
import re
from typing import Optional, Sequence
from pathlib import Path

from config.vocabulary import Vocabulary, get_vocabulary
from models.unit import RentRollUnit
from utils.helpers import find_keywords, is_blank, normalize_string


# "GrandTotal" -> "Grand Total"
_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z])(?=[A-Z])")
# Exclusion keywords at least this long also match run into the next word
_LOOSE_KEYWORD_LENGTH = 5


def _has_exclusion(text: str, keywords: Sequence[str]) -> bool:
    """
    Whole-word match, so "sum" stays out of "Summerfield", plus a word-start
    match for the longer labels so "TOTALUNITS" and "GrandTotal" still count.
    """
    text = _CAMEL_BOUNDARY.sub(" ", text)
    if find_keywords(text, keywords):
        return True
    loose = [k for k in keywords if len(k) >= _LOOSE_KEYWORD_LENGTH]
    return bool(find_keywords(text, loose, whole_word=False))


def is_empty_row(row: Optional[Sequence]) -> bool:
    """True when every cell is blank (or the row has no cells)"""
    if not row:
        return True
    return all(is_blank(cell) for cell in row)


def non_empty_count(row: Sequence) -> int:
    return sum(1 for cell in row if not is_blank(cell))


def is_summary_row(row: Sequence, vocabulary: Optional[Vocabulary] = None) -> bool:
    """
    Aggregate rows ("Grand Total", "Occupied Units", ...) are noise for
    per-unit extraction, even when their cells look numeric.
    """
    vocab = vocabulary or get_vocabulary()
    row_text = " ".join(normalize_string(cell) for cell in row)
    return _has_exclusion(row_text, vocab.exclusion_keywords)


def is_invalid_unit_number(unit_number: str, vocabulary: Optional[Vocabulary] = None) -> bool:
    """A unit number that is really a total/summary label"""
    vocab = vocabulary or get_vocabulary()
    return _has_exclusion(unit_number, vocab.invalid_unit_labels)


def is_likely_header_row(row: Sequence, vocabulary: Optional[Vocabulary] = None) -> bool:
    """
    At least 3 filled cells, 2 or more of which read like column titles.
    Any digit in the row (a unit number, a rent, a date) makes it data.
    """
    if non_empty_count(row) < 3:
        return False
    if any(ch.isdigit() for cell in row for ch in normalize_string(cell)):
        return False

    vocab = vocabulary or get_vocabulary()
    header_like = 0
    for cell in row:
        text = normalize_string(cell).lower()
        if text and find_keywords(text, vocab.header_like_keywords, whole_word=False):
            header_like += 1
    return header_like >= 2


def validate_unit(unit: RentRollUnit, vocabulary: Optional[Vocabulary] = None) -> bool:
    """A unit must have a non-empty unit number that is not a total label"""
    if not unit.unit_number or not unit.unit_number.strip():
        return False
    return not is_invalid_unit_number(unit.unit_number, vocabulary)


def validate_file_extension(filename: str, allowed_extensions: list) -> bool:
    """Validate file extension"""
    if not filename:
        return False

    extension = Path(filename).suffix.lower().lstrip(".")
    return extension in [ext.lower().lstrip(".") for ext in allowed_extensions]
