"""
CSV parser - decodes delimited text into RawFileData.

Exports from property-management systems arrive in whatever encoding and
delimiter the vendor picked, so both are sniffed before parsing.
"""
import io
import logging
import re
from pathlib import Path
from typing import List, Optional

import pandas as pd

from config import settings
from ingestion.parsers import CsvDecodeError, EncodingDetectionError
from models.sheet import Cell, RawFileData, RawSheet
from utils.helpers import parse_date

logger = logging.getLogger(__name__)

_NUMERIC_SHAPE = re.compile(r"^[\d.,\-$\s]+$")
_DATE_SHAPE = re.compile(r"\d{1,2}[/\-]\d{1,2}[/\-]\d{2,4}")
_PRINTABLE_CONTROL = {"\t", "\r", "\n"}


def is_valid_text(text: str) -> bool:
    """Fewer than 10% of characters fall outside printable ASCII."""
    if not text:
        return True
    non_printable = sum(
        1 for ch in text
        if not ("\x20" <= ch <= "\x7e") and ch not in _PRINTABLE_CONTROL
    )
    return non_printable < len(text) * settings.MAX_NON_PRINTABLE_RATIO


def decode_text(raw: bytes, encodings: Optional[List[str]] = None) -> str:
    """
    Try each candidate encoding in order and return the first decoding
    that reads as text.

    Raises:
        EncodingDetectionError: if no candidate qualifies.
    """
    for encoding in encodings or settings.CSV_ENCODINGS:
        try:
            text = raw.decode(encoding)
        except (UnicodeDecodeError, LookupError):
            continue

        text = text.lstrip("\ufeff")
        if is_valid_text(text):
            logger.debug("Decoded text as %s", encoding)
            return text

    raise EncodingDetectionError("Could not detect text encoding")


def detect_delimiter(text: str, delimiters: Optional[List[str]] = None) -> str:
    """
    Pick the delimiter whose per-line count is most consistent across the
    first few lines: consistency = 1 - (max - min) / average. Ties go to the
    delimiter that occurs more often, then to the earlier candidate.
    """
    candidates = delimiters or settings.CSV_DELIMITERS
    sample_lines = text.splitlines()[: settings.DELIMITER_SAMPLE_LINES]

    best_delimiter = ","
    best_score = (0.0, 0.0)

    if not sample_lines:
        return best_delimiter

    for delimiter in candidates:
        counts = [line.count(delimiter) for line in sample_lines]
        average = sum(counts) / len(counts)
        if average <= 0:
            continue

        consistency = 1 - (max(counts) - min(counts)) / average
        score = (consistency, average)
        if score > best_score:
            best_score = score
            best_delimiter = delimiter

    return best_delimiter


def parse_value(text: str) -> Cell:
    """
    Coerce one delimited field.

    Empty -> None; digits/$/,/-/. only -> number; m/d/y shaped and
    parseable -> date; anything else -> trimmed string.
    """
    value = text.strip()
    if value in ("", '""'):
        return None

    if len(value) >= 2 and value.startswith('"') and value.endswith('"'):
        value = value[1:-1].strip()
        if value == "":
            return None

    if _NUMERIC_SHAPE.match(value):
        cleaned = value.replace("$", "").replace(",", "").strip()
        try:
            number = float(cleaned)
        except ValueError:
            pass
        else:
            if "." not in cleaned and number.is_integer():
                return int(number)
            return number

    if _DATE_SHAPE.search(value):
        parsed = parse_date(value)
        if parsed is not None:
            return parsed

    return value


def _read_frame(text: str, delimiter: str) -> pd.DataFrame:
    """
    Read every field as text with no header. Short lines are padded out to
    the widest line; padding comes back as NaN while empty fields stay "".
    """
    width = max(line.count(delimiter) for line in text.splitlines()) + 1
    df = pd.read_csv(
        io.StringIO(text),
        sep=delimiter,
        header=None,
        names=list(range(width)),
        dtype=str,
        keep_default_na=False,
        skip_blank_lines=True,
        skipinitialspace=True,
    )
    # Quoted delimiters overcount the width; drop columns no line reached
    return df.dropna(axis=1, how="all")


def parse_csv(file_bytes: bytes, file_name: str) -> RawFileData:
    """
    Decode delimited text into a single-sheet RawFileData.

    The sheet is named after the file with its extension stripped.

    Raises:
        EncodingDetectionError: if the text encoding cannot be detected.
        CsvDecodeError: if the text cannot be split into rows.
    """
    text = decode_text(file_bytes)
    delimiter = detect_delimiter(text)
    logger.info("Parsing %s with delimiter %r", file_name, delimiter)

    rows: List[List[Cell]] = []
    if text.strip():
        try:
            df = _read_frame(text, delimiter)
        except Exception as e:
            raise CsvDecodeError(f"Failed to process CSV file: {e}") from e

        for record in df.itertuples(index=False, name=None):
            fields = [v for v in record if isinstance(v, str)]
            # Whitespace-only lines carry no cells at all
            if len(fields) <= 1 and not "".join(fields).strip():
                continue
            rows.append([parse_value(v) if isinstance(v, str) else None for v in record])

    sheet = RawSheet(name=Path(file_name).stem or file_name, index=0, rows=rows)
    return RawFileData(file_type="csv", sheets=[sheet])
