"""
Excel parser (.xlsx / .xls) - one RawSheet per worksheet.
"""
import io
import logging
import math
from datetime import date, datetime, time
from pathlib import Path
from typing import List, Optional

import pandas as pd

from ingestion.parsers import ExcelDecodeError
from models.sheet import Cell, RawFileData, RawSheet, Row

logger = logging.getLogger(__name__)


def _to_cell(value) -> Cell:
    """Collapse pandas/numpy scalars into the decoder's cell shapes."""
    if value is None or value is pd.NaT:
        return None
    if isinstance(value, datetime):  # includes pd.Timestamp
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, time):
        return value.isoformat()
    if pd.api.types.is_bool(value):
        return str(bool(value))
    if pd.api.types.is_integer(value):
        return int(value)
    if pd.api.types.is_float(value):
        number = float(value)
        return None if math.isnan(number) else number
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return str(value)


def _frame_rows(df: pd.DataFrame) -> List[Row]:
    return [
        tuple(_to_cell(v) for v in record)
        for record in df.itertuples(index=False, name=None)
    ]


def _engine_for(file_name: str) -> Optional[str]:
    ext = Path(file_name or "").suffix.lower()
    if ext == ".xls":
        return "xlrd"
    if ext in (".xlsx", ".xlsm"):
        return "openpyxl"
    # Let pandas sniff the workbook format from the bytes
    return None


def parse_excel(file_bytes: bytes, file_name: str = "") -> RawFileData:
    """
    Decode a workbook. Each worksheet becomes one RawSheet in workbook
    order; date cells come back as ``datetime.date`` values.

    Raises:
        ExcelDecodeError: if the workbook cannot be read.
    """
    sheets: List[RawSheet] = []
    try:
        xls = pd.ExcelFile(io.BytesIO(file_bytes), engine=_engine_for(file_name))
        for index, name in enumerate(xls.sheet_names):
            # Raw grid: header detection happens downstream
            df = xls.parse(name, header=None, keep_default_na=False, na_values=[""])
            sheets.append(RawSheet(name=str(name), index=index, rows=_frame_rows(df)))
    except Exception as e:
        raise ExcelDecodeError(f"Failed to process Excel file: {e}") from e

    logger.info(
        "Read workbook %s: %d sheet(s) %s",
        file_name or "<bytes>", len(sheets), [s.name for s in sheets],
    )
    return RawFileData(file_type="excel", sheets=sheets)
