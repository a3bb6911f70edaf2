"""
PDF parser - rent rolls exported to PDF, one RawSheet per page with tables.
"""
import io
import logging
from pathlib import Path
from typing import List

import pdfplumber

from ingestion.parsers import PdfDecodeError
from ingestion.parsers.csv_parser import parse_value
from models.sheet import Cell, RawFileData, RawSheet

logger = logging.getLogger(__name__)


def _table_rows(table: list) -> List[List[Cell]]:
    rows: List[List[Cell]] = []
    for raw_row in table:
        rows.append([parse_value(str(cell)) if cell is not None else None for cell in raw_row])
    return rows


def parse_pdf(file_bytes: bytes, file_name: str) -> RawFileData:
    """
    Extract tables with pdfplumber. Every page that holds at least one
    table of two or more rows becomes a sheet named "Page N"; the tables on
    a page are stacked in reading order. Cells are coerced like CSV fields.

    Raises:
        PdfDecodeError: if the PDF cannot be opened or read.
    """
    sheets: List[RawSheet] = []
    try:
        with pdfplumber.open(io.BytesIO(file_bytes)) as pdf:
            for page_number, page in enumerate(pdf.pages, start=1):
                page_rows: List[List[Cell]] = []
                for table in page.extract_tables():
                    if table and len(table) > 1:
                        page_rows.extend(_table_rows(table))
                if page_rows:
                    sheets.append(
                        RawSheet(name=f"Page {page_number}", index=len(sheets), rows=page_rows)
                    )
    except Exception as e:
        raise PdfDecodeError(f"Failed to process PDF file: {e}") from e

    if not sheets:
        logger.warning("No tables found in %s", file_name)
        sheets.append(RawSheet(name=Path(file_name).stem or file_name, index=0, rows=()))

    return RawFileData(file_type="pdf", sheets=sheets)
