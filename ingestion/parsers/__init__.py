"""
ingestion.parsers - format decoders returning RawFileData.
"""
from pathlib import Path
from typing import Optional


class FileDecodeError(Exception):
    """Base class for file-level failures; the whole file is abandoned."""


class UnsupportedFileTypeError(FileDecodeError):
    """Raised when neither the extension nor the mime type is readable."""


class ExcelDecodeError(FileDecodeError):
    """Raised when workbook bytes cannot be read."""


class CsvDecodeError(FileDecodeError):
    """Raised when delimited text cannot be parsed."""


class EncodingDetectionError(CsvDecodeError):
    """Raised when no candidate encoding yields mostly printable text."""


class PdfDecodeError(FileDecodeError):
    """Raised when a PDF export cannot be opened."""


EXCEL_EXTENSIONS = {"xlsx", "xls", "xlsm"}
TEXT_EXTENSIONS = {"csv", "tsv", "txt"}
PDF_EXTENSIONS = {"pdf"}


def detect_file_type(file_name: str, mime_type: Optional[str] = "") -> str:
    """
    Decide how to decode a file.

    Returns one of: "excel", "csv", "pdf". The extension wins over the
    declared mime type; textual mime types fall back to delimited decoding.
    """
    extension = Path(file_name or "").suffix.lower().lstrip(".")
    mime = (mime_type or "").lower()

    if extension in EXCEL_EXTENSIONS:
        return "excel"
    if extension in TEXT_EXTENSIONS:
        return "csv"
    if extension in PDF_EXTENSIONS:
        return "pdf"

    if "spreadsheet" in mime or "excel" in mime:
        return "excel"
    if "csv" in mime or mime.startswith("text/"):
        return "csv"
    if mime == "application/pdf":
        return "pdf"

    declared = mime or (f".{extension}" if extension else "unknown")
    raise UnsupportedFileTypeError(
        f"Unsupported file type: {declared}. "
        "Only Excel (.xlsx, .xls), CSV and PDF files are supported."
    )
