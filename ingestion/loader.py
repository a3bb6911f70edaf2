"""
Unified file loader - routes uploaded bytes to the matching decoder.
"""
import logging
from pathlib import Path
from typing import Optional

from ingestion.parsers import (
    EXCEL_EXTENSIONS,
    PDF_EXTENSIONS,
    TEXT_EXTENSIONS,
    detect_file_type,
)
from ingestion.parsers.csv_parser import parse_csv
from ingestion.parsers.excel_parser import parse_excel
from ingestion.parsers.pdf_parser import parse_pdf
from models.sheet import RawFileData
from utils.validations import validate_file_extension

logger = logging.getLogger(__name__)


class FileLoader:
    """
    Unified file loader that routes files to the appropriate decoder
    based on file extension, then declared mime type.
    """

    DECODERS = {
        "excel": parse_excel,
        "csv": parse_csv,
        "pdf": parse_pdf,
    }

    SUPPORTED_EXTENSIONS = sorted(EXCEL_EXTENSIONS | TEXT_EXTENSIONS | PDF_EXTENSIONS)

    def decode(
        self,
        file_bytes: bytes,
        file_name: str,
        mime_type: Optional[str] = "",
    ) -> RawFileData:
        """
        Decode a file into sheets of raw rows.

        Raises:
            FileDecodeError: (or a subclass) when the file cannot be decoded.
        """
        file_type = detect_file_type(file_name, mime_type)
        logger.info("Decoding %s as %s (%d bytes)", file_name, file_type, len(file_bytes))
        return self.DECODERS[file_type](file_bytes, file_name)

    def load_file(self, file_path: str, mime_type: Optional[str] = "") -> RawFileData:
        """Read a file from disk and decode it."""
        path = Path(file_path)
        return self.decode(path.read_bytes(), path.name, mime_type)

    @classmethod
    def get_supported_extensions(cls) -> list:
        """Get list of supported file extensions."""
        return list(cls.SUPPORTED_EXTENSIONS)

    @classmethod
    def is_supported(cls, filename: str) -> bool:
        """Check if a filename has a supported extension."""
        return validate_file_extension(filename, cls.SUPPORTED_EXTENSIONS)
