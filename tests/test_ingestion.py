"""
Tests for the workbook and PDF decoders and the FileLoader dispatch.
"""
from datetime import date
from unittest.mock import MagicMock, patch

import pytest

from ingestion.loader import FileLoader
from ingestion.parsers import (
    ExcelDecodeError,
    FileDecodeError,
    PdfDecodeError,
    UnsupportedFileTypeError,
    detect_file_type,
)
from ingestion.parsers.excel_parser import parse_excel
from ingestion.parsers.pdf_parser import parse_pdf


# ---------------------------------------------------------------------------
# File type detection
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("name,mime,expected", [
    ("roll.xlsx", "", "excel"),
    ("roll.XLS", "", "excel"),
    ("roll.csv", "", "csv"),
    ("roll.txt", "", "csv"),
    ("roll.pdf", "", "pdf"),
    ("upload", "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet", "excel"),
    ("upload", "application/vnd.ms-excel", "excel"),
    ("upload", "text/plain", "csv"),
    ("upload", "text/csv", "csv"),
    ("upload", "application/pdf", "pdf"),
    # Extension wins over a wrong mime type
    ("roll.csv", "application/pdf", "csv"),
])
def test_detect_file_type(name, mime, expected):
    assert detect_file_type(name, mime) == expected


def test_detect_file_type_unsupported():
    with pytest.raises(UnsupportedFileTypeError, match="Unsupported file type: application/msword"):
        detect_file_type("lease.doc", "application/msword")


# ---------------------------------------------------------------------------
# Excel
# ---------------------------------------------------------------------------

def test_parse_excel_reads_every_sheet_in_order(build_workbook):
    data = build_workbook({
        "Rent Roll": [
            ["Unit", "Tenant", "Rent", "Lease Start"],
            [101, "Jane Doe", 1500.5, date(2025, 7, 1)],
        ],
        "Notes": [["Prepared by", "Accounting"]],
    })
    raw = parse_excel(data, "roll.xlsx")

    assert raw.file_type == "excel"
    assert [s.name for s in raw.sheets] == ["Rent Roll", "Notes"]
    assert [s.index for s in raw.sheets] == [0, 1]

    header, first = raw.sheets[0].rows[0], raw.sheets[0].rows[1]
    assert header == ("Unit", "Tenant", "Rent", "Lease Start")
    assert first[0] == 101
    assert first[1] == "Jane Doe"
    assert first[2] == 1500.5
    assert first[3] == date(2025, 7, 1)


def test_parse_excel_blank_cells_are_none(build_workbook):
    data = build_workbook({"Sheet1": [["Unit", "Tenant"], [101, None]]})
    raw = parse_excel(data, "roll.xlsx")
    assert raw.sheets[0].rows[1] == (101, None)


def test_parse_excel_corrupt_bytes():
    with pytest.raises(ExcelDecodeError, match="Failed to process Excel file"):
        parse_excel(b"definitely not a workbook", "roll.xlsx")


# ---------------------------------------------------------------------------
# PDF
# ---------------------------------------------------------------------------

def _fake_pdf(pages_tables):
    pages = []
    for tables in pages_tables:
        page = MagicMock()
        page.extract_tables.return_value = tables
        pages.append(page)
    pdf = MagicMock()
    pdf.pages = pages
    pdf.__enter__.return_value = pdf
    pdf.__exit__.return_value = False
    return pdf


def test_parse_pdf_one_sheet_per_page_with_tables():
    fake = _fake_pdf([
        [[["Unit", "Tenant", "Rent"], ["101", "Jane Doe", "$1,500.00"]]],
        [],
        [[["102", "John Roe", "1450"], ["103", "", "0"]]],
    ])
    with patch("ingestion.parsers.pdf_parser.pdfplumber.open", return_value=fake):
        raw = parse_pdf(b"%PDF-1.4", "roll.pdf")

    assert raw.file_type == "pdf"
    assert [s.name for s in raw.sheets] == ["Page 1", "Page 3"]
    assert raw.sheets[0].rows[1] == (101, "Jane Doe", 1500.0)
    assert raw.sheets[1].rows[1] == (103, None, 0)


def test_parse_pdf_without_tables_gives_empty_sheet():
    with patch("ingestion.parsers.pdf_parser.pdfplumber.open", return_value=_fake_pdf([[]])):
        raw = parse_pdf(b"%PDF-1.4", "scan.pdf")
    assert len(raw.sheets) == 1
    assert raw.sheets[0].name == "scan"
    assert raw.sheets[0].rows == ()


def test_parse_pdf_unreadable():
    with pytest.raises(PdfDecodeError, match="Failed to process PDF file"):
        parse_pdf(b"not a pdf", "roll.pdf")


# ---------------------------------------------------------------------------
# Loader
# ---------------------------------------------------------------------------

def test_loader_decodes_csv(scenario_csv_bytes):
    raw = FileLoader().decode(scenario_csv_bytes, "roll.csv", "text/csv")
    assert raw.file_type == "csv"
    assert raw.sheets[0].rows[1][1] == "Jane Doe"


def test_loader_uses_mime_when_name_has_no_extension(scenario_csv_bytes):
    raw = FileLoader().decode(scenario_csv_bytes, "upload", "text/plain")
    assert raw.file_type == "csv"


def test_loader_decodes_workbook(rent_roll_workbook_bytes):
    raw = FileLoader().decode(rent_roll_workbook_bytes, "roll.xlsx")
    assert [s.name for s in raw.sheets] == ["Rent Roll", "Summary"]


def test_loader_rejects_unsupported_type():
    with pytest.raises(FileDecodeError):
        FileLoader().decode(b"PK", "lease.docx", "application/msword")


def test_loader_load_file(tmp_path, scenario_csv_bytes):
    path = tmp_path / "roll.csv"
    path.write_bytes(scenario_csv_bytes)
    raw = FileLoader().load_file(str(path))
    assert raw.sheets[0].name == "roll"


def test_supported_extensions():
    assert FileLoader.is_supported("roll.xlsx")
    assert FileLoader.is_supported("roll.PDF")
    assert not FileLoader.is_supported("lease.docx")
    assert "csv" in FileLoader.get_supported_extensions()
