"""
Pytest fixtures for the rent roll pipeline test suite.
"""
import io
from datetime import date
from unittest.mock import MagicMock

import openpyxl
import pytest

from config.vocabulary import Vocabulary
from engine.rent_roll_processor import RentRollProcessor
from models.sheet import RawSheet
from storage.detection_cache import NullDetectionCache


def _build_workbook(sheets: dict) -> bytes:
    """Serialize {sheet name: list of rows} to .xlsx bytes."""
    wb = openpyxl.Workbook()
    wb.remove(wb.active)
    for name, rows in sheets.items():
        ws = wb.create_sheet(title=name)
        for row in rows:
            ws.append(list(row))
    buffer = io.BytesIO()
    wb.save(buffer)
    return buffer.getvalue()


@pytest.fixture
def build_workbook():
    """Factory turning {sheet name: rows} into .xlsx bytes."""
    return _build_workbook


@pytest.fixture
def vocabulary():
    """Built-in keyword vocabulary."""
    return Vocabulary()


@pytest.fixture
def scenario_csv_bytes():
    """Four-column rent roll with a trailing total row."""
    return (
        b"Unit,Tenant,Rent,Status\n"
        b"101,Jane Doe,1500,Occupied\n"
        b"102,,0,Vacant\n"
        b"TOTAL,,1500,\n"
    )


@pytest.fixture
def rent_roll_rows():
    """A realistic rent roll grid: title rows, headers, units and totals."""
    return [
        ["Oak Park Apartments", None, None, None, None, None, None, None],
        ["As of 02/01/2026", None, None, None, None, None, None, None],
        ["Unit", "Floor Plan", "SqFt", "Resident Name", "Market Rent", "Current Rent",
         "Lease Start", "Lease End"],
        ["101", "A1", 750, "Alice Smith", 1300, 1250, date(2025, 3, 1), date(2026, 2, 28)],
        ["102", "A1", 750, "Bob Jones", 1300, "$1,275.00", "04/15/2025", "04/14/2026"],
        ["103", "B2", 1100, "VACANT", 1700, None, None, None],
        [None, None, None, None, None, None, None, None],
        ["Total", None, 2600, None, 4300, 2525, None, None],
    ]


@pytest.fixture
def rent_roll_sheet(rent_roll_rows):
    return RawSheet(name="Oak Park", index=0, rows=rent_roll_rows)


@pytest.fixture
def rent_roll_workbook_bytes():
    """Workbook with a rent roll tab and a summary tab."""
    return _build_workbook({
        "Rent Roll": [
            ["Unit", "Tenant", "Rent", "Status", "Lease End"],
            [101, "Jane Doe", 1500, "Occupied", date(2026, 6, 30)],
            [102, "John Roe", 1450, "Occupied", date(2026, 8, 31)],
            [103, None, None, "Vacant", None],
        ],
        "Summary": [
            ["Total Units", 3],
            ["Occupied", 2],
            ["Total Rent", 2950],
        ],
    })


@pytest.fixture
def heuristic_processor():
    """Processor with no model and no cache."""
    return RentRollProcessor(agent=None, cache=NullDetectionCache())


@pytest.fixture
def failing_agent():
    """Agent stand-in whose every call fails."""
    from agents.rent_roll_agent import AIAnalysisError

    agent = MagicMock()
    agent.available = True
    agent.classify_sheet.side_effect = AIAnalysisError("AI analysis failed: timeout")
    agent.analyze_headers.side_effect = AIAnalysisError("AI analysis failed: timeout")
    return agent
