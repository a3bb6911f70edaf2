"""
Tests for engine.header_detector - keyword fallback, model path and cache.
"""
from unittest.mock import MagicMock

import pytest

from agents.rent_roll_agent import ColumnMappingSchema, HeaderAnalysisSchema
from engine.header_detector import (
    HeaderDetector,
    HeuristicHeaderDetector,
    extract_headers,
    find_data_start_row,
)
from models.sheet import HeaderDetectionResult, RawSheet
from storage.detection_cache import InMemoryDetectionCache


def _agent_returning(response):
    agent = MagicMock()
    agent.available = True
    agent.analyze_headers.return_value = response
    return agent


# ---------------------------------------------------------------------------
# Keyword fallback
# ---------------------------------------------------------------------------

def test_heuristic_finds_header_below_title_rows(rent_roll_sheet, vocabulary):
    result = HeuristicHeaderDetector(vocabulary).detect(rent_roll_sheet.rows)

    assert result.header_row == 2
    assert result.data_start_row == 3
    assert result.method == "heuristic"
    assert result.column_mapping == {
        "unit_number": "A",
        "floor_plan": "B",
        "square_footage": "C",
        "tenant_name": "D",
        "market_rent": "E",
        "current_rent": "F",
        "lease_start": "G",
        "lease_end": "H",
    }
    assert result.headers["D"] == "Resident Name"
    assert result.confidence == pytest.approx(8 / 9)


def test_specific_keyword_wins_within_a_cell(vocabulary):
    detector = HeuristicHeaderDetector(vocabulary)
    assert detector.match_cell("market rent") == ["market_rent"]
    assert detector.match_cell("unit type") == ["floor_plan"]
    assert detector.match_cell("current rent") == ["current_rent"]


def test_unit_qualifier_yields_to_the_qualified_field(vocabulary):
    detector = HeuristicHeaderDetector(vocabulary)
    assert detector.match_cell("unit sq ft") == ["square_footage"]
    assert detector.match_cell("unit status") == ["occupancy_status"]
    assert detector.match_cell("unit #") == ["unit_number"]


def test_yardi_style_headers_keep_unit_in_first_column(vocabulary):
    rows = [["Unit", "Unit Type", "Unit Sq Ft", "Resident", "Name", "Market Rent", "Amount"]]
    mapping = HeuristicHeaderDetector(vocabulary).detect(rows).column_mapping

    assert mapping["unit_number"] == "A"
    assert mapping["floor_plan"] == "B"
    assert mapping["square_footage"] == "C"
    assert mapping["tenant_name"] == "E"
    assert mapping["market_rent"] == "F"
    assert mapping["current_rent"] == "G"


def test_rent_is_not_found_inside_current(vocabulary):
    assert HeuristicHeaderDetector(vocabulary).match_cell("current status") == ["occupancy_status"]


def test_last_matching_column_wins(vocabulary):
    rows = [["Unit", "Rent", "Monthly Rent", "Tenant"]]
    result = HeuristicHeaderDetector(vocabulary).detect(rows)
    assert result.column_mapping["current_rent"] == "C"


def test_ties_keep_the_first_row(vocabulary):
    rows = [
        ["Unit", "Rent", None],
        ["Unit", "Tenant", None],
        ["101", "Jane", 1500],
    ]
    result = HeuristicHeaderDetector(vocabulary).detect(rows)
    assert result.header_row == 0


def test_no_header_row(vocabulary):
    rows = [["foo", "bar"], [1, 2], [3, 4]]
    result = HeuristicHeaderDetector(vocabulary).detect(rows)
    assert result.header_row == -1
    assert result.data_start_row == -1
    assert result.confidence == 0
    assert result.column_mapping == {}
    assert not result.found


def test_single_match_is_not_a_header(vocabulary):
    result = HeuristicHeaderDetector(vocabulary).detect([["Unit", "foo", "bar"]])
    assert result.header_row == -1


def test_only_first_ten_rows_are_scanned(vocabulary):
    rows = [["x"]] * 10 + [["Unit", "Tenant", "Rent"]]
    assert HeuristicHeaderDetector(vocabulary).detect(rows).header_row == -1


def test_confidence_uses_row_length(vocabulary):
    header = ["Unit", "Tenant", "Rent"] + [f"col{i}" for i in range(9)]
    result = HeuristicHeaderDetector(vocabulary).detect([header])
    assert len(header) == 12
    assert result.confidence == pytest.approx(0.25)


# ---------------------------------------------------------------------------
# Data start probing
# ---------------------------------------------------------------------------

def test_data_start_skips_blank_and_header_like_rows(vocabulary):
    rows = [
        ["Unit", "Tenant", "Rent"],
        [None, None, None],
        ["Unit #", "Resident Name", "Monthly Rent"],
        ["101", "Jane Doe", 1500],
    ]
    assert find_data_start_row(rows, 0, vocabulary) == 3


def test_data_start_keeps_unit_row_that_reads_like_titles(vocabulary):
    rows = [
        ["Unit", "Floor Plan", "Tenant", "Rent"],
        ["Unit 101", "Plan A", "Rentz, Jane", 1500],
    ]
    assert find_data_start_row(rows, 0, vocabulary) == 1


def test_data_start_defaults_to_next_row(vocabulary):
    rows = [["Unit", "Tenant", "Rent"]] + [[None]] * 6 + [["101", "Jane", 1]]
    assert find_data_start_row(rows, 0, vocabulary) == 1


def test_extract_headers():
    rows = [["Unit", None, " Rent "]]
    assert extract_headers(rows, 0) == {"A": "Unit", "C": "Rent"}
    assert extract_headers(rows, 5) == {}


# ---------------------------------------------------------------------------
# Model path
# ---------------------------------------------------------------------------

def test_confident_ai_result_is_converted_to_zero_based(rent_roll_sheet, vocabulary):
    agent = _agent_returning(HeaderAnalysisSchema(
        header_row=3,
        data_start_row=4,
        column_mapping=ColumnMappingSchema(unit_number="A", tenant_name="d", current_rent="1"),
        confidence=0.95,
    ))
    result = HeaderDetector(agent=agent, vocabulary=vocabulary).detect_headers(rent_roll_sheet)

    assert result.method == "ai"
    assert result.header_row == 2
    assert result.data_start_row == 3
    # "1" is not a column letter
    assert result.column_mapping == {"unit_number": "A", "tenant_name": "D"}
    assert result.headers["A"] == "Unit"


def test_ai_result_at_threshold_is_rejected(rent_roll_sheet, vocabulary):
    agent = _agent_returning(HeaderAnalysisSchema(
        header_row=1,
        data_start_row=2,
        column_mapping=ColumnMappingSchema(unit_number="A"),
        confidence=0.7,
    ))
    result = HeaderDetector(agent=agent, vocabulary=vocabulary).detect_headers(rent_roll_sheet)
    assert result.method == "heuristic"
    assert result.header_row == 2


def test_ai_header_row_outside_sheet_is_rejected(rent_roll_sheet, vocabulary):
    agent = _agent_returning(HeaderAnalysisSchema(
        header_row=50,
        data_start_row=51,
        column_mapping=ColumnMappingSchema(unit_number="A"),
        confidence=0.99,
    ))
    result = HeaderDetector(agent=agent, vocabulary=vocabulary).detect_headers(rent_roll_sheet)
    assert result.method == "heuristic"


def test_fallback_matches_heuristic_when_ai_fails(rent_roll_sheet, failing_agent, vocabulary):
    with_failing_ai = HeaderDetector(agent=failing_agent, vocabulary=vocabulary).detect_headers(rent_roll_sheet)
    heuristic_only = HeaderDetector(agent=None, vocabulary=vocabulary).detect_headers(rent_roll_sheet)
    assert with_failing_ai == heuristic_only


# ---------------------------------------------------------------------------
# Cache
# ---------------------------------------------------------------------------

def test_cache_hit_skips_detection(rent_roll_sheet, vocabulary):
    cache = InMemoryDetectionCache()
    detector = HeaderDetector(cache=cache, vocabulary=vocabulary)

    first = detector.detect_headers(rent_roll_sheet, cache_key="roll_123_abc")
    second = detector.detect_headers(rent_roll_sheet, cache_key="roll_123_abc")

    assert first.method == "heuristic"
    assert second.method == "cache"
    assert second.column_mapping == first.column_mapping
    assert second.header_row == first.header_row


def test_low_confidence_results_are_not_cached(vocabulary):
    sheet = RawSheet(name="garbled", index=0, rows=[["Unit", "Tenant"] + ["x"] * 10])
    cache = InMemoryDetectionCache()
    HeaderDetector(cache=cache, vocabulary=vocabulary).detect_headers(sheet, cache_key="k")
    assert cache.get("k") is None


def test_broken_cache_is_ignored(rent_roll_sheet, vocabulary):
    cache = MagicMock()
    cache.get.side_effect = RuntimeError("cache down")
    cache.put.side_effect = RuntimeError("cache down")

    result = HeaderDetector(cache=cache, vocabulary=vocabulary).detect_headers(rent_roll_sheet, cache_key="k")
    assert result.header_row == 2


def test_cached_result_survives_dict_round_trip(rent_roll_sheet, vocabulary):
    result = HeuristicHeaderDetector(vocabulary).detect(rent_roll_sheet.rows)
    assert HeaderDetectionResult.from_dict(result.to_dict()) == result
