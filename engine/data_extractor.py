"""
Data Extractor - reads unit rows below the detected header into
RentRollUnit records.

Noise rows (blank lines, totals, label rows) are skipped silently; a row
that fails to convert is reported by its 1-based row number and the scan
carries on.
"""
import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence

from config.vocabulary import Vocabulary, get_vocabulary
from engine.summary import summarize
from models.sheet import Cell, HeaderDetectionResult, RawSheet
from models.unit import OccupancyStatus, RentRollSummary, RentRollUnit
from utils.helpers import (
    column_letter_to_index,
    find_keywords,
    normalize_string,
    normalize_unit_number,
    parse_date,
    parse_number,
)
from utils.validations import is_empty_row, is_invalid_unit_number, is_summary_row, validate_unit

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]


@dataclass(frozen=True)
class ExtractionResult:
    """Units pulled from one sheet, their summary and per-row errors"""
    data: List[RentRollUnit] = field(default_factory=list)
    summary: RentRollSummary = field(default_factory=RentRollSummary)
    errors: List[str] = field(default_factory=list)


def infer_occupancy_status(
    status: str,
    tenant_name: str,
    vocabulary: Optional[Vocabulary] = None,
) -> OccupancyStatus:
    """
    Status text wins when it says something (vacant, notice, pending,
    occupied, checked in that order). Otherwise a named tenant means
    occupied and no tenant means vacant.
    """
    vocab = vocabulary or get_vocabulary()
    status_text = status.lower().strip()

    if status_text:
        for state, keywords in vocab.status_keywords.items():
            if find_keywords(status_text, keywords, whole_word=False):
                return OccupancyStatus(state)

    tenant = tenant_name.lower().strip()
    if not tenant or tenant == "-" or "vacant" in tenant:
        return OccupancyStatus.VACANT
    return OccupancyStatus.OCCUPIED


class DataExtractor:
    """Row-by-row extraction driven by a HeaderDetectionResult"""

    def __init__(self, vocabulary: Optional[Vocabulary] = None):
        self.vocabulary = vocabulary or get_vocabulary()

    def extract_data(
        self,
        raw_sheet: RawSheet,
        header_detection: HeaderDetectionResult,
        on_progress: Optional[ProgressCallback] = None,
    ) -> ExtractionResult:
        columns = self._resolve_columns(header_detection)
        if not columns:
            return ExtractionResult(errors=["No column mappings found - cannot extract data"])

        rows = raw_sheet.rows
        start = max(header_detection.data_start_row, 0)
        total = max(len(rows) - start, 0)

        units: List[RentRollUnit] = []
        errors: List[str] = []

        for offset, row in enumerate(rows[start:]):
            row_number = start + offset + 1
            try:
                unit = self._extract_row(row, columns)
                if unit is not None:
                    if validate_unit(unit, self.vocabulary):
                        units.append(unit)
                    else:
                        errors.append(f"Row {row_number}: Unit {unit.unit_number} missing required data")
            except Exception as e:
                errors.append(f"Error processing row {row_number}: {e}")

            if on_progress is not None:
                on_progress(offset + 1, total)

        logger.info(
            "Sheet %s: extracted %d unit(s) from %d row(s), %d error(s)",
            raw_sheet.name, len(units), total, len(errors),
        )
        return ExtractionResult(data=units, summary=summarize(units), errors=errors)

    def _resolve_columns(self, header_detection: HeaderDetectionResult) -> Dict[str, int]:
        columns = {}
        for field_name in header_detection.mapped_fields:
            try:
                columns[field_name] = column_letter_to_index(header_detection.column_mapping[field_name])
            except ValueError:
                logger.warning(
                    "Ignoring invalid column %r for %s",
                    header_detection.column_mapping[field_name], field_name,
                )
        return columns

    def _extract_row(self, row: Sequence[Cell], columns: Dict[str, int]) -> Optional[RentRollUnit]:
        """None for rows that are not unit data"""
        if is_empty_row(row):
            return None
        if is_summary_row(row, self.vocabulary):
            return None

        raw = {name: (row[index] if index < len(row) else None) for name, index in columns.items()}

        unit_number = normalize_unit_number(raw.get("unit_number"))
        if not unit_number:
            return None
        if is_invalid_unit_number(unit_number, self.vocabulary):
            return None

        markers = self.vocabulary.non_value_markers
        tenant_name = normalize_string(raw.get("tenant_name"))
        status_text = normalize_string(raw.get("occupancy_status"))

        return RentRollUnit(
            unit_number=unit_number,
            tenant_name=tenant_name,
            current_rent=parse_number(raw.get("current_rent"), markers),
            market_rent=parse_number(raw.get("market_rent"), markers),
            square_footage=parse_number(raw.get("square_footage"), markers),
            floor_plan=normalize_string(raw.get("floor_plan")),
            lease_start=parse_date(raw.get("lease_start"), markers),
            lease_end=parse_date(raw.get("lease_end"), markers),
            occupancy_status=infer_occupancy_status(status_text, tenant_name, self.vocabulary),
        )
