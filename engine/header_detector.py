"""
Header Detector - finds the header row of a rent roll sheet, where unit data
begins, and which column holds which field.

Uses the model when it is confident, with a keyword fallback that needs no
network. Results can be read from and written to an injected cache.
"""
import logging
from dataclasses import replace
from typing import Dict, List, Optional, Sequence

from agents.rent_roll_agent import AIAnalysisError, RentRollAgent
from config import settings
from config.vocabulary import Vocabulary, get_vocabulary
from models.sheet import COLUMN_FIELDS, Cell, ColumnMapping, HeaderDetectionResult, RawSheet
from storage.detection_cache import DetectionCache
from utils.helpers import (
    column_index_to_letter,
    column_letter_to_index,
    keyword_pattern,
    normalize_string,
)
from utils.validations import is_empty_row, is_likely_header_row

logger = logging.getLogger(__name__)


def extract_headers(rows: Sequence[Sequence[Cell]], header_row: int) -> Dict[str, str]:
    """Column letter -> header text for the non-empty cells of one row"""
    if not 0 <= header_row < len(rows):
        return {}

    headers = {}
    for col, cell in enumerate(rows[header_row]):
        text = normalize_string(cell)
        if text:
            headers[column_index_to_letter(col)] = text
    return headers


def find_data_start_row(
    rows: Sequence[Sequence[Cell]],
    header_row: int,
    vocabulary: Optional[Vocabulary] = None,
) -> int:
    """
    First row after the header that has content and does not look like
    another header line. Only a few rows are probed; default header_row + 1.
    """
    last = min(header_row + settings.DATA_START_PROBE_ROWS, len(rows) - 1)
    for row_index in range(header_row + 1, last + 1):
        row = rows[row_index]
        if is_empty_row(row) or is_likely_header_row(row, vocabulary):
            continue
        return row_index
    return header_row + 1


class HeuristicHeaderDetector:
    """
    Keyword scan of the leading rows. Each header cell claims the fields
    whose keywords it contains; a keyword that is part of a longer keyword
    matched by another field in the same cell ("rent" in "market rent")
    yields to the more specific field.
    """

    def __init__(self, vocabulary: Optional[Vocabulary] = None):
        self.vocabulary = vocabulary or get_vocabulary()

    def match_cell(self, text: str) -> List[str]:
        """Fields claimed by one lowercase header cell"""
        matched: Dict[str, List[str]] = {}
        for field_name, keywords in self.vocabulary.header_keywords.items():
            if field_name not in COLUMN_FIELDS:
                continue
            hits = [k for k in keywords if keyword_pattern(k, whole_word=False).search(text)]
            if hits:
                matched[field_name] = hits

        claimed = []
        for field_name, hits in matched.items():
            keyword = hits[0]
            more_specific = any(
                keyword != other and keyword in other
                for other_field, other_hits in matched.items() if other_field != field_name
                for other in other_hits
            )
            if not more_specific:
                claimed.append(field_name)

        # "Unit" qualifies other titles: "Unit Sq Ft", "Unit Status"
        if len(claimed) > 1 and "unit_number" in claimed:
            claimed.remove("unit_number")
        return claimed

    def match_row(self, row: Sequence[Cell]) -> ColumnMapping:
        mapping: ColumnMapping = {}
        for col, cell in enumerate(row):
            text = normalize_string(cell).lower()
            if not text:
                continue
            for field_name in self.match_cell(text):
                # Later columns overwrite earlier ones for the same field
                mapping[field_name] = column_index_to_letter(col)
        return mapping

    def detect(self, rows: Sequence[Sequence[Cell]]) -> HeaderDetectionResult:
        best_row = -1
        best_count = 0
        best_mapping: ColumnMapping = {}

        for row_index, row in enumerate(rows[: settings.HEADER_SCAN_ROWS]):
            mapping = self.match_row(row)
            count = len(mapping)
            if count >= settings.MIN_HEADER_MATCHES and count > best_count:
                best_row, best_count, best_mapping = row_index, count, mapping

        if best_row == -1:
            return HeaderDetectionResult(method="heuristic")

        row_length = len(rows[best_row])
        return HeaderDetectionResult(
            header_row=best_row,
            data_start_row=find_data_start_row(rows, best_row, self.vocabulary),
            headers=extract_headers(rows, best_row),
            column_mapping=best_mapping,
            confidence=best_count / max(len(COLUMN_FIELDS), row_length),
            method="heuristic",
        )


class AIHeaderDetector:
    """Model-backed detection. Returns None when the answer is not usable."""

    def __init__(self, agent: RentRollAgent):
        self.agent = agent

    @property
    def available(self) -> bool:
        return self.agent.available

    def detect(self, rows: Sequence[Sequence[Cell]]) -> Optional[HeaderDetectionResult]:
        """
        Raises:
            AIAnalysisError: if the model call fails.
        """
        response = self.agent.analyze_headers(rows)

        if response.confidence <= settings.AI_HEADER_ACCEPT_CONFIDENCE:
            logger.info("AI header confidence %.2f too low", response.confidence)
            return None
        if not 1 <= response.header_row <= len(rows):
            logger.info("AI header row %d outside the sheet", response.header_row)
            return None

        mapping = self._clean_mapping(response.column_mapping.model_dump())
        if not mapping:
            logger.info("AI header analysis mapped no usable columns")
            return None

        header_row = response.header_row - 1
        data_start_row = response.data_start_row - 1
        if data_start_row <= header_row:
            data_start_row = header_row + 1

        return HeaderDetectionResult(
            header_row=header_row,
            data_start_row=data_start_row,
            headers=extract_headers(rows, header_row),
            column_mapping=mapping,
            confidence=float(response.confidence),
            method="ai",
        )

    @staticmethod
    def _clean_mapping(raw: dict) -> ColumnMapping:
        mapping: ColumnMapping = {}
        for field_name, letter in raw.items():
            if field_name not in COLUMN_FIELDS or not letter:
                continue
            try:
                index = column_letter_to_index(letter)
            except ValueError:
                logger.debug("Dropping invalid column %r for %s", letter, field_name)
                continue
            mapping[field_name] = column_index_to_letter(index)
        return mapping


class HeaderDetector:
    """
    Cache, then model, then keyword fallback. The fallback always produces
    a result; a header_row of -1 means nothing was found.
    """

    def __init__(
        self,
        agent: Optional[RentRollAgent] = None,
        cache: Optional[DetectionCache] = None,
        vocabulary: Optional[Vocabulary] = None,
    ):
        self.ai = AIHeaderDetector(agent) if agent is not None else None
        self.heuristic = HeuristicHeaderDetector(vocabulary)
        self.cache = cache

    def detect_headers(self, raw_sheet: RawSheet, cache_key: Optional[str] = None) -> HeaderDetectionResult:
        cached = self._cache_get(cache_key)
        if cached is not None:
            logger.debug("Header detection cache hit for %s", cache_key)
            return replace(cached, method="cache")

        result = self._detect(raw_sheet)
        logger.info(
            "Sheet %s: header row %d, data from %d, %d field(s) mapped, confidence %.2f (%s)",
            raw_sheet.name, result.header_row, result.data_start_row,
            len(result.mapped_fields), result.confidence, result.method,
        )

        if result.confidence >= settings.HEADER_CONFIDENCE_THRESHOLD:
            self._cache_put(cache_key, result)
        return result

    def _detect(self, raw_sheet: RawSheet) -> HeaderDetectionResult:
        rows = raw_sheet.rows
        if self.ai is not None and self.ai.available:
            try:
                result = self.ai.detect(rows)
            except AIAnalysisError as e:
                logger.warning("AI header detection failed for %s, using fallback: %s", raw_sheet.name, e)
            else:
                if result is not None:
                    return result
        return self.heuristic.detect(rows)

    def _cache_get(self, key: Optional[str]) -> Optional[HeaderDetectionResult]:
        if self.cache is None or not key:
            return None
        try:
            return self.cache.get(key)
        except Exception as e:
            logger.warning("Header cache read failed for %s: %s", key, e)
            return None

    def _cache_put(self, key: Optional[str], result: HeaderDetectionResult) -> None:
        if self.cache is None or not key:
            return
        try:
            self.cache.put(key, result)
        except Exception as e:
            logger.warning("Header cache write failed for %s: %s", key, e)
