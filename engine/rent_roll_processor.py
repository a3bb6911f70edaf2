"""
Rent Roll Processor - runs a file through decoding, classification, header
detection, extraction and tenant conversion.

Failures are graded: a file that cannot be decoded fails the whole run, a
bad sheet is reported and skipped, and a bad row is reported by the
extractor while the rest of the sheet is kept.
"""
import logging
import time
from dataclasses import dataclass
from typing import Callable, List, Optional

from agents.rent_roll_agent import RentRollAgent
from config import settings
from config.vocabulary import Vocabulary, get_vocabulary
from engine.data_extractor import DataExtractor
from engine.header_detector import HeaderDetector
from engine.sheet_classifier import SheetClassifier
from engine.tenant_converter import convert_to_tenant_data
from ingestion.loader import FileLoader
from models.processing_result import ProcessedSheet, RentRollProcessingResult
from models.sheet import RawSheet, SheetInfo, SheetType
from storage.detection_cache import DetectionCache, make_cache_key

logger = logging.getLogger(__name__)

StageProgressCallback = Callable[[int, int, str], None]


@dataclass
class ProcessingOptions:
    """Knobs for one processing run"""
    max_sheets: Optional[int] = None  # None processes every sheet
    skip_summary_sheets: bool = True
    require_minimum_units: int = 0


class RentRollProcessor:
    """
    Orchestrates the pipeline for one uploaded file.

    The agent and cache are optional collaborators; without them the
    processor runs entirely on the keyword heuristics.
    """

    def __init__(
        self,
        agent: Optional[RentRollAgent] = None,
        cache: Optional[DetectionCache] = None,
        vocabulary: Optional[Vocabulary] = None,
        options: Optional[ProcessingOptions] = None,
        loader: Optional[FileLoader] = None,
    ):
        vocab = vocabulary or get_vocabulary()
        self.options = options or ProcessingOptions()
        self.loader = loader or FileLoader()
        self.classifier = SheetClassifier(agent=agent, vocabulary=vocab)
        self.header_detector = HeaderDetector(agent=agent, cache=cache, vocabulary=vocab)
        self.extractor = DataExtractor(vocabulary=vocab)

    def process_file(
        self,
        file_bytes: bytes,
        file_name: str,
        mime_type: Optional[str] = "",
        on_progress: Optional[StageProgressCallback] = None,
    ) -> RentRollProcessingResult:
        start_time = time.perf_counter()

        try:
            raw_file = self.loader.decode(file_bytes, file_name, mime_type)
        except Exception as e:
            logger.error("Rent roll processing error for %s: %s", file_name, e)
            return RentRollProcessingResult(
                success=False,
                errors=[str(e) or "Unknown processing error"],
                processing_time_ms=_elapsed_ms(start_time),
            )

        sheets = raw_file.sheets
        if self.options.max_sheets is not None:
            sheets = sheets[: self.options.max_sheets]

        processed: List[ProcessedSheet] = []
        errors: List[str] = []

        for position, sheet in enumerate(sheets, start=1):
            try:
                processed_sheet = self._process_sheet(
                    sheet, file_name, len(file_bytes), errors,
                    on_progress=on_progress, position=position, sheet_count=len(sheets),
                )
            except Exception as e:
                logger.exception("Error processing sheet %s", sheet.name)
                errors.append(f'Error processing sheet "{sheet.name}": {e}')
                processed_sheet = None

            if processed_sheet is None:
                continue
            if len(processed_sheet.data) < self.options.require_minimum_units:
                logger.info(
                    "Dropping sheet %s: %d unit(s) below minimum %d",
                    sheet.name, len(processed_sheet.data), self.options.require_minimum_units,
                )
                continue
            processed.append(processed_sheet)

        tenants = convert_to_tenant_data(processed)
        if on_progress is not None:
            on_progress(1, 1, "conversion")

        result = RentRollProcessingResult(
            success=bool(processed) and bool(tenants),
            sheets=processed,
            extracted_tenants=tenants,
            errors=errors,
            processing_time_ms=_elapsed_ms(start_time),
        )
        logger.info(
            "Processed %s: %d sheet(s), %d unit(s), %d tenant(s), %d error(s) in %.1f ms",
            file_name, len(processed), len(result.units), len(tenants),
            len(errors), result.processing_time_ms,
        )
        return result

    def _process_sheet(
        self,
        sheet: RawSheet,
        file_name: str,
        file_size: int,
        errors: List[str],
        on_progress: Optional[StageProgressCallback] = None,
        position: int = 1,
        sheet_count: int = 1,
    ) -> Optional[ProcessedSheet]:
        """Returns None for sheets that were skipped or rejected"""
        classification = self.classifier.classify(sheet.name, sheet.head(settings.CLASSIFIER_SAMPLE_ROWS))
        if self.options.skip_summary_sheets and classification.type == SheetType.SUMMARY:
            logger.info("Skipping summary sheet %s", sheet.name)
            return None

        cache_key = make_cache_key(f"{file_name}_{sheet.name}", file_size, sheet.rows)
        header_detection = self.header_detector.detect_headers(sheet, cache_key)
        if on_progress is not None:
            on_progress(position, sheet_count, "headers")

        if not header_detection.found:
            errors.append(f'Sheet "{sheet.name}": Could not detect header row')
            return None
        if header_detection.confidence < settings.HEADER_CONFIDENCE_THRESHOLD:
            errors.append(
                f'Sheet "{sheet.name}": Low confidence in header detection '
                f"({round(header_detection.confidence * 100)}%)"
            )
            return None

        data_progress = None
        if on_progress is not None:
            def data_progress(processed: int, total: int) -> None:
                on_progress(processed, total, "data")

        extraction = self.extractor.extract_data(sheet, header_detection, on_progress=data_progress)
        errors.extend(extraction.errors)

        sheet_type = SheetType.RENT_ROLL if extraction.data else classification.type
        return ProcessedSheet(
            sheet_info=SheetInfo(
                name=sheet.name,
                index=sheet.index,
                type=sheet_type,
                property_name=classification.property_name,
                confidence=classification.confidence,
            ),
            header_detection=header_detection,
            data=extraction.data,
            summary=extraction.summary,
            errors=extraction.errors,
        )


def _elapsed_ms(start_time: float) -> float:
    return round((time.perf_counter() - start_time) * 1000, 2)
