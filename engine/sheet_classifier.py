"""
Sheet Classifier - decides whether a sheet is a rent roll, a summary tab or
something else.

The model is asked first; the keyword heuristic takes over when the model is
unavailable, fails, or is unsure.
"""
import logging
import re
from typing import Optional, Sequence

from agents.rent_roll_agent import AIAnalysisError, RentRollAgent
from config import settings
from config.vocabulary import Vocabulary, get_vocabulary
from models.sheet import Cell, SheetClassification, SheetType
from utils.helpers import find_keywords, flatten_row_text

logger = logging.getLogger(__name__)


def extract_property_name(sheet_name: str, prefixes: Sequence[str]) -> Optional[str]:
    """
    Derive a property name from a sheet name by stripping generic prefixes
    Examples: "Sheet1_Oak_Park" -> "Oak Park", "Rent Roll - Maple" -> "Maple",
    "Sheet1" -> None, "Oak Park" -> None (nothing stripped)
    """
    clean_name = re.sub(r"[_\-]", " ", sheet_name).strip()
    property_name = clean_name

    for prefix in prefixes:
        pattern = r"^" + re.escape(prefix) + r"\s*\d*\s*"
        property_name = re.sub(pattern, "", property_name, flags=re.IGNORECASE).strip()

    property_name = re.sub(r"^\d+\s*", "", property_name).strip()

    if property_name and property_name != clean_name:
        return property_name
    return None


class HeuristicSheetClassifier:
    """Keyword rules over the sheet name and the first rows. Never fails."""

    def __init__(self, vocabulary: Optional[Vocabulary] = None):
        self.vocabulary = vocabulary or get_vocabulary()

    def count_indicators(self, rows: Sequence[Sequence[Cell]]) -> int:
        sample = list(rows)[: settings.CLASSIFIER_HEURISTIC_ROWS]
        text = " ".join(flatten_row_text(row) for row in sample)
        return len(find_keywords(text, self.vocabulary.rent_roll_indicators, whole_word=False))

    def classify(self, sheet_name: str, first_rows: Sequence[Sequence[Cell]]) -> SheetClassification:
        if find_keywords(sheet_name, self.vocabulary.summary_sheet_keywords, whole_word=False):
            return SheetClassification(type=SheetType.SUMMARY, confidence=0.6)

        indicators = self.count_indicators(first_rows)
        if indicators >= settings.RENT_ROLL_INDICATOR_MINIMUM:
            return SheetClassification(
                type=SheetType.RENT_ROLL,
                property_name=extract_property_name(sheet_name, self.vocabulary.property_name_prefixes),
                confidence=min(1.0, indicators / 5),
            )

        return SheetClassification(type=SheetType.UNKNOWN, confidence=0.0)


class AISheetClassifier:
    """Model-backed classification. Raises AIAnalysisError on failure."""

    def __init__(self, agent: RentRollAgent):
        self.agent = agent

    @property
    def available(self) -> bool:
        return self.agent.available

    def classify(self, sheet_name: str, first_rows: Sequence[Sequence[Cell]]) -> SheetClassification:
        response = self.agent.classify_sheet(
            sheet_name, list(first_rows)[: settings.CLASSIFIER_SAMPLE_ROWS]
        )
        return SheetClassification(
            type=SheetType(response.type),
            property_name=(response.property_name or "").strip() or None,
            confidence=float(response.confidence),
            method="ai",
        )


class SheetClassifier:
    """
    Tries the model first and falls back to the heuristic when the model is
    disabled, raises, or scores below CLASSIFIER_MIN_CONFIDENCE.
    """

    def __init__(
        self,
        agent: Optional[RentRollAgent] = None,
        vocabulary: Optional[Vocabulary] = None,
    ):
        self.ai = AISheetClassifier(agent) if agent is not None else None
        self.heuristic = HeuristicSheetClassifier(vocabulary)

    def classify(self, sheet_name: str, first_rows: Sequence[Sequence[Cell]]) -> SheetClassification:
        if self.ai is not None and self.ai.available:
            try:
                result = self.ai.classify(sheet_name, first_rows)
            except AIAnalysisError as e:
                logger.warning("Failed to classify sheet %s, using fallback: %s", sheet_name, e)
            else:
                if result.confidence >= settings.CLASSIFIER_MIN_CONFIDENCE:
                    return result
                logger.info(
                    "AI classification of %s too unsure (%.2f), using fallback",
                    sheet_name, result.confidence,
                )

        result = self.heuristic.classify(sheet_name, first_rows)
        logger.debug("Heuristic classified %s as %s", sheet_name, result.type.value)
        return result
