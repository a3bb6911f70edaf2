"""
Keyword vocabulary used by the detectors and the row extractor.

The vocabulary lives in ``config/mappings.yaml`` so it can be tuned per
property-management vendor without code changes. Built-in defaults are used
when the file is missing.
"""
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import yaml

from config import settings

logger = logging.getLogger(__name__)


DEFAULT_HEADER_KEYWORDS: Dict[str, List[str]] = {
    "unit_number": ["unit", "unit #", "unit number", "apt", "apartment", "suite"],
    "tenant_name": ["tenant", "tenant name", "resident", "resident name", "name", "lessee"],
    "current_rent": ["rent", "current rent", "monthly rent", "amount", "rental amount", "actual rent"],
    "lease_start": ["lease start", "start date", "move in", "move-in", "lease begin"],
    "lease_end": ["lease end", "end date", "move out", "move-out", "lease expire", "expiration"],
    "occupancy_status": ["status", "occupancy", "occupied", "vacancy status"],
    "square_footage": ["sqft", "sq ft", "square feet", "size", "area", "sf"],
    "floor_plan": ["floor plan", "floorplan", "unit type", "type", "plan"],
    "market_rent": ["market rent", "market rate", "asking rent", "base rent"],
}

DEFAULT_EXCLUSION_KEYWORDS = [
    "total", "summary", "subtotal", "grand total", "sum", "average",
    "occupied units", "vacant units", "revenue", "non rev", "totals",
    "current/notice/vacant", "future residents", "applicants", "groups",
]

DEFAULT_STATUS_KEYWORDS: Dict[str, List[str]] = {
    "vacant": ["vacant", "empty", "down"],
    "notice": ["notice", "moving", "ntv"],
    "pending": ["pending", "approved"],
    "occupied": ["occupied", "rented"],
}


@dataclass(frozen=True)
class Vocabulary:
    """Keyword lists shared by the classifier, header detector and extractor."""
    header_keywords: Dict[str, List[str]] = field(default_factory=lambda: dict(DEFAULT_HEADER_KEYWORDS))
    exclusion_keywords: List[str] = field(default_factory=lambda: list(DEFAULT_EXCLUSION_KEYWORDS))
    invalid_unit_keywords: List[str] = field(default_factory=lambda: ["unknown", "square"])
    summary_sheet_keywords: List[str] = field(
        default_factory=lambda: ["summary", "total", "overview", "report", "analysis"]
    )
    rent_roll_indicators: List[str] = field(
        default_factory=lambda: [
            "unit", "apartment", "suite", "rent", "tenant",
            "lease", "occupied", "vacant", "sqft", "floor plan",
        ]
    )
    header_like_keywords: List[str] = field(
        default_factory=lambda: ["unit", "rent", "tenant", "lease", "sqft", "status", "plan", "name"]
    )
    property_name_prefixes: List[str] = field(
        default_factory=lambda: ["sheet", "tab", "page", "rent roll", "rentroll"]
    )
    status_keywords: Dict[str, List[str]] = field(default_factory=lambda: dict(DEFAULT_STATUS_KEYWORDS))
    non_value_markers: List[str] = field(
        default_factory=lambda: ["down", "vacant", "n/a", "na", "tbd", "pending", "-"]
    )

    @property
    def invalid_unit_labels(self) -> List[str]:
        """Labels that can never be a unit number (exclusions plus extras)."""
        return self.exclusion_keywords + [
            k for k in self.invalid_unit_keywords if k not in self.exclusion_keywords
        ]


def load_vocabulary(path: Optional[str] = None) -> Vocabulary:
    """Load the vocabulary from YAML, falling back to built-in defaults."""
    mappings_path = path or settings.MAPPINGS_PATH
    try:
        with open(mappings_path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
    except FileNotFoundError:
        logger.warning("Vocabulary file %s not found, using defaults", mappings_path)
        return Vocabulary()

    defaults = Vocabulary()
    header_keywords = {
        field_name: [str(k).lower() for k in keywords]
        for field_name, keywords in (raw.get("header_keywords") or defaults.header_keywords).items()
    }
    return Vocabulary(
        header_keywords=header_keywords,
        exclusion_keywords=_lower_list(raw.get("exclusion_keywords"), defaults.exclusion_keywords),
        invalid_unit_keywords=_lower_list(raw.get("invalid_unit_keywords"), defaults.invalid_unit_keywords),
        summary_sheet_keywords=_lower_list(raw.get("summary_sheet_keywords"), defaults.summary_sheet_keywords),
        rent_roll_indicators=_lower_list(raw.get("rent_roll_indicators"), defaults.rent_roll_indicators),
        header_like_keywords=_lower_list(raw.get("header_like_keywords"), defaults.header_like_keywords),
        property_name_prefixes=_lower_list(raw.get("property_name_prefixes"), defaults.property_name_prefixes),
        status_keywords={
            status: [str(k).lower() for k in keywords]
            for status, keywords in (raw.get("status_keywords") or defaults.status_keywords).items()
        },
        non_value_markers=_lower_list(raw.get("non_value_markers"), defaults.non_value_markers),
    )


def _lower_list(values: Optional[list], default: List[str]) -> List[str]:
    if not values:
        return list(default)
    return [str(v).lower() for v in values]


_vocabulary: Optional[Vocabulary] = None


def get_vocabulary() -> Vocabulary:
    """Return the process-wide vocabulary, loading it on first use."""
    global _vocabulary
    if _vocabulary is None:
        _vocabulary = load_vocabulary()
    return _vocabulary
