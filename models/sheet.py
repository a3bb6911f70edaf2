"""
Sheet-level data models: decoded sheets, classification and header detection
"""
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Dict, List, Optional, Tuple, Union

# A decoded cell. Decoders only ever produce these four shapes.
Cell = Union[None, int, float, date, str]
Row = Tuple[Cell, ...]

COLUMN_FIELDS: Tuple[str, ...] = (
    "unit_number",
    "tenant_name",
    "current_rent",
    "market_rent",
    "square_footage",
    "floor_plan",
    "lease_start",
    "lease_end",
    "occupancy_status",
)

# Semantic field name -> column letter. Unmapped fields are absent.
ColumnMapping = Dict[str, str]


@dataclass(frozen=True)
class RawSheet:
    """One decoded sheet: a name, its position and a grid of cells"""
    name: str
    index: int
    rows: Tuple[Row, ...] = ()

    def __post_init__(self):
        # Freeze whatever sequence type the decoder handed in
        object.__setattr__(self, "rows", tuple(tuple(r) for r in self.rows))

    def head(self, n: int) -> Tuple[Row, ...]:
        return self.rows[:n]


@dataclass(frozen=True)
class RawFileData:
    """Decoder output for one file"""
    file_type: str  # excel | csv | pdf
    sheets: List[RawSheet] = field(default_factory=list)


class SheetType(str, Enum):
    RENT_ROLL = "rent_roll"
    SUMMARY = "summary"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class SheetClassification:
    """Result of classifying a sheet"""
    type: SheetType
    property_name: Optional[str] = None
    confidence: float = 0.0
    method: str = "heuristic"  # ai | heuristic


@dataclass(frozen=True)
class SheetInfo:
    name: str
    index: int
    type: SheetType = SheetType.UNKNOWN
    property_name: Optional[str] = None
    confidence: float = 0.0

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "index": self.index,
            "type": self.type.value,
            "propertyName": self.property_name,
            "confidence": self.confidence,
        }


@dataclass(frozen=True)
class HeaderDetectionResult:
    """
    Where the header row is, where data begins, and which column holds
    which field. Row indices are 0-based; -1 means no header was found.
    """
    header_row: int = -1
    data_start_row: int = -1
    headers: Dict[str, str] = field(default_factory=dict)
    column_mapping: ColumnMapping = field(default_factory=dict)
    confidence: float = 0.0
    method: str = "heuristic"  # ai | heuristic | cache

    @property
    def found(self) -> bool:
        return self.header_row >= 0

    @property
    def mapped_fields(self) -> List[str]:
        return [f for f in COLUMN_FIELDS if self.column_mapping.get(f)]

    def to_dict(self) -> dict:
        return {
            "headerRow": self.header_row,
            "dataStartRow": self.data_start_row,
            "headers": dict(self.headers),
            "columnMapping": dict(self.column_mapping),
            "confidence": self.confidence,
            "method": self.method,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "HeaderDetectionResult":
        return cls(
            header_row=int(data.get("headerRow", -1)),
            data_start_row=int(data.get("dataStartRow", -1)),
            headers=dict(data.get("headers") or {}),
            column_mapping={
                k: v for k, v in (data.get("columnMapping") or {}).items()
                if k in COLUMN_FIELDS and v
            },
            confidence=float(data.get("confidence", 0.0)),
            method=str(data.get("method", "heuristic")),
        )
