"""
Processing results - what the pipeline hands back to its caller
"""
from dataclasses import dataclass, field
from typing import List

import pandas as pd

from models.sheet import HeaderDetectionResult, SheetInfo
from models.unit import ExtractedTenantData, RentRollSummary, RentRollUnit


@dataclass(frozen=True)
class ProcessedSheet:
    """A sheet that made it through header detection and extraction"""
    sheet_info: SheetInfo
    header_detection: HeaderDetectionResult
    data: List[RentRollUnit] = field(default_factory=list)
    summary: RentRollSummary = field(default_factory=RentRollSummary)
    errors: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "sheetInfo": self.sheet_info.to_dict(),
            "headerDetection": self.header_detection.to_dict(),
            "data": [u.to_dict() for u in self.data],
            "summary": self.summary.to_dict(),
            "errors": list(self.errors),
        }


@dataclass
class RentRollProcessingResult:
    """
    Output contract of the pipeline. ``success`` is true only when at least
    one sheet was processed and at least one tenant was extracted; ``errors``
    are warnings the caller shows alongside whatever data was recovered.
    """
    success: bool
    sheets: List[ProcessedSheet] = field(default_factory=list)
    extracted_tenants: List[ExtractedTenantData] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    processing_time_ms: float = 0.0

    @property
    def units(self) -> List[RentRollUnit]:
        return [u for sheet in self.sheets for u in sheet.data]

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "sheets": [s.to_dict() for s in self.sheets],
            "extractedTenants": [t.to_dict() for t in self.extracted_tenants],
            "errors": list(self.errors),
            "processingTimeMs": self.processing_time_ms,
        }

    def get_units_df(self) -> pd.DataFrame:
        """Get all extracted units as a pandas DataFrame"""
        if not self.sheets:
            return pd.DataFrame()

        data = []
        for sheet in self.sheets:
            for unit in sheet.data:
                row = unit.to_dict()
                row["sheet"] = sheet.sheet_info.name
                data.append(row)

        return pd.DataFrame(data)

    def get_tenants_df(self) -> pd.DataFrame:
        """Get extracted tenant records as a pandas DataFrame"""
        if not self.extracted_tenants:
            return pd.DataFrame()
        return pd.DataFrame([t.to_dict() for t in self.extracted_tenants])

    def get_summaries_df(self) -> pd.DataFrame:
        """Get one summary row per processed sheet"""
        if not self.sheets:
            return pd.DataFrame()

        data = []
        for sheet in self.sheets:
            row = {"sheet": sheet.sheet_info.name}
            row.update(sheet.summary.to_dict())
            data.append(row)

        return pd.DataFrame(data)
