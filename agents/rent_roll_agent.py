"""
LLM-backed detectors for rent roll sheets.

Two structured-output calls: classify a sheet (rent roll / summary / unknown)
and locate its header row and column mapping. Both return pydantic models;
any failure is raised as AIAnalysisError so the engine can fall back to the
keyword heuristics.
"""
import logging
from typing import List, Literal, Optional, Sequence

from langchain_core.messages import HumanMessage, SystemMessage
from langchain_openai import ChatOpenAI
from pydantic import BaseModel, Field

from config import settings
from models.sheet import Cell
from utils.helpers import column_index_to_letter, normalize_string

logger = logging.getLogger(__name__)


class AIAnalysisError(Exception):
    """Raised when the model call fails or returns nothing usable."""


class ColumnMappingSchema(BaseModel):
    """Column letter (A, B, ...) holding each field, or null when absent."""
    unit_number: Optional[str] = None
    tenant_name: Optional[str] = None
    current_rent: Optional[str] = None
    market_rent: Optional[str] = None
    square_footage: Optional[str] = None
    floor_plan: Optional[str] = None
    lease_start: Optional[str] = None
    lease_end: Optional[str] = None
    occupancy_status: Optional[str] = None


class HeaderAnalysisSchema(BaseModel):
    """Where the headers are and which column holds which field."""
    header_row: int = Field(description="1-based row number of the column headers")
    data_start_row: int = Field(description="1-based row number where unit data begins")
    column_mapping: ColumnMappingSchema
    confidence: float = Field(ge=0, le=1)


class SheetClassificationSchema(BaseModel):
    """What kind of sheet this is."""
    type: Literal["rent_roll", "summary", "unknown"]
    property_name: Optional[str] = None
    confidence: float = Field(ge=0, le=1)


HEADER_SYSTEM_PROMPT = (
    "You are a data analyst specialized in rent roll spreadsheet analysis. "
    "Analyze the provided data and identify header locations, column mappings, "
    "and data start positions with high accuracy."
)

CLASSIFY_SYSTEM_PROMPT = (
    "You are a data analyst that classifies spreadsheet content based on rent roll analysis."
)

HEADER_PROMPT = """Analyze this spreadsheet data to identify rent roll headers and determine where data extraction should begin.

Data (first {max_rows} rows):
{rows}

Tasks:
1. Find the row containing column headers for rent roll data
2. Identify which columns contain the required fields
3. Determine the row where actual unit data begins (may be different from header row)
4. Provide confidence score (0-1) based on header clarity and data structure

Look for these field variations:
- unit_number: "Unit", "Unit #", "Apt", "Apartment", "Suite", "Unit Number"
- floor_plan: "Floor Plan", "Unit Type", "Layout", "Type", "Plan", "Beds/Baths"
- square_footage: "SQFT", "SF", "Square Feet", "Size", "Square Footage", "Area"
- current_rent: "Rent", "Current Rent", "Monthly Rent", "Rent Amount", "Actual Rent"
- lease_start: "Lease Start", "Move In", "Start Date", "Move-In Date", "Lease Begin"
- lease_end: "Lease End", "Lease Expiration", "End Date", "Expiration", "Lease Expire"
- occupancy_status: "Status", "Unit Status", "Occupied", "Occupancy", "Vacancy Status"
- market_rent: "Market Rent", "Market Rate", "Market + Addl", "Market", "Asking Rent"
- tenant_name: "Name", "Tenant", "Resident", "Tenant Name", "Lessee"

Return column letters (A, B, C, etc.) and row numbers (1-based)."""

CLASSIFY_PROMPT = """Analyze this spreadsheet data to classify the sheet type.

Sheet Name: "{sheet_name}"
Data Sample:
{rows}

Classify as:
- "rent_roll": Contains individual unit data with columns like unit numbers, rents, tenant names
- "summary": Contains summary/aggregate data, totals, or property-level information
- "unknown": Cannot determine or doesn't fit above categories

If it's a rent roll, try to extract the property name from the sheet name or data.
Provide confidence score (0-1)."""


def format_rows_with_letters(rows: Sequence[Sequence[Cell]]) -> str:
    """Row 1: A="Unit", B="Tenant", ..."""
    lines = []
    for index, row in enumerate(rows):
        cells = ", ".join(
            f'{column_index_to_letter(col)}="{normalize_string(cell)}"'
            for col, cell in enumerate(row)
        )
        lines.append(f"Row {index + 1}: {cells}")
    return "\n".join(lines)


def format_rows_plain(rows: Sequence[Sequence[Cell]]) -> str:
    """Row 1: Unit, Tenant, ..."""
    return "\n".join(
        f"Row {index + 1}: " + ", ".join(normalize_string(cell) for cell in row)
        for index, row in enumerate(rows)
    )


class RentRollAgent:
    """
    Thin wrapper over a LangChain chat model with structured output.

    ``available`` is false when AI detection is switched off or no API key
    is configured; callers check it before invoking.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        llm=None,
        timeout: Optional[float] = None,
        enabled: Optional[bool] = None,
    ):
        self._api_key = api_key if api_key is not None else settings.OPENAI_API_KEY
        self._model = model or settings.AI_MODEL
        self._timeout = timeout if timeout is not None else settings.AI_TIMEOUT_SECONDS
        self._enabled = settings.AI_ENABLED if enabled is None else enabled
        self._llm = llm

    @property
    def available(self) -> bool:
        if not self._enabled:
            return False
        return self._llm is not None or bool(self._api_key)

    def _get_llm(self):
        if self._llm is None:
            if not self._api_key:
                raise ValueError(
                    "No OpenAI API key provided. "
                    "Set the OPENAI_API_KEY environment variable or pass api_key=... to RentRollAgent()."
                )
            self._llm = ChatOpenAI(
                model=self._model,
                temperature=0,
                api_key=self._api_key,
                timeout=self._timeout,
                max_retries=settings.AI_MAX_RETRIES,
            )
        return self._llm

    def _invoke(self, schema, system_prompt: str, prompt: str):
        try:
            structured = self._get_llm().with_structured_output(schema, method="function_calling")
            result = structured.invoke([SystemMessage(content=system_prompt), HumanMessage(content=prompt)])
        except Exception as e:
            raise AIAnalysisError(f"AI analysis failed: {e}") from e

        if result is None:
            raise AIAnalysisError("AI analysis failed: Failed to parse AI response")
        return result

    def classify_sheet(
        self,
        sheet_name: str,
        first_rows: Sequence[Sequence[Cell]],
        max_rows: int = settings.CLASSIFIER_SAMPLE_ROWS,
    ) -> SheetClassificationSchema:
        """
        Classify a sheet from its name and leading rows.

        Raises:
            AIAnalysisError: if the model call fails.
        """
        prompt = CLASSIFY_PROMPT.format(
            sheet_name=sheet_name,
            rows=format_rows_plain(list(first_rows)[:max_rows]),
        )
        result = self._invoke(SheetClassificationSchema, CLASSIFY_SYSTEM_PROMPT, prompt)
        logger.debug("AI classified %r as %s (%.2f)", sheet_name, result.type, result.confidence)
        return result

    def analyze_headers(
        self,
        rows: Sequence[Sequence[Cell]],
        max_rows: int = settings.AI_HEADER_SAMPLE_ROWS,
    ) -> HeaderAnalysisSchema:
        """
        Locate headers, data start and the column mapping. Rows in the
        response are 1-based.

        Raises:
            AIAnalysisError: if the model call fails.
        """
        sample: List[Sequence[Cell]] = list(rows)[:max_rows]
        prompt = HEADER_PROMPT.format(max_rows=max_rows, rows=format_rows_with_letters(sample))
        result = self._invoke(HeaderAnalysisSchema, HEADER_SYSTEM_PROMPT, prompt)
        logger.debug(
            "AI header analysis: row %d, data from %d (%.2f)",
            result.header_row, result.data_start_row, result.confidence,
        )
        return result
