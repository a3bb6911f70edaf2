"""
Tenant Converter - turns occupied rent roll units into tenant records
"""
import logging
from typing import List, Sequence

from models.processing_result import ProcessedSheet
from models.unit import ExtractedTenantData, OccupancyStatus
from utils.helpers import format_date_iso, generate_id

logger = logging.getLogger(__name__)


def convert_to_tenant_data(processed_sheets: Sequence[ProcessedSheet]) -> List[ExtractedTenantData]:
    """
    One record per occupied unit with a named tenant, across all sheets in
    order. Vacant, notice and pending units are left out.
    """
    tenants: List[ExtractedTenantData] = []

    for sheet in processed_sheets:
        for unit in sheet.data:
            tenant_name = unit.tenant_name.strip()
            if not unit.is_occupied or not tenant_name:
                continue

            tenants.append(ExtractedTenantData(
                id=generate_id("tenant"),
                tenant_name=tenant_name,
                unit_number=unit.unit_number,
                current_rent=unit.current_rent,
                lease_start_date=format_date_iso(unit.lease_start),
                lease_end_date=format_date_iso(unit.lease_end),
                occupancy_status=OccupancyStatus.OCCUPIED.value,
                square_footage=unit.square_footage,
            ))

    logger.info("Converted %d tenant record(s) from %d sheet(s)", len(tenants), len(processed_sheets))
    return tenants
