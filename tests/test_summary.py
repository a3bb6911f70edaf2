"""
Tests for engine.summary and engine.tenant_converter.
"""
from datetime import date

from engine.summary import summarize
from engine.tenant_converter import convert_to_tenant_data
from models.processing_result import ProcessedSheet
from models.sheet import HeaderDetectionResult, SheetInfo, SheetType
from models.unit import OccupancyStatus, RentRollSummary, RentRollUnit


def _unit(number, status, rent=None, sqft=None, tenant=""):
    return RentRollUnit(
        unit_number=number,
        tenant_name=tenant,
        current_rent=rent,
        square_footage=sqft,
        occupancy_status=status,
    )


def _sheet(units, name="Rent Roll"):
    return ProcessedSheet(
        sheet_info=SheetInfo(name=name, index=0, type=SheetType.RENT_ROLL),
        header_detection=HeaderDetectionResult(header_row=0, data_start_row=1),
        data=units,
    )


# ---------------------------------------------------------------------------
# Summary
# ---------------------------------------------------------------------------

def test_empty_summary_is_all_zeros():
    assert summarize([]) == RentRollSummary()
    assert summarize([]).occupancy_rate == 0


def test_summary_of_two_units():
    units = [
        _unit("101", OccupancyStatus.OCCUPIED, rent=1500, tenant="Jane Doe"),
        _unit("102", OccupancyStatus.VACANT, rent=0),
    ]
    summary = summarize(units)
    assert summary.total_units == 2
    assert summary.occupied_units == 1
    assert summary.vacant_units == 1
    assert summary.total_rent == 1500
    assert summary.average_rent == 1500
    assert summary.occupancy_rate == 50.0


def test_vacant_units_include_notice_and_pending():
    units = [
        _unit("1", OccupancyStatus.OCCUPIED, tenant="A"),
        _unit("2", OccupancyStatus.NOTICE),
        _unit("3", OccupancyStatus.PENDING),
    ]
    summary = summarize(units)
    assert summary.vacant_units == 2
    assert summary.occupied_units + summary.vacant_units == summary.total_units
    assert summary.occupancy_rate == 33.33


def test_averages_ignore_missing_and_zero_values():
    units = [
        _unit("1", OccupancyStatus.OCCUPIED, rent=1000, sqft=700, tenant="A"),
        _unit("2", OccupancyStatus.OCCUPIED, rent=1201, sqft=None, tenant="B"),
        _unit("3", OccupancyStatus.VACANT, rent=None, sqft=0),
        _unit("4", OccupancyStatus.VACANT, rent=-50, sqft=900),
    ]
    summary = summarize(units)
    assert summary.total_rent == 2201
    assert summary.average_rent == 1100  # round(1100.5) rounds half to even
    assert summary.average_sqft == 800


def test_summary_total_rent_matches_positive_rents():
    units = [_unit(str(i), OccupancyStatus.OCCUPIED, rent=r, tenant="T") for i, r in enumerate([900, 0, 1100, None])]
    assert summarize(units).total_rent == 2000


# ---------------------------------------------------------------------------
# Tenant conversion
# ---------------------------------------------------------------------------

def test_only_occupied_named_units_become_tenants():
    units = [
        RentRollUnit(
            unit_number="101",
            tenant_name=" Jane Doe ",
            current_rent=1500,
            square_footage=750,
            lease_start=date(2025, 7, 1),
            occupancy_status=OccupancyStatus.OCCUPIED,
        ),
        _unit("102", OccupancyStatus.VACANT),
        _unit("Unit 4B", OccupancyStatus.NOTICE, rent=1200),
        _unit("104", OccupancyStatus.OCCUPIED, tenant="   "),
        _unit("105", OccupancyStatus.PENDING, tenant="Sam Lee"),
    ]
    tenants = convert_to_tenant_data([_sheet(units)])

    assert len(tenants) == 1
    jane = tenants[0]
    assert jane.tenant_name == "Jane Doe"
    assert jane.unit_number == "101"
    assert jane.current_rent == 1500
    assert jane.lease_start_date == "2025-07-01"
    assert jane.lease_end_date == ""
    assert jane.occupancy_status == "occupied"
    assert jane.source == "rent_roll"
    assert jane.id.startswith("tenant_")


def test_tenant_ids_are_unique_across_sheets():
    units = [_unit(str(n), OccupancyStatus.OCCUPIED, tenant=f"Tenant {n}") for n in range(50)]
    tenants = convert_to_tenant_data([_sheet(units, "A"), _sheet(units, "B")])
    assert len(tenants) == 100
    assert len({t.id for t in tenants}) == 100


def test_tenant_dict_uses_form_field_names():
    units = [_unit("101", OccupancyStatus.OCCUPIED, rent=1500, tenant="Jane Doe")]
    payload = convert_to_tenant_data([_sheet(units)])[0].to_dict()
    assert set(payload) == {
        "id", "tenantName", "unitNumber", "currentRent", "leaseStartDate",
        "leaseEndDate", "occupancyStatus", "squareFootage", "source",
    }
    assert payload["tenantName"] == "Jane Doe"
