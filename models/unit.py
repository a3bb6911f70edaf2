"""
Data models for extracted rent roll units and tenant records
"""
from dataclasses import dataclass, asdict
from datetime import date
from enum import Enum
from typing import Optional


class OccupancyStatus(str, Enum):
    """Inferred tenancy state of a unit"""
    OCCUPIED = "occupied"
    VACANT = "vacant"
    NOTICE = "notice"
    PENDING = "pending"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class RentRollUnit:
    """One extracted row of a rent roll"""
    unit_number: str
    tenant_name: str = ""
    current_rent: Optional[float] = None
    market_rent: Optional[float] = None
    square_footage: Optional[float] = None
    floor_plan: str = ""
    lease_start: Optional[date] = None
    lease_end: Optional[date] = None
    occupancy_status: OccupancyStatus = OccupancyStatus.UNKNOWN

    @property
    def is_occupied(self) -> bool:
        return self.occupancy_status == OccupancyStatus.OCCUPIED

    def to_dict(self) -> dict:
        return {
            "unit_number": self.unit_number,
            "tenant_name": self.tenant_name,
            "current_rent": self.current_rent,
            "market_rent": self.market_rent,
            "square_footage": self.square_footage,
            "floor_plan": self.floor_plan,
            "lease_start": self.lease_start.isoformat() if self.lease_start else None,
            "lease_end": self.lease_end.isoformat() if self.lease_end else None,
            "occupancy_status": self.occupancy_status.value,
        }


@dataclass(frozen=True)
class RentRollSummary:
    """Aggregate occupancy and rent statistics for a list of units"""
    total_units: int = 0
    occupied_units: int = 0
    vacant_units: int = 0
    total_rent: float = 0.0
    average_rent: float = 0.0
    average_sqft: float = 0.0
    occupancy_rate: float = 0.0

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class ExtractedTenantData:
    """Tenant record handed to the tenant-creation flow"""
    id: str
    tenant_name: str
    unit_number: str
    current_rent: Optional[float] = None
    lease_start_date: str = ""  # YYYY-MM-DD or empty
    lease_end_date: str = ""
    occupancy_status: str = OccupancyStatus.OCCUPIED.value
    square_footage: Optional[float] = None
    source: str = "rent_roll"

    def to_dict(self) -> dict:
        """Serialize with the field names the tenant form expects"""
        return {
            "id": self.id,
            "tenantName": self.tenant_name,
            "unitNumber": self.unit_number,
            "currentRent": self.current_rent,
            "leaseStartDate": self.lease_start_date,
            "leaseEndDate": self.lease_end_date,
            "occupancyStatus": self.occupancy_status,
            "squareFootage": self.square_footage,
            "source": self.source,
        }
