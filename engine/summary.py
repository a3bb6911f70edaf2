"""
Summary Calculator - aggregate occupancy and rent figures for a sheet
"""
from typing import Sequence

from models.unit import RentRollSummary, RentRollUnit


def summarize(units: Sequence[RentRollUnit]) -> RentRollSummary:
    """
    Reduce units to a RentRollSummary. Averages only count positive
    values, so vacant units with zero rent do not drag the average down.
    """
    total = len(units)
    if total == 0:
        return RentRollSummary()

    occupied = sum(1 for u in units if u.is_occupied)

    rents = [u.current_rent for u in units if u.current_rent is not None and u.current_rent > 0]
    sizes = [u.square_footage for u in units if u.square_footage is not None and u.square_footage > 0]

    total_rent = sum(rents)
    return RentRollSummary(
        total_units=total,
        occupied_units=occupied,
        vacant_units=total - occupied,
        total_rent=total_rent,
        average_rent=round(total_rent / len(rents)) if rents else 0,
        average_sqft=round(sum(sizes) / len(sizes)) if sizes else 0,
        occupancy_rate=round(occupied / total * 100, 2),
    )
