"""Who holds which asset IDs in a lab: committed division ranges and pending bookings."""

from typing import List, Optional, Tuple

from config.defaults import (
    LAB_ASSET_RANGES, DIVISION_ASSET_ASSIGNMENTS, DIVISION_RECORDS,
    SEAT_BOOKINGS, STATUS_PENDING,
)
from engine.range_codec import parse_asset_ids
from models.booking import SeatBooking
from models.division import DivisionRecord
from models.location import Lab

STAGED_LABEL = "staged"


def pending_bookings(gateway, lab: Lab) -> List[SeatBooking]:
    """Pending bookings in the lab, matched on floor + lab name (or lab id)."""
    return [
        b for b in gateway.list(SEAT_BOOKINGS, floor_id=lab.floor_id, status=STATUS_PENDING)
        if b.lab_name == lab.name or b.lab_id == lab.id
    ]


def pending_asset_ids(gateway, lab: Lab, exclude_request_id: Optional[str] = None) -> List[int]:
    return sorted({
        b.asset_id for b in pending_bookings(gateway, lab)
        if b.asset_id is not None and b.request_id != exclude_request_id
    })


def division_records(gateway, floor_id: str, lab_name: str) -> List[DivisionRecord]:
    return gateway.list(DIVISION_RECORDS, floor_id=floor_id, lab_name=lab_name)


def record_holders(
    gateway,
    lab: Lab,
    exclude_id: Optional[str] = None,
    exclude_division: Optional[str] = None,
) -> List[Tuple[str, List[int]]]:
    """(owner label, ids) for division records of the lab that carry a range."""
    holders = []
    for record in division_records(gateway, lab.floor_id, lab.name):
        if record.id == exclude_id or record.division == exclude_division:
            continue
        if record.asset_id_range:
            holders.append((record.division, parse_asset_ids(record.asset_id_range)))
    return holders


def assignment_holders(
    gateway,
    lab: Lab,
    exclude_id: Optional[str] = None,
    exclude_division: Optional[str] = None,
) -> List[Tuple[str, List[int]]]:
    """(owner label, ids) for division assignments under any lab range of this lab."""
    lab_range_ids = [lr.id for lr in gateway.list(LAB_ASSET_RANGES, lab_id=lab.id)]
    if not lab_range_ids:
        return []
    holders = []
    for assignment in gateway.list(DIVISION_ASSET_ASSIGNMENTS, lab_range_id__in=lab_range_ids):
        if assignment.id == exclude_id or assignment.division == exclude_division:
            continue
        holders.append((assignment.division, parse_asset_ids(assignment.asset_ids)))
    return holders


def committed_asset_ids(gateway, lab: Lab) -> List[int]:
    """Every asset ID committed to some division in the lab, through either path."""
    ids = set()
    for _, held in record_holders(gateway, lab) + assignment_holders(gateway, lab):
        ids.update(held)
    return sorted(ids)
