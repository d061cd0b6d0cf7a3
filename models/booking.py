from dataclasses import dataclass
from typing import Optional

from config.defaults import STATUSES, STATUS_PENDING
from models.location import _require


def _check_status(status: str, entity: str):
    if status not in STATUSES:
        raise ValueError(f"{entity}: unknown status '{status}' (expected one of {STATUSES})")


@dataclass
class SeatBooking:
    id: str
    request_id: str
    floor_id: str
    lab_id: str
    lab_name: str
    division: str
    seat_number: int
    asset_id: Optional[int] = None  # set when an admin picks the physical seat
    status: str = STATUS_PENDING
    version: int = 0

    def __post_init__(self):
        _require(self.request_id, "request_id", "SeatBooking")
        _require(self.floor_id, "floor_id", "SeatBooking")
        _require(self.lab_name, "lab_name", "SeatBooking")
        _check_status(self.status, "SeatBooking")
        self.seat_number = int(self.seat_number)
        if self.asset_id is not None:
            if isinstance(self.asset_id, str):
                self.asset_id = int(self.asset_id) if self.asset_id.strip().isdigit() else None
            else:
                self.asset_id = int(self.asset_id)

    @property
    def is_pending(self) -> bool:
        return self.status == STATUS_PENDING


@dataclass
class WorkstationRequest:
    id: str
    request_number: str
    requestor_id: str
    requestor_name: str
    division: str
    num_workstations: int
    requestor_email: str = ""
    status: str = STATUS_PENDING
    rejection_reason: str = ""
    approval_notes: str = ""
    version: int = 0

    def __post_init__(self):
        _require(self.requestor_id, "requestor_id", "WorkstationRequest")
        _require(self.division, "division", "WorkstationRequest")
        _check_status(self.status, "WorkstationRequest")
        self.num_workstations = int(self.num_workstations)
        if self.num_workstations <= 0:
            raise ValueError("WorkstationRequest: num_workstations must be positive")
