from dataclasses import dataclass

from models.location import _require


@dataclass
class FloorAssetRange:
    id: str
    floor_id: str
    office_id: str
    range_string: str               # raw user input, e.g. "1-195"
    formatted_range: str            # e.g. "Admin/WS/F-9/001 to Admin/WS/F-9/195"
    floor_number: str
    version: int = 0

    def __post_init__(self):
        _require(self.floor_id, "floor_id", "FloorAssetRange")
        _require(self.office_id, "office_id", "FloorAssetRange")
        _require(self.range_string, "range_string", "FloorAssetRange")


@dataclass
class LabAssetRange:
    id: str
    floor_range_id: str
    lab_id: str
    range_string: str
    formatted_range: str
    version: int = 0

    def __post_init__(self):
        _require(self.floor_range_id, "floor_range_id", "LabAssetRange")
        _require(self.lab_id, "lab_id", "LabAssetRange")
        _require(self.range_string, "range_string", "LabAssetRange")


@dataclass
class DivisionAssetAssignment:
    id: str
    lab_range_id: str
    division: str
    asset_ids: str                  # e.g. "112-123, 125, 127"
    formatted_range: str
    seat_count: int
    version: int = 0

    def __post_init__(self):
        _require(self.lab_range_id, "lab_range_id", "DivisionAssetAssignment")
        _require(self.division, "division", "DivisionAssetAssignment")
        _require(self.asset_ids, "asset_ids", "DivisionAssetAssignment")
        self.seat_count = int(self.seat_count)
        if self.seat_count < 0:
            raise ValueError("DivisionAssetAssignment: seat_count cannot be negative")
