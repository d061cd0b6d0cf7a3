from dataclasses import dataclass
from typing import Optional

from engine.range_codec import extract_floor_number


def _require(value: str, field_name: str, entity: str):
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"{entity}: '{field_name}' is required")


@dataclass
class Office:
    id: str
    name: str
    version: int = 0

    def __post_init__(self):
        _require(self.name, "name", "Office")


@dataclass
class Floor:
    id: str
    office_id: str
    name: str
    version: int = 0

    def __post_init__(self):
        _require(self.office_id, "office_id", "Floor")
        _require(self.name, "name", "Floor")

    @property
    def floor_number(self) -> str:
        """Digits taken from the floor name, e.g. "9th Floor" -> "9"."""
        return extract_floor_number(self.name)


@dataclass
class Lab:
    """A lab allocation row: capacity on a floor, optionally with its own asset ID range."""
    id: str
    floor_id: str
    name: str
    total_workstations: int
    asset_id_range: Optional[str] = None
    version: int = 0

    def __post_init__(self):
        _require(self.floor_id, "floor_id", "Lab")
        _require(self.name, "name", "Lab")
        self.total_workstations = int(self.total_workstations)
        if self.total_workstations < 0:
            raise ValueError(f"Lab '{self.name}': total_workstations cannot be negative")
        if self.asset_id_range is not None and not self.asset_id_range.strip():
            self.asset_id_range = None
