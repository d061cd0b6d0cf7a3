from dataclasses import dataclass, field
from typing import List, Optional

from models.location import _require


@dataclass
class Division:
    id: str
    name: str
    version: int = 0

    def __post_init__(self):
        _require(self.name, "name", "Division")
        self.name = self.name.strip()


@dataclass
class DivisionRecord:
    """A division's share of a lab allocation (floor_id + lab_name)."""
    id: str
    floor_id: str
    lab_name: str
    division: str
    total_workstations: int         # copied from the lab allocation
    in_use: int                     # == count of asset_id_range
    asset_id_range: Optional[str] = None
    version: int = 0

    def __post_init__(self):
        _require(self.floor_id, "floor_id", "DivisionRecord")
        _require(self.lab_name, "lab_name", "DivisionRecord")
        _require(self.division, "division", "DivisionRecord")
        self.total_workstations = int(self.total_workstations)
        self.in_use = int(self.in_use)
        if self.in_use < 0 or self.total_workstations < 0:
            raise ValueError(f"DivisionRecord '{self.division}': counts cannot be negative")

    @property
    def available(self) -> int:
        return self.total_workstations - self.in_use


@dataclass
class Employee:
    id: str
    name: str
    email: str = ""
    divisions: List[str] = field(default_factory=list)
    is_admin: bool = False
    version: int = 0

    def __post_init__(self):
        _require(self.name, "name", "Employee")
        if isinstance(self.divisions, str):
            # stored as a comma-separated column in older rows
            self.divisions = [d.strip() for d in self.divisions.split(",") if d.strip()]
