from dataclasses import dataclass, field
from typing import List


@dataclass
class CascadeImpact:
    """What a delete removes. Returned by preview_* before commit and by the delete itself after."""
    target: str                                   # human label of the deleted row
    lab_ranges: int = 0
    division_assignments: int = 0
    division_records: int = 0
    bookings_rejected: int = 0
    bookings_deleted: int = 0
    requests_without_seats: int = 0              # pending requests whose every booking was rejected
    employees_updated: int = 0
    workstations_released: int = 0
    divisions: List[str] = field(default_factory=list)
    committed: bool = False

    @property
    def total_rows(self) -> int:
        return 1 + self.lab_ranges + self.division_assignments + self.division_records
