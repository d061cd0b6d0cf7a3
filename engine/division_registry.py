"""Division registry with cascading delete."""

import logging
from typing import List

from config.defaults import DIVISIONS, DIVISION_RECORDS, DIVISION_ASSET_ASSIGNMENTS, EMPLOYEES
from engine.errors import DuplicateError, ValidationError
from models.division import Division
from models.impact import CascadeImpact

logger = logging.getLogger(__name__)


class DivisionRegistry:

    def __init__(self, gateway):
        self.gateway = gateway

    def list_divisions(self) -> List[Division]:
        return sorted(self.gateway.list(DIVISIONS), key=lambda d: d.name.lower())

    def create_division(self, name: str) -> Division:
        name = (name or "").strip()
        if not name:
            raise ValidationError("Please enter a division name")
        for existing in self.gateway.list(DIVISIONS):
            if existing.name.lower() == name.lower():
                raise DuplicateError(f"Division '{existing.name}' already exists", existing_id=existing.id)
        created = self.gateway.create(DIVISIONS, Division(id="", name=name))
        logger.info("Division %s created", name)
        return created

    def _affected_employees(self, name: str):
        return [e for e in self.gateway.list(EMPLOYEES) if name in e.divisions]

    def preview_division_delete(self, division_id: str) -> CascadeImpact:
        division = self.gateway.get(DIVISIONS, division_id)
        records = self.gateway.list(DIVISION_RECORDS, division=division.name)
        assignments = self.gateway.list(DIVISION_ASSET_ASSIGNMENTS, division=division.name)
        return CascadeImpact(
            target=f"division {division.name}",
            division_records=len(records),
            division_assignments=len(assignments),
            employees_updated=len(self._affected_employees(division.name)),
            workstations_released=sum(r.in_use for r in records) + sum(a.seat_count for a in assignments),
            divisions=[division.name],
        )

    def delete_division(self, division_id: str) -> CascadeImpact:
        """Remove allocations held under the name, unlink employees, then drop the row.

        Seat bookings stay as request history.
        """
        impact = self.preview_division_delete(division_id)
        division = self.gateway.get(DIVISIONS, division_id)

        for record in self.gateway.list(DIVISION_RECORDS, division=division.name):
            self.gateway.delete(DIVISION_RECORDS, record.id)
        for assignment in self.gateway.list(DIVISION_ASSET_ASSIGNMENTS, division=division.name):
            self.gateway.delete(DIVISION_ASSET_ASSIGNMENTS, assignment.id)
        for employee in self._affected_employees(division.name):
            employee.divisions = [d for d in employee.divisions if d != division.name]
            self.gateway.update(EMPLOYEES, employee)
        self.gateway.delete(DIVISIONS, division_id)

        impact.committed = True
        logger.info(
            "Deleted division %s: %d record(s), %d assignment(s), %d employee(s) updated",
            division.name, impact.division_records, impact.division_assignments, impact.employees_updated,
        )
        return impact

