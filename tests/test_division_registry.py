"""Tests for the division registry."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest

from config.defaults import OFFICES, FLOORS, DIVISIONS, DIVISION_RECORDS, DIVISION_ASSET_ASSIGNMENTS, EMPLOYEES
from data.gateway import InMemoryGateway
from engine.asset_ranges import AssetRangeService
from engine.division_registry import DivisionRegistry
from engine.errors import DuplicateError, ValidationError
from engine.workstation_data import WorkstationDataService
from models import Office, Floor, Employee


def make_registry():
    gw = InMemoryGateway()
    return DivisionRegistry(gw), gw


def make_populated():
    registry, gw = make_registry()
    office = gw.create(OFFICES, Office(id="", name="HQ"))
    floor = gw.create(FLOORS, Floor(id="", office_id=office.id, name="3rd Floor"))
    data = WorkstationDataService(gw)
    ranges = AssetRangeService(gw)

    lab_a = data.create_lab_allocation(floor.id, "Lab A", 20, "1-20")
    lab_b = data.create_lab_allocation(floor.id, "Lab B", 20, "21-40")
    data.add_division_records(floor.id, "Lab A", [("Engineering", "1-5", None), ("Sales", "6-8", None)])
    fr = ranges.create_floor_range(floor.id, "1-40")
    lr = ranges.create_lab_range(fr.id, lab_b.id, "21-40")
    ranges.create_division_assignment(lr.id, "Engineering", "21-24")

    gw.create(EMPLOYEES, Employee(id="", name="Asha", divisions="Engineering, Sales"))
    gw.create(EMPLOYEES, Employee(id="", name="Dan", divisions=["Sales"]))
    engineering = registry.create_division("Engineering")
    registry.create_division("Sales")
    return registry, gw, engineering, lab_a


class TestCreate:
    def test_create_and_list_sorted(self):
        registry, _ = make_registry()
        registry.create_division("sales")
        registry.create_division("  Engineering ")
        assert [d.name for d in registry.list_divisions()] == ["Engineering", "sales"]

    def test_duplicate_case_insensitive(self):
        registry, _ = make_registry()
        existing = registry.create_division("Engineering")
        with pytest.raises(DuplicateError) as exc:
            registry.create_division("ENGINEERING")
        assert exc.value.existing_id == existing.id

    def test_blank_name(self):
        registry, _ = make_registry()
        with pytest.raises(ValidationError):
            registry.create_division("   ")


class TestCascadeDelete:
    def test_preview(self):
        registry, gw, engineering, _ = make_populated()
        impact = registry.preview_division_delete(engineering.id)
        assert impact.division_records == 1
        assert impact.division_assignments == 1
        assert impact.employees_updated == 1
        assert impact.workstations_released == 5 + 4
        assert not impact.committed
        assert len(gw.list(DIVISIONS)) == 2

    def test_delete_removes_references(self):
        registry, gw, engineering, _ = make_populated()
        impact = registry.delete_division(engineering.id)
        assert impact.committed
        assert [r.division for r in gw.list(DIVISION_RECORDS)] == ["Sales"]
        assert gw.list(DIVISION_ASSET_ASSIGNMENTS) == []
        assert [d.name for d in gw.list(DIVISIONS)] == ["Sales"]
        asha = [e for e in gw.list(EMPLOYEES) if e.name == "Asha"][0]
        assert asha.divisions == ["Sales"]

    def test_freed_ids_can_be_reused(self):
        registry, gw, engineering, lab_a = make_populated()
        registry.delete_division(engineering.id)
        data = WorkstationDataService(gw)
        record = data.add_division_records(lab_a.floor_id, "Lab A", [("Sales Ops", "1-5", None)])[0]
        assert record.in_use == 5


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
