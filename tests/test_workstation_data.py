"""Tests for lab allocations and division records."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import logging

import pytest

from config.defaults import (
    OFFICES, FLOORS, LABS, LAB_ASSET_RANGES, DIVISION_RECORDS, SEAT_BOOKINGS,
    STATUS_APPROVED, STATUS_PENDING, STATUS_REJECTED,
)
from data.gateway import InMemoryGateway
from engine.asset_ranges import AssetRangeService
from engine.errors import DuplicateError, NotFoundError, ValidationError
from engine.explainer import explain_cascade
from engine.workstation_data import WorkstationDataService
from models import Office, Floor, SeatBooking


def make_service():
    gw = InMemoryGateway()
    office = gw.create(OFFICES, Office(id="", name="HQ"))
    floor = gw.create(FLOORS, Floor(id="", office_id=office.id, name="5th Floor"))
    return WorkstationDataService(gw), gw, floor


def make_lab(total=20, asset_id_range="1-20"):
    service, gw, floor = make_service()
    lab = service.create_lab_allocation(floor.id, "Lab A", total, asset_id_range)
    return service, gw, floor, lab


def make_booking(gw, floor, lab, asset_id=None, request_id="r1", division="Sales", status=STATUS_PENDING):
    return gw.create(SEAT_BOOKINGS, SeatBooking(
        id="", request_id=request_id, floor_id=floor.id, lab_id=lab.id, lab_name=lab.name,
        division=division, seat_number=1, asset_id=asset_id, status=status,
    ))


class TestLabAllocation:
    def test_create(self):
        _, _, _, lab = make_lab()
        assert lab.total_workstations == 20
        assert lab.asset_id_range == "1-20"

    def test_duplicate_name_on_floor(self):
        service, _, floor, lab = make_lab()
        with pytest.raises(DuplicateError) as exc:
            service.create_lab_allocation(floor.id, "Lab A", 10)
        assert exc.value.existing_id == lab.id

    def test_total_must_be_positive(self):
        service, _, floor = make_service()
        with pytest.raises(ValidationError):
            service.create_lab_allocation(floor.id, "Lab A", 0)

    def test_range_larger_than_total_rejected(self):
        service, _, floor = make_service()
        with pytest.raises(ValidationError) as exc:
            service.create_lab_allocation(floor.id, "Lab A", 5, "1-10")
        assert exc.value.stage == "count"

    def test_blank_range_is_none(self):
        service, _, floor = make_service()
        assert service.create_lab_allocation(floor.id, "Lab A", 5, "  ").asset_id_range is None

    def test_update_cannot_drop_below_usage(self):
        service, _, floor, lab = make_lab()
        service.add_division_records(floor.id, "Lab A", [("Engineering", "1-10", None)])
        with pytest.raises(ValidationError) as exc:
            service.update_lab_allocation(lab.id, 8, "1-8")
        assert exc.value.stage == "capacity"

    def test_update_range_must_cover_records(self):
        service, _, floor, lab = make_lab()
        service.add_division_records(floor.id, "Lab A", [("Engineering", "5-10", None)])
        with pytest.raises(ValidationError) as exc:
            service.update_lab_allocation(lab.id, 20, "1-8")
        assert exc.value.violating_ids == [9, 10]

    def test_update_copies_total_to_records(self):
        service, gw, floor, lab = make_lab()
        service.add_division_records(floor.id, "Lab A", [("Engineering", "1-5", None)])
        service.update_lab_allocation(lab.id, 30, "1-30")
        assert gw.list(DIVISION_RECORDS)[0].total_workstations == 30

    def test_capacity_only_update_keeps_range(self):
        service, _, floor, lab = make_lab()
        service.add_division_records(floor.id, "Lab A", [("Engineering", "1-5", None)])
        updated = service.update_lab_allocation(lab.id, 80)
        assert updated.total_workstations == 80
        assert updated.asset_id_range == "1-20"
        with pytest.raises(ValidationError) as exc:
            service.add_division_records(floor.id, "Lab A", [("Sales", "30-32", None)])
        assert exc.value.stage == "parent"

    def test_empty_string_clears_range(self):
        service, _, _, lab = make_lab()
        assert service.update_lab_allocation(lab.id, 20, "").asset_id_range is None


class TestAvailability:
    def test_counts_in_use_and_pending(self):
        service, gw, floor, lab = make_lab()
        service.add_division_records(floor.id, "Lab A", [("Engineering", "1-5", None)])
        make_booking(gw, floor, lab, asset_id=18)
        make_booking(gw, floor, lab, asset_id=None, request_id="r2")
        make_booking(gw, floor, lab, asset_id=19, request_id="r3", status=STATUS_APPROVED)
        assert service.available_workstations(floor.id, "Lab A") == 20 - 5 - 2

    def test_unknown_lab(self):
        service, _, floor = make_service()
        with pytest.raises(NotFoundError):
            service.available_workstations(floor.id, "Nowhere")


class TestDivisionRecords:
    def test_in_use_recomputed_from_range(self):
        service, _, floor, _ = make_lab()
        record = service.add_division_records(floor.id, "Lab A", [("Engineering", "10-15", 5)])[0]
        assert record.in_use == 6
        assert record.total_workstations == 20

    def test_range_required(self):
        service, _, floor, _ = make_lab()
        with pytest.raises(ValidationError) as exc:
            service.add_division_records(floor.id, "Lab A", [("Engineering", "", None)])
        assert exc.value.stage == "required"

    def test_outside_lab_range(self):
        service, _, floor, _ = make_lab()
        with pytest.raises(ValidationError) as exc:
            service.add_division_records(floor.id, "Lab A", [("Engineering", "18-22", None)])
        assert exc.value.stage == "parent"
        assert exc.value.violating_ids == [21, 22]

    def test_lab_without_range_skips_parent_check(self):
        service, _, floor = make_service()
        service.create_lab_allocation(floor.id, "Open Bay", 50)
        record = service.add_division_records(floor.id, "Open Bay", [("Engineering", "500-504", None)])[0]
        assert record.in_use == 5

    def test_sibling_overlap(self):
        service, _, floor, _ = make_lab()
        service.add_division_records(floor.id, "Lab A", [("Engineering", "1-5", None)])
        with pytest.raises(ValidationError) as exc:
            service.add_division_records(floor.id, "Lab A", [("Sales", "5-7", None)])
        assert exc.value.conflicts == [(5, "Engineering")]

    def test_staged_overlap(self):
        service, gw, floor, _ = make_lab()
        with pytest.raises(ValidationError) as exc:
            service.add_division_records(floor.id, "Lab A", [
                ("Engineering", "1-5", None),
                ("Sales", "4-6", None),
            ])
        assert exc.value.stage == "siblings"
        assert gw.list(DIVISION_RECORDS) == []

    def test_pending_booking_overlap(self):
        service, gw, floor, lab = make_lab()
        make_booking(gw, floor, lab, asset_id=3)
        with pytest.raises(ValidationError) as exc:
            service.add_division_records(floor.id, "Lab A", [("Engineering", "1-5", None)])
        assert exc.value.stage == "pending_bookings"
        assert exc.value.violating_ids == [3]

    def test_capacity_includes_pending(self):
        service, gw, floor = make_service()
        lab = service.create_lab_allocation(floor.id, "Open Bay", 10)
        make_booking(gw, floor, lab, request_id="r1")
        make_booking(gw, floor, lab, request_id="r2")
        with pytest.raises(ValidationError) as exc:
            service.add_division_records(floor.id, "Open Bay", [("Engineering", "1-9", None)])
        assert exc.value.stage == "capacity"
        assert "Only 8 remaining" in exc.value.message

    def test_capacity_counts_staged_entries(self):
        service, _, floor = make_service()
        service.create_lab_allocation(floor.id, "Open Bay", 10)
        with pytest.raises(ValidationError) as exc:
            service.add_division_records(floor.id, "Open Bay", [
                ("Engineering", "1-6", None),
                ("Sales", "7-11", None),
            ])
        assert exc.value.stage == "capacity"

    def test_duplicate_division(self):
        service, _, floor, _ = make_lab()
        service.add_division_records(floor.id, "Lab A", [("Engineering", "1-5", None)])
        with pytest.raises(DuplicateError):
            service.add_division_records(floor.id, "Lab A", [("Engineering", "6-7", None)])

    def test_overlap_with_asset_range_assignment(self):
        service, gw, floor, lab = make_lab()
        ranges = AssetRangeService(gw)
        fr = ranges.create_floor_range(floor.id, "1-100")
        lr = ranges.create_lab_range(fr.id, lab.id, "1-20")
        ranges.create_division_assignment(lr.id, "HR", "15-17")
        with pytest.raises(ValidationError) as exc:
            service.add_division_records(floor.id, "Lab A", [("Sales", "12-16", None)])
        assert exc.value.conflicts == [(15, "HR"), (16, "HR")]

    def test_update_record(self):
        service, _, floor, _ = make_lab()
        record = service.add_division_records(floor.id, "Lab A", [("Engineering", "1-5", None)])[0]
        updated = service.update_division_record(record.id, "1-8")
        assert updated.in_use == 8
        assert updated.asset_id_range == "1-8"

    def test_commit_extends_record(self):
        service, _, floor, _ = make_lab()
        service.add_division_records(floor.id, "Lab A", [("Engineering", "1-5", None)])
        record = service.commit_asset_ids(floor.id, "Lab A", "Engineering", [6, 9])
        assert record.asset_id_range == "1-6, 9"
        assert record.in_use == 7


class TestDeletes:
    def test_lab_delete_soft_rejects_bookings(self):
        service, gw, floor, lab = make_lab()
        service.add_division_records(floor.id, "Lab A", [("Engineering", "1-5", None), ("Sales", "6-8", None)])
        booking = make_booking(gw, floor, lab, asset_id=12)

        preview = service.preview_lab_allocation_delete(lab.id)
        assert preview.division_records == 2
        assert preview.bookings_rejected == 1
        assert "Will mark 1 pending seat booking(s) as rejected" in explain_cascade(preview)

        impact = service.delete_lab_allocation(lab.id)
        assert impact.committed
        assert gw.get(SEAT_BOOKINGS, booking.id).status == STATUS_REJECTED
        assert gw.list(DIVISION_RECORDS) == []
        assert gw.list(LABS) == []

    def test_lab_delete_reports_requests_left_without_seats(self, caplog):
        service, gw, floor, lab = make_lab()
        lab_b = service.create_lab_allocation(floor.id, "Lab B", 10, "21-30")
        make_booking(gw, floor, lab, asset_id=12, request_id="r1")
        make_booking(gw, floor, lab, asset_id=13, request_id="r2")
        make_booking(gw, floor, lab_b, asset_id=21, request_id="r2")

        preview = service.preview_lab_allocation_delete(lab.id)
        assert preview.requests_without_seats == 1
        assert any("1 request(s) pending with no reserved seats" in step for step in explain_cascade(preview))

        with caplog.at_level(logging.WARNING, logger="engine.workstation_data"):
            impact = service.delete_lab_allocation(lab.id)
        assert impact.requests_without_seats == 1
        assert "r1" in caplog.text
        assert "r2" not in caplog.text

    def test_lab_delete_removes_its_lab_ranges(self):
        service, gw, floor, lab = make_lab()
        ranges = AssetRangeService(gw)
        fr = ranges.create_floor_range(floor.id, "1-100")
        ranges.create_lab_range(fr.id, lab.id, "1-20")
        impact = service.delete_lab_allocation(lab.id)
        assert impact.lab_ranges == 1
        assert gw.list(LAB_ASSET_RANGES) == []

    def test_record_delete_hard_deletes_bookings(self):
        service, gw, floor, lab = make_lab()
        record = service.add_division_records(floor.id, "Lab A", [("Engineering", "1-5", None)])[0]
        make_booking(gw, floor, lab, division="Engineering", status=STATUS_APPROVED, asset_id=None)
        make_booking(gw, floor, lab, division="Engineering", request_id="r2", asset_id=None)
        other = make_booking(gw, floor, lab, division="Sales", request_id="r3", asset_id=None)

        impact = service.delete_division_record(record.id)
        assert impact.bookings_deleted == 2
        assert [b.id for b in gw.list(SEAT_BOOKINGS)] == [other.id]
        assert gw.list(DIVISION_RECORDS) == []


class TestLabSummary:
    def test_summary_columns(self):
        service, gw, floor, lab = make_lab()
        service.add_division_records(floor.id, "Lab A", [("Engineering", "1-17", None)])
        make_booking(gw, floor, lab, asset_id=20)
        df = service.lab_summary()
        row = df.iloc[0]
        assert row["Floor"] == "5th Floor"
        assert row["In Use"] == 17
        assert row["Pending"] == 1
        assert row["Available"] == 2
        assert row["Utilization %"] == 90.0
        assert bool(row["Saturated"])

    def test_empty(self):
        service, _, _ = make_service()
        df = service.lab_summary()
        assert df.empty
        assert "Utilization %" in df.columns


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
