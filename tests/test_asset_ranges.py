"""Tests for the floor range -> lab range -> division assignment engine."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest

from config.defaults import (
    OFFICES, FLOORS, LABS, FLOOR_ASSET_RANGES, LAB_ASSET_RANGES, DIVISION_ASSET_ASSIGNMENTS,
    DIVISION_RECORDS, SEAT_BOOKINGS,
)
from data.gateway import InMemoryGateway
from engine.asset_ranges import AssetRangeService
from engine.errors import DuplicateError, ValidationError
from engine.explainer import explain_cascade
from engine.range_codec import parse_asset_ids
from models import Office, Floor, Lab, DivisionRecord, SeatBooking


def make_service(floor_name="9th Floor"):
    gw = InMemoryGateway()
    office = gw.create(OFFICES, Office(id="", name="HQ"))
    floor = gw.create(FLOORS, Floor(id="", office_id=office.id, name=floor_name))
    return AssetRangeService(gw), gw, floor


def make_lab(gw, floor, name="Lab A", total=100):
    return gw.create(LABS, Lab(id="", floor_id=floor.id, name=name, total_workstations=total))


def make_hierarchy(floor_range="1-195", lab_range="100-150"):
    service, gw, floor = make_service()
    lab = make_lab(gw, floor)
    fr = service.create_floor_range(floor.id, floor_range)
    lr = service.create_lab_range(fr.id, lab.id, lab_range)
    return service, gw, floor, lab, fr, lr


class TestFloorRanges:
    def test_create_derives_display(self):
        service, _, floor = make_service()
        fr = service.create_floor_range(floor.id, "1-10, 15")
        assert fr.floor_number == "9"
        assert fr.formatted_range == "Admin/WS/F-9/001 to Admin/WS/F-9/010, Admin/WS/F-9/015"
        assert fr.office_id == floor.office_id

    def test_one_per_floor(self):
        service, _, floor = make_service()
        existing = service.create_floor_range(floor.id, "1-10")
        with pytest.raises(DuplicateError) as exc:
            service.create_floor_range(floor.id, "20-30")
        assert exc.value.existing_id == existing.id

    def test_blank_range_rejected(self):
        service, _, floor = make_service()
        with pytest.raises(ValidationError) as exc:
            service.create_floor_range(floor.id, "  ")
        assert exc.value.stage == "required"

    def test_unreadable_range_rejected(self):
        service, _, floor = make_service()
        with pytest.raises(ValidationError) as exc:
            service.create_floor_range(floor.id, "abc")
        assert "166-179" in exc.value.message

    def test_display_prefix_from_config(self):
        gw = InMemoryGateway()
        office = gw.create(OFFICES, Office(id="", name="HQ"))
        floor = gw.create(FLOORS, Floor(id="", office_id=office.id, name="2nd Floor"))
        service = AssetRangeService(gw, {"asset_id_prefix": "Blr/WS"})
        fr = service.create_floor_range(floor.id, "7")
        assert fr.formatted_range == "Blr/WS/F-2/007"

    def test_update_cannot_orphan_lab_ranges(self):
        service, _, _, _, fr, _ = make_hierarchy()
        with pytest.raises(ValidationError) as exc:
            service.update_floor_range(fr.id, "1-120")
        assert exc.value.stage == "parent"
        assert exc.value.violating_ids == list(range(121, 151))

    def test_update_grows_range(self):
        service, gw, _, _, fr, _ = make_hierarchy()
        updated = service.update_floor_range(fr.id, "1-250")
        assert updated.range_string == "1-250"
        assert gw.get(FLOOR_ASSET_RANGES, fr.id).formatted_range.endswith("/250")

    def test_move_to_another_floor_without_lab_ranges(self):
        service, gw, floor = make_service()
        fr = service.create_floor_range(floor.id, "1-50")
        other = gw.create(FLOORS, Floor(id="", office_id=floor.office_id, name="4th Floor"))
        moved = service.update_floor_range(fr.id, "1-50", floor_id=other.id)
        assert moved.floor_id == other.id
        assert moved.formatted_range == "Admin/WS/F-4/001 to Admin/WS/F-4/050"

    def test_cannot_move_while_lab_ranges_exist(self):
        service, gw, floor, _, fr, lr = make_hierarchy()
        other = gw.create(FLOORS, Floor(id="", office_id=floor.office_id, name="4th Floor"))
        with pytest.raises(ValidationError) as exc:
            service.update_floor_range(fr.id, "1-195", floor_id=other.id)
        assert exc.value.stage == "parent"
        assert gw.get(FLOOR_ASSET_RANGES, fr.id).floor_id == floor.id
        assert gw.get(LAB_ASSET_RANGES, lr.id).formatted_range.startswith("Admin/WS/F-9/")


class TestLabRanges:
    def test_lab_must_be_on_the_range_floor(self):
        service, gw, floor = make_service()
        third = gw.create(FLOORS, Floor(id="", office_id=floor.office_id, name="3rd Floor"))
        lab_on_third = make_lab(gw, third)
        fr = service.create_floor_range(floor.id, "1-195")
        with pytest.raises(ValidationError) as exc:
            service.create_lab_range(fr.id, lab_on_third.id, "10-20")
        assert exc.value.stage == "parent"
        assert "9th Floor" in exc.value.message
        assert gw.list(LAB_ASSET_RANGES) == []

    def test_outside_floor_range_rejected(self):
        service, gw, floor = make_service()
        lab = make_lab(gw, floor)
        fr = service.create_floor_range(floor.id, "1-195")
        with pytest.raises(ValidationError) as exc:
            service.create_lab_range(fr.id, lab.id, "190-200")
        assert exc.value.stage == "parent"
        assert exc.value.violating_ids == [196, 197, 198, 199, 200]
        assert exc.value.parent_range == fr.formatted_range
        assert gw.list(LAB_ASSET_RANGES) == []

    def test_overlap_with_sibling_lab_rejected(self):
        service, gw, floor, _, fr, _ = make_hierarchy()
        lab_b = make_lab(gw, floor, name="Lab B")
        with pytest.raises(ValidationError) as exc:
            service.create_lab_range(fr.id, lab_b.id, "140-160")
        assert exc.value.stage == "siblings"
        assert exc.value.violating_ids == list(range(140, 151))
        assert {owner for _, owner in exc.value.conflicts} == {"Lab A"}
        assert "Lab A" in exc.value.message

    def test_disjoint_sibling_accepted(self):
        service, gw, floor, _, fr, _ = make_hierarchy()
        lab_b = make_lab(gw, floor, name="Lab B")
        lr = service.create_lab_range(fr.id, lab_b.id, "151-160")
        assert lr.formatted_range == "Admin/WS/F-9/151 to Admin/WS/F-9/160"
        assert service.unallocated_ids(fr.id) == list(range(1, 100)) + list(range(161, 196))

    def test_one_range_per_lab(self):
        service, _, _, lab, fr, lr = make_hierarchy()
        with pytest.raises(DuplicateError) as exc:
            service.create_lab_range(fr.id, lab.id, "1-5")
        assert exc.value.existing_id == lr.id

    def test_lab_required(self):
        service, _, _, _, fr, _ = make_hierarchy()
        with pytest.raises(ValidationError):
            service.create_lab_range(fr.id, "", "1-5")

    def test_update_excludes_itself_from_siblings(self):
        service, _, _, _, _, lr = make_hierarchy()
        updated = service.update_lab_range(lr.id, "100-160")
        assert updated.range_string == "100-160"

    def test_update_cannot_orphan_assignments(self):
        service, _, _, _, _, lr = make_hierarchy()
        service.create_division_assignment(lr.id, "Engineering", "140-150")
        with pytest.raises(ValidationError) as exc:
            service.update_lab_range(lr.id, "100-145")
        assert exc.value.violating_ids == [146, 147, 148, 149, 150]


class TestDivisionAssignments:
    def test_create(self):
        service, _, _, _, _, lr = make_hierarchy()
        a = service.create_division_assignment(lr.id, "Engineering", "112-123, 125")
        assert a.seat_count == 13
        assert a.formatted_range == "Admin/WS/F-9/112 to Admin/WS/F-9/123, Admin/WS/F-9/125"

    def test_count_mismatch_rejected(self):
        service, gw, _, _, _, lr = make_hierarchy()
        with pytest.raises(ValidationError) as exc:
            service.create_division_assignment(lr.id, "Engineering", "100-105", seat_count=5)
        assert exc.value.stage == "count"
        assert gw.list(DIVISION_ASSET_ASSIGNMENTS) == []

    def test_matching_count_accepted(self):
        service, _, _, _, _, lr = make_hierarchy()
        assert service.create_division_assignment(lr.id, "Engineering", "100-105", seat_count=6).seat_count == 6

    def test_outside_lab_range_rejected(self):
        service, _, _, _, _, lr = make_hierarchy()
        with pytest.raises(ValidationError) as exc:
            service.create_division_assignment(lr.id, "Engineering", "95-101")
        assert exc.value.stage == "parent"
        assert exc.value.violating_ids == [95, 96, 97, 98, 99]

    def test_overlap_with_other_division_rejected(self):
        service, _, _, _, _, lr = make_hierarchy()
        service.create_division_assignment(lr.id, "Engineering", "100-110")
        with pytest.raises(ValidationError) as exc:
            service.create_division_assignment(lr.id, "Sales", "108-112")
        assert exc.value.conflicts == [(108, "Engineering"), (109, "Engineering"), (110, "Engineering")]

    def test_overlap_with_division_record_rejected(self):
        service, gw, floor, lab, _, lr = make_hierarchy()
        gw.create(DIVISION_RECORDS, DivisionRecord(
            id="", floor_id=floor.id, lab_name=lab.name, division="HR",
            total_workstations=100, in_use=3, asset_id_range="120-122",
        ))
        with pytest.raises(ValidationError) as exc:
            service.create_division_assignment(lr.id, "Sales", "118-121")
        assert exc.value.stage == "siblings"
        assert exc.value.violating_ids == [120, 121]

    def test_pending_booking_blocks_ids(self):
        service, gw, floor, lab, _, lr = make_hierarchy()
        gw.create(SEAT_BOOKINGS, SeatBooking(
            id="", request_id="r1", floor_id=floor.id, lab_id=lab.id, lab_name=lab.name,
            division="Sales", seat_number=1, asset_id=130,
        ))
        with pytest.raises(ValidationError) as exc:
            service.create_division_assignment(lr.id, "Engineering", "128-132")
        assert exc.value.stage == "pending_bookings"
        assert exc.value.violating_ids == [130]

    def test_duplicate_division_rejected(self):
        service, _, _, _, _, lr = make_hierarchy()
        service.create_division_assignment(lr.id, "Engineering", "100-105")
        with pytest.raises(DuplicateError):
            service.create_division_assignment(lr.id, "Engineering", "140-145")

    def test_batch_checks_staged_entries(self):
        service, gw, _, _, _, lr = make_hierarchy()
        with pytest.raises(ValidationError) as exc:
            service.create_division_assignments(lr.id, [
                ("Engineering", "100-110", None),
                ("Sales", "110-115", None),
            ])
        assert exc.value.conflicts == [(110, "Engineering (staged)")]
        assert gw.list(DIVISION_ASSET_ASSIGNMENTS) == []

    def test_batch_saves_all(self):
        service, _, _, _, _, lr = make_hierarchy()
        created = service.create_division_assignments(lr.id, [
            ("Engineering", "100-110", 11),
            ("Sales", "111-115", None),
        ])
        assert [a.division for a in created] == ["Engineering", "Sales"]
        assert service.unassigned_ids(lr.id) == list(range(116, 151))

    def test_update_excludes_itself(self):
        service, _, _, _, _, lr = make_hierarchy()
        a = service.create_division_assignment(lr.id, "Engineering", "100-110")
        updated = service.update_division_assignment(a.id, "100-115")
        assert updated.seat_count == 16

    def test_same_division_record_does_not_conflict(self):
        service, gw, floor, lab, _, lr = make_hierarchy()
        gw.create(DIVISION_RECORDS, DivisionRecord(
            id="", floor_id=floor.id, lab_name=lab.name, division="Engineering",
            total_workstations=100, in_use=2, asset_id_range="100-101",
        ))
        assert service.create_division_assignment(lr.id, "Engineering", "100-103").seat_count == 4


class TestCascadeDelete:
    def test_floor_range_delete_removes_everything(self):
        service, gw, floor = make_service()
        lab_a = make_lab(gw, floor, "Lab A")
        lab_b = make_lab(gw, floor, "Lab B")
        fr = service.create_floor_range(floor.id, "1-100")
        lr_a = service.create_lab_range(fr.id, lab_a.id, "1-40")
        lr_b = service.create_lab_range(fr.id, lab_b.id, "41-80")
        service.create_division_assignment(lr_a.id, "Engineering", "1-10")
        service.create_division_assignment(lr_a.id, "Sales", "11-20")
        service.create_division_assignment(lr_b.id, "HR", "41-45")

        preview = service.preview_floor_range_delete(fr.id)
        assert preview.total_rows == 6
        assert not preview.committed
        assert gw.list(LAB_ASSET_RANGES)  # preview writes nothing

        impact = service.delete_floor_range(fr.id)
        assert impact.committed
        assert impact.lab_ranges == 2
        assert impact.division_assignments == 3
        assert service.lab_ranges_for(fr.id) == []
        assert gw.list(DIVISION_ASSET_ASSIGNMENTS) == []
        assert gw.list(FLOOR_ASSET_RANGES) == []

    def test_cascade_explanation(self):
        service, _, _, _, fr, lr = make_hierarchy()
        service.create_division_assignment(lr.id, "Engineering", "100-104")
        steps = explain_cascade(service.preview_floor_range_delete(fr.id))
        assert steps[0].startswith("Will remove the floor range of 9th Floor")
        assert "Will remove 1 lab range(s)" in steps
        assert steps[-1] == "This action cannot be undone."

    def test_lab_range_delete_cascades_assignments(self):
        service, gw, _, _, fr, lr = make_hierarchy()
        service.create_division_assignment(lr.id, "Engineering", "100-104")
        impact = service.delete_lab_range(lr.id)
        assert impact.division_assignments == 1
        assert impact.workstations_released == 5
        assert gw.list(DIVISION_ASSET_ASSIGNMENTS) == []
        assert service.unallocated_ids(fr.id) == parse_asset_ids("1-195")

    def test_assignment_delete(self):
        service, gw, _, _, _, lr = make_hierarchy()
        a = service.create_division_assignment(lr.id, "Engineering", "100-104")
        impact = service.delete_division_assignment(a.id)
        assert impact.divisions == ["Engineering"]
        assert gw.list(DIVISION_ASSET_ASSIGNMENTS) == []


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
