"""Lab allocations and the division records that split them.

A lab allocation (``Lab``) carries a workstation total and, optionally, its own
asset ID range. Division records take IDs out of that range; their ``in_use``
always equals the number of IDs they hold.
"""

import logging
from typing import List, Optional, Sequence, Tuple

import pandas as pd

from config.defaults import (
    FLOORS, LABS, LAB_ASSET_RANGES, DIVISION_ASSET_ASSIGNMENTS, DIVISION_RECORDS,
    SEAT_BOOKINGS, STATUS_PENDING, STATUS_REJECTED, LAB_SATURATION_THRESHOLD,
)
from engine.asset_ranges import parse_required_range
from engine.errors import DuplicateError, NotFoundError, ValidationError
from engine.explainer import explain_capacity
from engine.hierarchy_validator import run_checks
from engine.occupancy import (
    STAGED_LABEL, assignment_holders, division_records, pending_asset_ids, pending_bookings, record_holders,
)
from engine.range_codec import parse_asset_ids, to_compact_string
from models.division import DivisionRecord
from models.impact import CascadeImpact
from models.location import Lab

logger = logging.getLogger(__name__)

# (division, asset_id_range, manually entered in_use or None)
RecordEntry = Tuple[str, str, Optional[int]]


class WorkstationDataService:

    def __init__(self, gateway):
        self.gateway = gateway

    # --- Lab allocations ---

    def list_labs(self, floor_id: Optional[str] = None) -> List[Lab]:
        if floor_id:
            return self.gateway.list(LABS, floor_id=floor_id)
        return self.gateway.list(LABS)

    def find_lab(self, floor_id: str, lab_name: str) -> Lab:
        labs = self.gateway.list(LABS, floor_id=floor_id, name=lab_name)
        if not labs:
            raise NotFoundError(LABS, f"{floor_id}/{lab_name}")
        return labs[0]

    def _check_lab_range(self, name: str, total_workstations: int, asset_id_range: Optional[str]) -> Optional[str]:
        if asset_id_range is None or not asset_id_range.strip():
            return None
        ids = parse_required_range(asset_id_range)
        if len(ids) > total_workstations:
            raise ValidationError(
                f"The asset ID range of {name} holds {len(ids)} IDs but the lab has only "
                f"{total_workstations} workstations.",
                stage="count",
            )
        return asset_id_range.strip()

    def create_lab_allocation(
        self,
        floor_id: str,
        name: str,
        total_workstations: int,
        asset_id_range: Optional[str] = None,
    ) -> Lab:
        name = (name or "").strip()
        if not floor_id:
            raise ValidationError("Please select a floor")
        if not name:
            raise ValidationError("Please enter a lab name")
        total_workstations = int(total_workstations)
        if total_workstations <= 0:
            raise ValidationError("Total workstations must be greater than zero")

        floor = self.gateway.get(FLOORS, floor_id)
        existing = self.gateway.list(LABS, floor_id=floor_id, name=name)
        if existing:
            raise DuplicateError(f"{name} already exists on {floor.name}", existing_id=existing[0].id)

        lab = Lab(
            id="",
            floor_id=floor_id,
            name=name,
            total_workstations=total_workstations,
            asset_id_range=self._check_lab_range(name, total_workstations, asset_id_range),
        )
        created = self.gateway.create(LABS, lab)
        logger.info("Lab allocation %s created on %s (%d workstations)", name, floor.name, total_workstations)
        return created

    def update_lab_allocation(
        self,
        lab_id: str,
        total_workstations: int,
        asset_id_range: Optional[str] = None,
    ) -> Lab:
        """Change capacity or range; existing division records must still fit.

        Omitting ``asset_id_range`` keeps the current range; pass "" to clear it.
        """
        lab = self.gateway.get(LABS, lab_id)
        if asset_id_range is None:
            asset_id_range = lab.asset_id_range
        total_workstations = int(total_workstations)
        if total_workstations <= 0:
            raise ValidationError("Total workstations must be greater than zero")
        new_range = self._check_lab_range(lab.name, total_workstations, asset_id_range)

        records = division_records(self.gateway, lab.floor_id, lab.name)
        committed = sum(r.in_use for r in records) + len(pending_bookings(self.gateway, lab))
        if committed > total_workstations:
            raise ValidationError(
                f"Cannot reduce {lab.name} to {total_workstations} workstations: "
                f"{committed} are already allocated or pending.",
                stage="capacity",
            )
        if new_range:
            lab_ids = parse_asset_ids(new_range)
            for record in records:
                if record.asset_id_range:
                    run_checks(
                        record.division, parse_asset_ids(record.asset_id_range),
                        parent_ids=lab_ids,
                        parent_label=f"the new asset range of {lab.name}",
                        parent_range=new_range,
                    )

        lab.total_workstations = total_workstations
        lab.asset_id_range = new_range
        updated = self.gateway.update(LABS, lab)
        for record in records:
            if record.total_workstations != total_workstations:
                record.total_workstations = total_workstations
                self.gateway.update(DIVISION_RECORDS, record)
        return updated

    def available_workstations(self, floor_id: str, lab_name: str) -> int:
        lab = self.find_lab(floor_id, lab_name)
        return self._remaining(lab)

    def _remaining(
        self,
        lab: Lab,
        exclude_record_id: Optional[str] = None,
        exclude_request_id: Optional[str] = None,
    ) -> int:
        in_use = sum(
            r.in_use for r in division_records(self.gateway, lab.floor_id, lab.name)
            if r.id != exclude_record_id
        )
        pending = [b for b in pending_bookings(self.gateway, lab) if b.request_id != exclude_request_id]
        return lab.total_workstations - in_use - len(pending)

    # --- Division records ---

    def _check_record(
        self,
        lab: Lab,
        division: str,
        ids: List[int],
        staged: Sequence[Tuple[str, List[int]]] = (),
        exclude_record_id: Optional[str] = None,
        exclude_request_id: Optional[str] = None,
    ):
        """Parent -> siblings -> pending bookings -> capacity."""
        siblings = record_holders(self.gateway, lab, exclude_id=exclude_record_id)
        siblings += assignment_holders(self.gateway, lab, exclude_division=division)
        siblings += [(f"{name} ({STAGED_LABEL})", staged_ids) for name, staged_ids in staged]
        pending_ids = pending_asset_ids(self.gateway, lab, exclude_request_id)

        run_checks(
            f"{division} in {lab.name}", ids,
            parent_ids=parse_asset_ids(lab.asset_id_range) if lab.asset_id_range else None,
            parent_label=f"the asset range of {lab.name}",
            parent_range=lab.asset_id_range or "",
            siblings=siblings,
            pending_ids=pending_ids,
        )

        remaining = self._remaining(lab, exclude_record_id, exclude_request_id)
        remaining -= sum(len(staged_ids) for _, staged_ids in staged)
        if len(ids) > remaining:
            raise ValidationError(
                explain_capacity(lab.name, len(ids), max(remaining, 0)),
                stage="capacity",
            )

    def add_division_records(
        self,
        floor_id: str,
        lab_name: str,
        entries: Sequence[RecordEntry],
    ) -> List[DivisionRecord]:
        """Validate the whole batch, then write it. Nothing is written if any entry fails."""
        if not entries:
            raise ValidationError("Add at least one division before saving")
        lab = self.find_lab(floor_id, lab_name)
        existing_divisions = {r.division for r in division_records(self.gateway, floor_id, lab_name)}

        staged: List[Tuple[str, List[int]]] = []
        to_create = []
        for division, asset_id_range, in_use in entries:
            division = (division or "").strip()
            if not division:
                raise ValidationError("Please select a division")
            if division in existing_divisions or division in [name for name, _ in staged]:
                raise DuplicateError(f"{division} already has an allocation in {lab.name}")
            if asset_id_range is None or not asset_id_range.strip():
                raise ValidationError(f"Asset ID range is required for {division}")
            ids = parse_required_range(asset_id_range)
            if in_use is not None and int(in_use) != len(ids):
                logger.info(
                    "%s in %s: in-use count %s replaced by %d from the asset ID range",
                    division, lab.name, in_use, len(ids),
                )

            self._check_record(lab, division, ids, staged=staged)
            staged.append((division, ids))
            to_create.append(DivisionRecord(
                id="",
                floor_id=floor_id,
                lab_name=lab.name,
                division=division,
                total_workstations=lab.total_workstations,
                in_use=len(ids),
                asset_id_range=asset_id_range.strip(),
            ))

        created = [self.gateway.create(DIVISION_RECORDS, r) for r in to_create]
        logger.info("Added %d division allocation(s) to %s", len(created), lab.name)
        return created

    def update_division_record(self, record_id: str, asset_id_range: str) -> DivisionRecord:
        record = self.gateway.get(DIVISION_RECORDS, record_id)
        if asset_id_range is None or not asset_id_range.strip():
            raise ValidationError(f"Asset ID range is required for {record.division}")
        ids = parse_required_range(asset_id_range)
        lab = self.find_lab(record.floor_id, record.lab_name)
        self._check_record(lab, record.division, ids, exclude_record_id=record_id)

        record.asset_id_range = asset_id_range.strip()
        record.in_use = len(ids)
        record.total_workstations = lab.total_workstations
        return self.gateway.update(DIVISION_RECORDS, record)

    def validate_commit(
        self,
        floor_id: str,
        lab_name: str,
        division: str,
        asset_ids: List[int],
        exclude_request_id: Optional[str] = None,
    ) -> Tuple[Lab, Optional[DivisionRecord], List[int]]:
        """Check that IDs can join the division's record in the lab.

        Bookings of ``exclude_request_id`` are the ones being committed, so they
        neither block the IDs nor count against capacity. Returns the lab, the
        existing record (or None) and the merged ID list.
        """
        lab = self.find_lab(floor_id, lab_name)
        existing = [r for r in division_records(self.gateway, floor_id, lab_name) if r.division == division]
        record = existing[0] if existing else None
        held = parse_asset_ids(record.asset_id_range) if record and record.asset_id_range else []
        ids = sorted(set(held).union(asset_ids))

        self._check_record(
            lab, division, ids,
            exclude_record_id=record.id if record else None,
            exclude_request_id=exclude_request_id,
        )
        return lab, record, ids

    def commit_asset_ids(
        self,
        floor_id: str,
        lab_name: str,
        division: str,
        asset_ids: List[int],
        exclude_request_id: Optional[str] = None,
    ) -> DivisionRecord:
        """Add IDs to the division's record in the lab, creating the record if needed."""
        lab, record, ids = self.validate_commit(floor_id, lab_name, division, asset_ids, exclude_request_id)

        range_string = to_compact_string(ids)
        if record is None:
            return self.gateway.create(DIVISION_RECORDS, DivisionRecord(
                id="",
                floor_id=floor_id,
                lab_name=lab.name,
                division=division,
                total_workstations=lab.total_workstations,
                in_use=len(ids),
                asset_id_range=range_string,
            ))
        record.asset_id_range = range_string
        record.in_use = len(ids)
        return self.gateway.update(DIVISION_RECORDS, record)

    # --- Deletes ---

    def _requests_without_seats(self, lab: Lab) -> List[str]:
        """Requests whose pending bookings all sit in this lab."""
        in_lab = pending_bookings(self.gateway, lab)
        booking_ids = {b.id for b in in_lab}
        stranded = []
        for request_id in sorted({b.request_id for b in in_lab}):
            elsewhere = [
                b for b in self.gateway.list(SEAT_BOOKINGS, request_id=request_id, status=STATUS_PENDING)
                if b.id not in booking_ids
            ]
            if not elsewhere:
                stranded.append(request_id)
        return stranded

    def preview_lab_allocation_delete(self, lab_id: str) -> CascadeImpact:
        lab = self.gateway.get(LABS, lab_id)
        records = division_records(self.gateway, lab.floor_id, lab.name)
        lab_ranges = self.gateway.list(LAB_ASSET_RANGES, lab_id=lab_id)
        assignments = []
        if lab_ranges:
            assignments = self.gateway.list(
                DIVISION_ASSET_ASSIGNMENTS, lab_range_id__in=[lr.id for lr in lab_ranges],
            )
        return CascadeImpact(
            target=f"lab allocation {lab.name}",
            lab_ranges=len(lab_ranges),
            division_assignments=len(assignments),
            division_records=len(records),
            bookings_rejected=len(pending_bookings(self.gateway, lab)),
            requests_without_seats=len(self._requests_without_seats(lab)),
            workstations_released=sum(r.in_use for r in records),
            divisions=sorted(r.division for r in records),
        )

    def delete_lab_allocation(self, lab_id: str) -> CascadeImpact:
        """Reject pending bookings, then delete division records, lab ranges and the lab.

        Rejected bookings are kept as history.
        """
        impact = self.preview_lab_allocation_delete(lab_id)
        lab = self.gateway.get(LABS, lab_id)
        stranded = self._requests_without_seats(lab)

        for booking in pending_bookings(self.gateway, lab):
            booking.status = STATUS_REJECTED
            self.gateway.update(SEAT_BOOKINGS, booking)
        for record in division_records(self.gateway, lab.floor_id, lab.name):
            self.gateway.delete(DIVISION_RECORDS, record.id)
        for lab_range in self.gateway.list(LAB_ASSET_RANGES, lab_id=lab_id):
            for assignment in self.gateway.list(DIVISION_ASSET_ASSIGNMENTS, lab_range_id=lab_range.id):
                self.gateway.delete(DIVISION_ASSET_ASSIGNMENTS, assignment.id)
            self.gateway.delete(LAB_ASSET_RANGES, lab_range.id)
        self.gateway.delete(LABS, lab_id)

        impact.committed = True
        logger.info(
            "Deleted lab allocation %s: %d division record(s), %d booking(s) rejected",
            lab.name, impact.division_records, impact.bookings_rejected,
        )
        if stranded:
            logger.warning(
                "Deleting %s left %d request(s) pending with no reserved seats: %s",
                lab.name, len(stranded), ", ".join(stranded),
            )
        return impact

    def delete_division_record(self, record_id: str) -> CascadeImpact:
        """Delete the record and every seat booking of that division in the lab."""
        record = self.gateway.get(DIVISION_RECORDS, record_id)
        bookings = self.gateway.list(
            SEAT_BOOKINGS, floor_id=record.floor_id, lab_name=record.lab_name, division=record.division,
        )
        for booking in bookings:
            self.gateway.delete(SEAT_BOOKINGS, booking.id)
        self.gateway.delete(DIVISION_RECORDS, record_id)
        logger.info("Deleted %s from %s with %d seat booking(s)", record.division, record.lab_name, len(bookings))
        return CascadeImpact(
            target=f"the allocation of {record.division} in {record.lab_name}",
            division_records=1,
            bookings_deleted=len(bookings),
            workstations_released=record.in_use,
            divisions=[record.division],
            committed=True,
        )

    # --- Summary ---

    def lab_summary(self, floor_id: Optional[str] = None) -> pd.DataFrame:
        """One row per lab with capacity, usage and saturation flag."""
        rows = []
        floor_names = {f.id: f.name for f in self.gateway.list(FLOORS)}
        for lab in self.list_labs(floor_id):
            records = division_records(self.gateway, lab.floor_id, lab.name)
            in_use = sum(r.in_use for r in records)
            pending = len(pending_bookings(self.gateway, lab))
            used = in_use + pending
            utilization = used / lab.total_workstations if lab.total_workstations else 0.0
            rows.append({
                "Floor": floor_names.get(lab.floor_id, lab.floor_id),
                "Lab": lab.name,
                "Total Workstations": lab.total_workstations,
                "In Use": in_use,
                "Pending": pending,
                "Available": lab.total_workstations - used,
                "Utilization %": round(utilization * 100, 1),
                "Divisions": ", ".join(sorted(r.division for r in records)),
                "Asset ID Range": lab.asset_id_range or "",
                "Saturated": utilization >= LAB_SATURATION_THRESHOLD,
            })
        columns = [
            "Floor", "Lab", "Total Workstations", "In Use", "Pending", "Available",
            "Utilization %", "Divisions", "Asset ID Range", "Saturated",
        ]
        return pd.DataFrame(rows, columns=columns)
