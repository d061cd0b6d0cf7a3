"""Floor range -> lab range -> division assignment: create, update, cascade delete."""

import logging
from typing import Iterable, List, Optional, Sequence, Tuple

from config.defaults import (
    ASSET_ID_PREFIX, FLOORS, LABS, FLOOR_ASSET_RANGES, LAB_ASSET_RANGES, DIVISION_ASSET_ASSIGNMENTS,
)
from engine.errors import DuplicateError, NotFoundError, ValidationError
from engine.explainer import describe_ids
from engine.hierarchy_validator import run_checks, validate_against_parent
from engine.occupancy import STAGED_LABEL, pending_asset_ids, record_holders
from engine.range_codec import parse_asset_ids, to_formatted_display, validate_range_string
from models.asset_range import DivisionAssetAssignment, FloorAssetRange, LabAssetRange
from models.impact import CascadeImpact
from models.location import Floor, Lab

logger = logging.getLogger(__name__)

# (division, asset_ids, declared seat count or None)
AssignmentEntry = Tuple[str, str, Optional[int]]


def parse_required_range(range_string: Optional[str]) -> List[int]:
    """Parse user input, rejecting blank input and input with no readable IDs."""
    result = validate_range_string(range_string)
    if not result.valid:
        raise ValidationError(result.reason, stage="required")
    if not result.ids:
        raise ValidationError(
            f"No asset IDs could be read from '{range_string.strip()}'. "
            f"Use a format like 166-179 or 188, 189, 191",
            stage="required",
        )
    return result.ids


class AssetRangeService:
    """Keeps the three-level asset ID hierarchy consistent on every write."""

    def __init__(self, gateway, display_config: Optional[dict] = None):
        cfg = display_config or {}
        self.gateway = gateway
        self.prefix = cfg.get("asset_id_prefix", ASSET_ID_PREFIX)

    def _display(self, ids: Iterable[int], floor_number: str) -> str:
        return to_formatted_display(ids, floor_number, self.prefix)

    # --- Reads ---

    def list_floor_ranges(self, office_id: Optional[str] = None) -> List[FloorAssetRange]:
        if office_id:
            return self.gateway.list(FLOOR_ASSET_RANGES, office_id=office_id)
        return self.gateway.list(FLOOR_ASSET_RANGES)

    def lab_ranges_for(self, floor_range_id: str) -> List[LabAssetRange]:
        return self.gateway.list(LAB_ASSET_RANGES, floor_range_id=floor_range_id)

    def assignments_for(self, lab_range_id: str) -> List[DivisionAssetAssignment]:
        return self.gateway.list(DIVISION_ASSET_ASSIGNMENTS, lab_range_id=lab_range_id)

    def unallocated_ids(self, floor_range_id: str) -> List[int]:
        """Floor IDs not yet given to any lab."""
        floor_range = self.gateway.get(FLOOR_ASSET_RANGES, floor_range_id)
        used = set()
        for lab_range in self.lab_ranges_for(floor_range_id):
            used.update(parse_asset_ids(lab_range.range_string))
        return [i for i in parse_asset_ids(floor_range.range_string) if i not in used]

    def unassigned_ids(self, lab_range_id: str) -> List[int]:
        """Lab IDs not yet given to any division."""
        lab_range = self.gateway.get(LAB_ASSET_RANGES, lab_range_id)
        used = set()
        for assignment in self.assignments_for(lab_range_id):
            used.update(parse_asset_ids(assignment.asset_ids))
        return [i for i in parse_asset_ids(lab_range.range_string) if i not in used]

    def _lab_name(self, lab_id: str) -> str:
        try:
            return self.gateway.get(LABS, lab_id).name
        except NotFoundError:
            return "another lab"

    def _floor_number_for(self, lab_range: LabAssetRange) -> str:
        return self.gateway.get(FLOOR_ASSET_RANGES, lab_range.floor_range_id).floor_number

    # --- Floor ranges ---

    def _reject_duplicate_floor_range(self, floor: Floor, exclude_id: Optional[str] = None):
        for existing in self.gateway.list(FLOOR_ASSET_RANGES, floor_id=floor.id):
            if existing.id != exclude_id:
                raise DuplicateError(
                    f"{floor.name} already has an asset range ({existing.formatted_range}). "
                    f"Edit the existing range instead.",
                    existing_id=existing.id,
                )

    def create_floor_range(self, floor_id: str, range_string: str) -> FloorAssetRange:
        if not floor_id:
            raise ValidationError("Please select a floor")
        ids = parse_required_range(range_string)
        floor = self.gateway.get(FLOORS, floor_id)
        self._reject_duplicate_floor_range(floor)

        floor_range = FloorAssetRange(
            id="",
            floor_id=floor.id,
            office_id=floor.office_id,
            range_string=range_string.strip(),
            formatted_range=self._display(ids, floor.floor_number),
            floor_number=floor.floor_number,
        )
        created = self.gateway.create(FLOOR_ASSET_RANGES, floor_range)
        logger.info("Asset range assigned to %s (%d IDs)", floor.name, len(ids))
        return created

    def update_floor_range(
        self,
        range_id: str,
        range_string: str,
        floor_id: Optional[str] = None,
    ) -> FloorAssetRange:
        """Edit the range (and optionally move it to another floor).

        Existing lab ranges must stay inside the new range, and a range that
        already has lab ranges cannot change floor.
        """
        current = self.gateway.get(FLOOR_ASSET_RANGES, range_id)
        ids = parse_required_range(range_string)
        floor = self.gateway.get(FLOORS, floor_id or current.floor_id)
        self._reject_duplicate_floor_range(floor, exclude_id=range_id)

        formatted = self._display(ids, floor.floor_number)
        children = self.lab_ranges_for(range_id)
        if floor.id != current.floor_id and children:
            raise ValidationError(
                f"Cannot move the floor range to {floor.name}: {len(children)} lab range(s) still belong "
                f"to labs on the current floor. Delete them first.",
                stage="parent",
                parent_range=current.formatted_range,
            )
        for child in children:
            check = validate_against_parent(parse_asset_ids(child.range_string), ids)
            if not check.valid:
                raise ValidationError(
                    f"Cannot shrink the floor range: the lab range of {self._lab_name(child.lab_id)} "
                    f"uses {describe_ids(check.violating_ids)}, outside the new range.",
                    stage="parent",
                    violating_ids=check.violating_ids,
                    parent_range=formatted,
                )

        current.floor_id = floor.id
        current.office_id = floor.office_id
        current.range_string = range_string.strip()
        current.formatted_range = formatted
        current.floor_number = floor.floor_number
        updated = self.gateway.update(FLOOR_ASSET_RANGES, current)

        logger.info("Floor range %s updated (%d IDs)", range_id, len(ids))
        return updated

    def preview_floor_range_delete(self, range_id: str) -> CascadeImpact:
        floor_range = self.gateway.get(FLOOR_ASSET_RANGES, range_id)
        lab_ranges = self.lab_ranges_for(range_id)
        assignments = self._assignments_under(lab_ranges)
        floor = self.gateway.get(FLOORS, floor_range.floor_id)
        return CascadeImpact(
            target=f"the floor range of {floor.name}",
            lab_ranges=len(lab_ranges),
            division_assignments=len(assignments),
            divisions=sorted({a.division for a in assignments}),
            workstations_released=sum(a.seat_count for a in assignments),
        )

    def delete_floor_range(self, range_id: str) -> CascadeImpact:
        """Delete assignments, then lab ranges, then the floor range itself."""
        impact = self.preview_floor_range_delete(range_id)
        lab_ranges = self.lab_ranges_for(range_id)
        for assignment in self._assignments_under(lab_ranges):
            self.gateway.delete(DIVISION_ASSET_ASSIGNMENTS, assignment.id)
        for lab_range in lab_ranges:
            self.gateway.delete(LAB_ASSET_RANGES, lab_range.id)
        self.gateway.delete(FLOOR_ASSET_RANGES, range_id)

        impact.committed = True
        logger.info(
            "Deleted %s with %d lab range(s) and %d division assignment(s)",
            impact.target, impact.lab_ranges, impact.division_assignments,
        )
        return impact

    def _assignments_under(self, lab_ranges: Sequence[LabAssetRange]) -> List[DivisionAssetAssignment]:
        if not lab_ranges:
            return []
        return self.gateway.list(DIVISION_ASSET_ASSIGNMENTS, lab_range_id__in=[lr.id for lr in lab_ranges])

    # --- Lab ranges ---

    def _existing_lab_range(self, floor_range_id: str, lab_id: str, exclude_id: Optional[str] = None):
        for existing in self.gateway.list(LAB_ASSET_RANGES, floor_range_id=floor_range_id, lab_id=lab_id):
            if existing.id != exclude_id:
                return existing
        return None

    def _lab_range_siblings(self, floor_range_id: str, exclude_id: Optional[str] = None):
        return [
            (self._lab_name(lr.lab_id), parse_asset_ids(lr.range_string))
            for lr in self.lab_ranges_for(floor_range_id)
            if lr.id != exclude_id
        ]

    def create_lab_range(self, floor_range_id: str, lab_id: str, range_string: str) -> LabAssetRange:
        if not lab_id:
            raise ValidationError("Please select a lab")
        ids = parse_required_range(range_string)
        floor_range = self.gateway.get(FLOOR_ASSET_RANGES, floor_range_id)
        lab = self.gateway.get(LABS, lab_id)
        if lab.floor_id != floor_range.floor_id:
            floor = self.gateway.get(FLOORS, floor_range.floor_id)
            raise ValidationError(
                f"{lab.name} is not on {floor.name}. Pick a lab from the floor this range belongs to.",
                stage="parent",
                parent_range=floor_range.formatted_range,
            )

        run_checks(
            lab.name, ids,
            parent_ids=parse_asset_ids(floor_range.range_string),
            parent_label="the floor range",
            parent_range=floor_range.formatted_range,
        )

        existing = self._existing_lab_range(floor_range_id, lab_id)
        if existing:
            raise DuplicateError(
                f"{lab.name} already has an asset range on this floor ({existing.formatted_range}). "
                f"Edit the existing range instead.",
                existing_id=existing.id,
            )

        run_checks(
            lab.name, ids,
            siblings=self._lab_range_siblings(floor_range_id),
            parent_range=floor_range.formatted_range,
        )

        # Re-read right before the write; another session may have added one meanwhile.
        existing = self._existing_lab_range(floor_range_id, lab_id)
        if existing:
            logger.warning("Lab range for %s appeared during validation; rejecting", lab.name)
            raise DuplicateError(
                f"{lab.name} already has an asset range on this floor ({existing.formatted_range}).",
                existing_id=existing.id,
            )

        lab_range = LabAssetRange(
            id="",
            floor_range_id=floor_range_id,
            lab_id=lab_id,
            range_string=range_string.strip(),
            formatted_range=self._display(ids, floor_range.floor_number),
        )
        created = self.gateway.create(LAB_ASSET_RANGES, lab_range)
        logger.info("Asset range assigned to %s (%d IDs)", lab.name, len(ids))
        return created

    def update_lab_range(self, range_id: str, range_string: str) -> LabAssetRange:
        current = self.gateway.get(LAB_ASSET_RANGES, range_id)
        ids = parse_required_range(range_string)
        floor_range = self.gateway.get(FLOOR_ASSET_RANGES, current.floor_range_id)
        lab_name = self._lab_name(current.lab_id)

        run_checks(
            lab_name, ids,
            parent_ids=parse_asset_ids(floor_range.range_string),
            parent_label="the floor range",
            parent_range=floor_range.formatted_range,
            siblings=self._lab_range_siblings(current.floor_range_id, exclude_id=range_id),
        )

        formatted = self._display(ids, floor_range.floor_number)
        for assignment in self.assignments_for(range_id):
            check = validate_against_parent(parse_asset_ids(assignment.asset_ids), ids)
            if not check.valid:
                raise ValidationError(
                    f"Cannot shrink the lab range: {assignment.division} holds "
                    f"{describe_ids(check.violating_ids)}, outside the new range.",
                    stage="parent",
                    violating_ids=check.violating_ids,
                    parent_range=formatted,
                )

        current.range_string = range_string.strip()
        current.formatted_range = formatted
        return self.gateway.update(LAB_ASSET_RANGES, current)

    def delete_lab_range(self, range_id: str) -> CascadeImpact:
        lab_range = self.gateway.get(LAB_ASSET_RANGES, range_id)
        assignments = self.assignments_for(range_id)
        for assignment in assignments:
            self.gateway.delete(DIVISION_ASSET_ASSIGNMENTS, assignment.id)
        self.gateway.delete(LAB_ASSET_RANGES, range_id)
        logger.info("Deleted lab range of %s", self._lab_name(lab_range.lab_id))
        return CascadeImpact(
            target=f"the lab range of {self._lab_name(lab_range.lab_id)}",
            division_assignments=len(assignments),
            divisions=sorted({a.division for a in assignments}),
            workstations_released=sum(a.seat_count for a in assignments),
            committed=True,
        )

    # --- Division assignments ---

    def _assignment_context(self, lab_range_id: str) -> Tuple[LabAssetRange, Lab, str]:
        lab_range = self.gateway.get(LAB_ASSET_RANGES, lab_range_id)
        lab = self.gateway.get(LABS, lab_range.lab_id)
        return lab_range, lab, self._floor_number_for(lab_range)

    def _validate_assignment(
        self,
        lab_range: LabAssetRange,
        lab: Lab,
        division: str,
        ids: List[int],
        declared_count: Optional[int],
        staged: Sequence[Tuple[str, List[int]]] = (),
        exclude_id: Optional[str] = None,
    ):
        siblings = [
            (a.division, parse_asset_ids(a.asset_ids))
            for a in self.assignments_for(lab_range.id)
            if a.id != exclude_id
        ]
        siblings += record_holders(self.gateway, lab, exclude_division=division)
        siblings += [(f"{name} ({STAGED_LABEL})", staged_ids) for name, staged_ids in staged]

        run_checks(
            f"{division} in {lab.name}", ids,
            parent_ids=parse_asset_ids(lab_range.range_string),
            parent_label=f"the lab range of {lab.name}",
            parent_range=lab_range.formatted_range,
            siblings=siblings,
            pending_ids=pending_asset_ids(self.gateway, lab),
            declared_count=declared_count,
        )

    def create_division_assignment(
        self,
        lab_range_id: str,
        division: str,
        asset_ids: str,
        seat_count: Optional[int] = None,
    ) -> DivisionAssetAssignment:
        return self.create_division_assignments(lab_range_id, [(division, asset_ids, seat_count)])[0]

    def create_division_assignments(
        self,
        lab_range_id: str,
        entries: Sequence[AssignmentEntry],
    ) -> List[DivisionAssetAssignment]:
        """Validate every entry (against each other too) before writing any of them."""
        if not entries:
            raise ValidationError("Add at least one division before saving")
        lab_range, lab, floor_number = self._assignment_context(lab_range_id)
        existing_divisions = {a.division for a in self.assignments_for(lab_range_id)}

        staged: List[Tuple[str, List[int]]] = []
        to_create = []
        for division, asset_ids, seat_count in entries:
            division = (division or "").strip()
            if not division:
                raise ValidationError("Please select a division")
            ids = parse_required_range(asset_ids)
            if division in existing_divisions or division in [name for name, _ in staged]:
                raise DuplicateError(
                    f"{division} already has asset IDs in {lab.name}. Edit the existing assignment instead."
                )
            self._validate_assignment(lab_range, lab, division, ids, seat_count, staged=staged)
            staged.append((division, ids))
            to_create.append(DivisionAssetAssignment(
                id="",
                lab_range_id=lab_range_id,
                division=division,
                asset_ids=asset_ids.strip(),
                formatted_range=self._display(ids, floor_number),
                seat_count=len(ids),
            ))

        created = [self.gateway.create(DIVISION_ASSET_ASSIGNMENTS, a) for a in to_create]
        logger.info(
            "Assigned asset IDs in %s to %s",
            lab.name, ", ".join(f"{a.division} ({a.seat_count})" for a in created),
        )
        return created

    def update_division_assignment(
        self,
        assignment_id: str,
        asset_ids: str,
        seat_count: Optional[int] = None,
    ) -> DivisionAssetAssignment:
        current = self.gateway.get(DIVISION_ASSET_ASSIGNMENTS, assignment_id)
        ids = parse_required_range(asset_ids)
        lab_range, lab, floor_number = self._assignment_context(current.lab_range_id)
        self._validate_assignment(lab_range, lab, current.division, ids, seat_count, exclude_id=assignment_id)

        current.asset_ids = asset_ids.strip()
        current.formatted_range = self._display(ids, floor_number)
        current.seat_count = len(ids)
        return self.gateway.update(DIVISION_ASSET_ASSIGNMENTS, current)

    def delete_division_assignment(self, assignment_id: str) -> CascadeImpact:
        assignment = self.gateway.get(DIVISION_ASSET_ASSIGNMENTS, assignment_id)
        self.gateway.delete(DIVISION_ASSET_ASSIGNMENTS, assignment_id)
        return CascadeImpact(
            target=f"the asset IDs of {assignment.division}",
            divisions=[assignment.division],
            workstations_released=assignment.seat_count,
            committed=True,
        )
