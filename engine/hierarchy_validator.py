"""Parent / sibling / pending-booking / count checks for a proposed asset ID set.

The same checks serve every level of the hierarchy (floor range -> lab range
-> division assignment, and lab allocation -> division record); callers pass
in whichever sets play "parent" and "siblings".
"""

from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence, Tuple

from engine.errors import ValidationError
from engine.explainer import (
    explain_parent_violation, explain_sibling_conflicts,
    explain_pending_conflict, explain_count_mismatch,
)


@dataclass
class ParentCheck:
    valid: bool
    violating_ids: List[int] = field(default_factory=list)


@dataclass
class SiblingCheck:
    valid: bool
    conflicts: List[Tuple[int, str]] = field(default_factory=list)  # (asset id, owner label)


@dataclass
class PendingCheck:
    valid: bool
    conflicting_ids: List[int] = field(default_factory=list)


def validate_against_parent(child_ids: Iterable[int], parent_ids: Iterable[int]) -> ParentCheck:
    parent = set(parent_ids)
    violating = sorted(i for i in set(child_ids) if i not in parent)
    return ParentCheck(valid=not violating, violating_ids=violating)


def validate_against_siblings(
    child_ids: Iterable[int],
    sibling_id_sets: Sequence[Tuple[str, Iterable[int]]],
) -> SiblingCheck:
    """Each sibling is (owner label, ids). Every shared ID is reported with its owner."""
    child = set(child_ids)
    conflicts = []
    for owner, ids in sibling_id_sets:
        for asset_id in sorted(child.intersection(ids)):
            conflicts.append((asset_id, owner))
    conflicts.sort()
    return SiblingCheck(valid=not conflicts, conflicts=conflicts)


def validate_against_pending_bookings(child_ids: Iterable[int], pending_asset_ids: Iterable[int]) -> PendingCheck:
    conflicting = sorted(set(child_ids).intersection(pending_asset_ids))
    return PendingCheck(valid=not conflicting, conflicting_ids=conflicting)


def validate_count_match(declared_count: int, parsed_ids: Sequence[int]) -> bool:
    return int(declared_count) == len(set(parsed_ids))


def run_checks(
    child_label: str,
    child_ids: List[int],
    parent_ids: Optional[Iterable[int]] = None,
    parent_label: str = "the parent range",
    parent_range: str = "",
    siblings: Sequence[Tuple[str, Iterable[int]]] = (),
    pending_ids: Iterable[int] = (),
    declared_count: Optional[int] = None,
) -> None:
    """Run parent -> siblings -> pending bookings -> count, raising on the first failure.

    ``parent_ids=None`` skips the parent stage; ``declared_count=None`` skips the count stage.
    """
    if parent_ids is not None:
        parent = validate_against_parent(child_ids, parent_ids)
        if not parent.valid:
            raise ValidationError(
                explain_parent_violation(child_label, parent.violating_ids, parent_label, parent_range),
                stage="parent",
                violating_ids=parent.violating_ids,
                parent_range=parent_range,
            )

    sibling = validate_against_siblings(child_ids, siblings)
    if not sibling.valid:
        raise ValidationError(
            explain_sibling_conflicts(child_label, sibling.conflicts),
            stage="siblings",
            violating_ids=sorted({asset_id for asset_id, _ in sibling.conflicts}),
            conflicts=sibling.conflicts,
            parent_range=parent_range,
        )

    pending = validate_against_pending_bookings(child_ids, pending_ids)
    if not pending.valid:
        raise ValidationError(
            explain_pending_conflict(child_label, pending.conflicting_ids),
            stage="pending_bookings",
            violating_ids=pending.conflicting_ids,
            parent_range=parent_range,
        )

    if declared_count is not None and not validate_count_match(declared_count, child_ids):
        raise ValidationError(
            explain_count_mismatch(child_label, declared_count, len(child_ids)),
            stage="count",
            parent_range=parent_range,
        )
