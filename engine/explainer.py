"""Generates human-readable messages for rejections and delete previews."""

from collections import OrderedDict
from typing import List, Tuple

from config.defaults import MAX_IDS_IN_MESSAGE
from engine.range_codec import to_compact_string, merge_runs
from models.impact import CascadeImpact


def describe_ids(ids: List[int]) -> str:
    """Compact rendering, cut after MAX_IDS_IN_MESSAGE runs."""
    runs = merge_runs(ids)
    if len(runs) <= MAX_IDS_IN_MESSAGE:
        return to_compact_string(ids)
    shown = [i for start, end in runs[:MAX_IDS_IN_MESSAGE] for i in range(start, end + 1)]
    return f"{to_compact_string(shown)} (+{len(runs) - MAX_IDS_IN_MESSAGE} more)"


def explain_parent_violation(child_label: str, violating_ids: List[int], parent_label: str, parent_range: str) -> str:
    return (
        f"Asset IDs out of range for {child_label}: {describe_ids(violating_ids)} "
        f"{'is' if len(violating_ids) == 1 else 'are'} outside {parent_label}. "
        f"Valid range: {parent_range or 'none assigned'}"
    )


def explain_sibling_conflicts(child_label: str, conflicts: List[Tuple[int, str]]) -> str:
    by_owner = OrderedDict()
    for asset_id, owner in conflicts:
        by_owner.setdefault(owner, []).append(asset_id)
    parts = [f"{describe_ids(ids)} (already assigned to {owner})" for owner, ids in by_owner.items()]
    return f"Asset ID conflict for {child_label}: {'; '.join(parts)}"


def explain_pending_conflict(child_label: str, conflicting_ids: List[int]) -> str:
    return (
        f"Asset IDs already reserved for {child_label}: {describe_ids(conflicting_ids)} "
        f"{'is' if len(conflicting_ids) == 1 else 'are'} held by pending allocations. "
        f"Choose different IDs or wait for those requests to be approved or rejected."
    )


def explain_count_mismatch(child_label: str, declared: int, actual: int) -> str:
    return (
        f"Asset ID count mismatch for {child_label}: {actual} asset IDs but "
        f"{declared} workstations declared. The counts must match exactly."
    )


def explain_capacity(lab_label: str, requested: int, remaining: int) -> str:
    return f"Cannot allocate {requested} workstations in {lab_label}. Only {remaining} remaining."


def explain_cascade(impact: CascadeImpact) -> List[str]:
    """Step-by-step summary of a delete, for a confirmation prompt or a result toast."""
    verb = "Removed" if impact.committed else "Will remove"
    steps = [f"{verb} {impact.target}"]
    if impact.lab_ranges:
        steps.append(f"{verb} {impact.lab_ranges} lab range(s)")
    if impact.division_assignments:
        steps.append(f"{verb} {impact.division_assignments} division assignment(s)")
    if impact.division_records:
        names = f": {', '.join(impact.divisions)}" if impact.divisions else ""
        steps.append(f"{verb} {impact.division_records} division allocation(s){names}")
    if impact.workstations_released:
        steps.append(f"Releases {impact.workstations_released} workstation(s)")
    if impact.bookings_rejected:
        verb_rejected = "Marked" if impact.committed else "Will mark"
        steps.append(f"{verb_rejected} {impact.bookings_rejected} pending seat booking(s) as rejected")
    if impact.requests_without_seats:
        verb_left = "Left" if impact.committed else "Will leave"
        steps.append(
            f"{verb_left} {impact.requests_without_seats} request(s) pending with no reserved seats; "
            f"reserve seats again or reject them"
        )
    if impact.bookings_deleted:
        steps.append(f"{verb} {impact.bookings_deleted} seat booking(s)")
    if impact.employees_updated:
        steps.append(f"Updates {impact.employees_updated} employee division list(s)")
    if not impact.committed:
        steps.append("This action cannot be undone.")
    return steps
