"""Error taxonomy for the allocation core."""

from typing import List, Optional, Tuple


class AllocationError(Exception):
    """Base class for every error raised by the allocation core."""


class ValidationError(AllocationError):
    """User input rejected before any write.

    ``stage`` names the failing check ("required", "parent", "siblings",
    "pending_bookings", "count", "capacity", "duplicate").
    """

    def __init__(
        self,
        message: str,
        stage: str = "required",
        violating_ids: Optional[List[int]] = None,
        conflicts: Optional[List[Tuple[int, str]]] = None,
        parent_range: str = "",
    ):
        super().__init__(message)
        self.message = message
        self.stage = stage
        self.violating_ids = list(violating_ids or [])
        self.conflicts = list(conflicts or [])
        self.parent_range = parent_range


class DuplicateError(ValidationError):
    """A row already exists for the same floor / (floor range, lab) / division."""

    def __init__(self, message: str, existing_id: str = ""):
        super().__init__(message, stage="duplicate")
        self.existing_id = existing_id


class SchemaMissingError(AllocationError):
    """The backing table is not provisioned. A setup problem, not bad input."""

    def __init__(self, table: str, detail: str = ""):
        message = f"Table '{table}' is not provisioned. Run the database migration to enable this feature."
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)
        self.table = table


class NotFoundError(AllocationError):
    def __init__(self, table: str, entity_id: str):
        super().__init__(f"No row '{entity_id}' in '{table}'")
        self.table = table
        self.entity_id = entity_id


class ConflictError(AllocationError):
    """Optimistic concurrency failure: stale version or unique key already taken."""

    def __init__(self, table: str, message: str):
        super().__init__(f"{table}: {message}")
        self.table = table
