"""Workstation request lifecycle: submit, reserve seats, approve, reject."""

import logging
from collections import OrderedDict
from typing import List, Optional, Union

from config.defaults import (
    EMPLOYEES, LABS, SEAT_BOOKINGS, WORKSTATION_REQUESTS,
    STATUS_PENDING, STATUS_APPROVED, STATUS_REJECTED, REQUEST_NUMBER_PREFIX,
)
from engine.asset_ranges import parse_required_range
from engine.errors import ValidationError
from engine.explainer import explain_capacity
from engine.hierarchy_validator import run_checks
from engine.notifications import (
    EVENT_SUBMITTED, EVENT_APPROVED, EVENT_REJECTED, LoggingNotifier, NotificationEvent,
)
from engine.occupancy import assignment_holders, pending_asset_ids, record_holders
from engine.range_codec import parse_asset_ids
from engine.workstation_data import WorkstationDataService
from models.booking import SeatBooking, WorkstationRequest

logger = logging.getLogger(__name__)


class RequestWorkflow:
    """Moves requests between pending, approved and rejected.

    Every transition is written first; the notifier runs afterwards and its
    failures are logged, never raised.
    """

    def __init__(self, gateway, notifier=None, workstation_data: Optional[WorkstationDataService] = None):
        self.gateway = gateway
        self.notifier = notifier or LoggingNotifier()
        self.workstation_data = workstation_data or WorkstationDataService(gateway)

    def _notify(self, recipient: str, event: NotificationEvent):
        try:
            if recipient == "admins":
                self.notifier.notify_admins(event)
            else:
                self.notifier.notify_requestor(event)
        except Exception:
            logger.exception("Could not send '%s' notification for %s", event.kind, event.request.request_number)

    def _pending_request(self, request_id: str) -> WorkstationRequest:
        request = self.gateway.get(WORKSTATION_REQUESTS, request_id)
        if request.status != STATUS_PENDING:
            raise ValidationError(f"Request {request.request_number} is already {request.status}")
        return request

    def _next_request_number(self) -> str:
        taken = {r.request_number for r in self.gateway.list(WORKSTATION_REQUESTS)}
        n = len(taken) + 1
        while f"{REQUEST_NUMBER_PREFIX}-{n:05d}" in taken:
            n += 1
        return f"{REQUEST_NUMBER_PREFIX}-{n:05d}"

    def list_requests(self, status: Optional[str] = None) -> List[WorkstationRequest]:
        if status:
            return self.gateway.list(WORKSTATION_REQUESTS, status=status)
        return self.gateway.list(WORKSTATION_REQUESTS)

    def bookings_for(self, request_id: str, status: Optional[str] = None) -> List[SeatBooking]:
        if status:
            return self.gateway.list(SEAT_BOOKINGS, request_id=request_id, status=status)
        return self.gateway.list(SEAT_BOOKINGS, request_id=request_id)

    def submit_request(self, requestor_id: str, division: str, num_workstations: int) -> WorkstationRequest:
        employee = self.gateway.get(EMPLOYEES, requestor_id)
        division = (division or "").strip()
        if not division:
            raise ValidationError("Please select a division")
        if employee.divisions and division not in employee.divisions:
            raise ValidationError(f"{employee.name} cannot request workstations for {division}")
        if int(num_workstations) <= 0:
            raise ValidationError("Number of workstations must be greater than zero")

        request = self.gateway.create(WORKSTATION_REQUESTS, WorkstationRequest(
            id="",
            request_number=self._next_request_number(),
            requestor_id=employee.id,
            requestor_name=employee.name,
            requestor_email=employee.email,
            division=division,
            num_workstations=num_workstations,
        ))
        logger.info("Request %s submitted by %s", request.request_number, employee.name)
        self._notify("admins", NotificationEvent(EVENT_SUBMITTED, request))
        return request

    def reserve_seats(self, request_id: str, lab_id: str, asset_ids: Union[str, List[int]]) -> List[SeatBooking]:
        """Hold specific asset IDs in a lab for a pending request."""
        request = self._pending_request(request_id)
        lab = self.gateway.get(LABS, lab_id)
        ids = parse_required_range(asset_ids) if isinstance(asset_ids, str) else sorted(set(asset_ids))
        if not ids:
            raise ValidationError("Select at least one asset ID")
        if not lab.asset_id_range:
            raise ValidationError(f"{lab.name} has no asset ID range to reserve from")

        committed = record_holders(self.gateway, lab) + assignment_holders(self.gateway, lab)
        run_checks(
            f"request {request.request_number}", ids,
            parent_ids=parse_asset_ids(lab.asset_id_range),
            parent_label=f"the asset range of {lab.name}",
            parent_range=lab.asset_id_range,
            siblings=committed,
            pending_ids=pending_asset_ids(self.gateway, lab),
        )

        held = self.bookings_for(request_id, STATUS_PENDING)
        if len(held) + len(ids) > request.num_workstations:
            raise ValidationError(
                f"Request {request.request_number} is for {request.num_workstations} workstation(s); "
                f"{len(held)} already reserved, cannot add {len(ids)} more.",
                stage="count",
            )
        remaining = self.workstation_data.available_workstations(lab.floor_id, lab.name)
        if len(ids) > remaining:
            raise ValidationError(explain_capacity(lab.name, len(ids), max(remaining, 0)), stage="capacity")

        bookings = []
        for offset, asset_id in enumerate(ids, start=len(held) + 1):
            bookings.append(self.gateway.create(SEAT_BOOKINGS, SeatBooking(
                id="",
                request_id=request.id,
                floor_id=lab.floor_id,
                lab_id=lab.id,
                lab_name=lab.name,
                division=request.division,
                seat_number=offset,
                asset_id=asset_id,
            )))
        logger.info("Reserved %d seat(s) in %s for %s", len(bookings), lab.name, request.request_number)
        return bookings

    def approve_request(self, request_id: str, notes: str = "") -> WorkstationRequest:
        """Commit the reserved IDs to the division, then mark everything approved."""
        request = self._pending_request(request_id)
        bookings = self.bookings_for(request_id, STATUS_PENDING)
        if not bookings:
            raise ValidationError(f"Reserve seats for {request.request_number} before approving it")
        if any(b.asset_id is None for b in bookings):
            raise ValidationError(f"Every seat of {request.request_number} needs an asset ID before approval")

        by_lab = OrderedDict()
        for booking in bookings:
            by_lab.setdefault((booking.floor_id, booking.lab_name), []).append(booking.asset_id)
        for (floor_id, lab_name), ids in by_lab.items():
            self.workstation_data.validate_commit(floor_id, lab_name, request.division, ids, request.id)

        for (floor_id, lab_name), ids in by_lab.items():
            self.workstation_data.commit_asset_ids(floor_id, lab_name, request.division, ids, request.id)
        for booking in bookings:
            booking.status = STATUS_APPROVED
            self.gateway.update(SEAT_BOOKINGS, booking)
        request.status = STATUS_APPROVED
        request.approval_notes = notes or ""
        request = self.gateway.update(WORKSTATION_REQUESTS, request)

        asset_ids = sorted(b.asset_id for b in bookings)
        logger.info("Request %s approved (%d seat(s))", request.request_number, len(asset_ids))
        self._notify("requestor", NotificationEvent(EVENT_APPROVED, request, asset_ids, request.approval_notes))
        return request

    def reject_request(self, request_id: str, reason: str) -> WorkstationRequest:
        request = self._pending_request(request_id)
        reason = (reason or "").strip()
        if not reason:
            raise ValidationError("Please give a reason for the rejection")

        for booking in self.bookings_for(request_id, STATUS_PENDING):
            booking.status = STATUS_REJECTED
            self.gateway.update(SEAT_BOOKINGS, booking)
        request.status = STATUS_REJECTED
        request.rejection_reason = reason
        request = self.gateway.update(WORKSTATION_REQUESTS, request)

        logger.info("Request %s rejected: %s", request.request_number, reason)
        self._notify("requestor", NotificationEvent(EVENT_REJECTED, request, note=reason))
        return request
