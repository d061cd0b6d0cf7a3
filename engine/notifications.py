"""Notification gateway: who gets told about request transitions."""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List

from models.booking import WorkstationRequest

logger = logging.getLogger(__name__)

EVENT_SUBMITTED = "submitted"
EVENT_APPROVED = "approved"
EVENT_REJECTED = "rejected"

_SUBJECTS = {
    EVENT_SUBMITTED: "New workstation request {number} from {name}",
    EVENT_APPROVED: "Your workstation request {number} has been approved",
    EVENT_REJECTED: "Your workstation request {number} has been rejected",
}


@dataclass
class NotificationEvent:
    kind: str                   # one of EVENT_*
    request: WorkstationRequest
    asset_ids: List[int] = field(default_factory=list)
    note: str = ""              # approval notes or rejection reason

    @property
    def subject(self) -> str:
        return _SUBJECTS[self.kind].format(number=self.request.request_number, name=self.request.requestor_name)


class NotificationGateway(ABC):
    """Delivery is best-effort; callers never let a failure here undo a transition."""

    @abstractmethod
    def notify_admins(self, event: NotificationEvent) -> None:
        pass

    @abstractmethod
    def notify_requestor(self, event: NotificationEvent) -> None:
        pass


class LoggingNotifier(NotificationGateway):
    """Writes each notification to the log instead of sending mail."""

    def notify_admins(self, event: NotificationEvent) -> None:
        logger.info("[to admins] %s (%d workstation(s), %s)",
                    event.subject, event.request.num_workstations, event.request.division)

    def notify_requestor(self, event: NotificationEvent) -> None:
        recipient = event.request.requestor_email or event.request.requestor_name
        detail = f": {event.note}" if event.note else ""
        logger.info("[to %s] %s%s", recipient, event.subject, detail)
