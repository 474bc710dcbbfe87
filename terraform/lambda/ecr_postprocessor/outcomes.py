"""Terminal states of one invocation.

Received -> Validated -> Persisted -> Notified, exiting early as
REJECTED_INVALID_EVENT (from Received), FAILED (from Validated) or
COMPLETED_WITH_NOTIFICATION_FAILURE (from Persisted). Nothing is retried
here; FAILED is the only outcome the caller should redeliver.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .events import ImagePushEvent
from .records import ImageRecord


class ProcessingOutcome(str, Enum):
    COMPLETED = "Completed"
    COMPLETED_WITH_NOTIFICATION_FAILURE = "CompletedWithNotificationFailure"
    REJECTED_INVALID_EVENT = "RejectedInvalidEvent"
    FAILED = "Failed"


class Stage(str, Enum):
    RECEIVED = "Received"
    VALIDATED = "Validated"
    PERSISTED = "Persisted"
    NOTIFIED = "Notified"


class FailureKind(str, Enum):
    INVALID_EVENT = "InvalidEvent"
    PERSISTENCE = "PersistenceFailure"
    NOTIFICATION = "NotificationFailure"
    UNEXPECTED = "Unexpected"


_STATUS = {
    ProcessingOutcome.COMPLETED: "ok",
    ProcessingOutcome.COMPLETED_WITH_NOTIFICATION_FAILURE: "degraded",
    ProcessingOutcome.REJECTED_INVALID_EVENT: "rejected",
    ProcessingOutcome.FAILED: "failed",
}


@dataclass(frozen=True)
class ProcessingResult:
    outcome: ProcessingOutcome
    stage: Stage
    event: Optional[ImagePushEvent] = None
    record: Optional[ImageRecord] = None
    failure: Optional[FailureKind] = None
    error: Optional[str] = None
    message_id: Optional[str] = None

    @property
    def retryable(self) -> bool:
        return self.outcome is ProcessingOutcome.FAILED

    @property
    def succeeded(self) -> bool:
        return self.outcome in (
            ProcessingOutcome.COMPLETED,
            ProcessingOutcome.COMPLETED_WITH_NOTIFICATION_FAILURE,
        )

    def to_response(self) -> dict:
        resp = {"status": _STATUS[self.outcome], "outcome": self.outcome.value}
        if self.record is not None:
            resp["repository"] = self.record.repository
            resp["imageTag"] = self.record.image_tag
            resp["timestamp"] = self.record.timestamp
        elif self.event is not None:
            resp["repository"] = self.event.repository
            resp["imageTag"] = self.event.image_tag
        if self.failure is not None:
            resp["failure"] = self.failure.value
        if self.error:
            resp["error"] = self.error
        if self.message_id:
            resp["messageId"] = self.message_id
        return resp
