"""Post-processing of "image pushed" events from the Jenkins pipeline.

EventBridge invokes ``lambda_handler`` at least once per push. Each
invocation records the push in DynamoDB, keyed by image tag, and then
publishes a notification to SNS. A failed write raises so that the
asynchronous invocation is retried; a failed publish does not, since the
record is already durable.
"""
from __future__ import annotations

import functools
from datetime import datetime, timezone
from typing import Any, Callable, Optional

import boto3
from aws_lambda_powertools.utilities.typing import LambdaContext
from botocore.config import Config

from .config import Settings
from .events import InvalidEvent, parse_event
from .logger import logger
from .notifications import NotificationChannel, SnsNotificationChannel, format_message
from .outcomes import FailureKind, ProcessingOutcome, ProcessingResult, Stage
from .records import DynamoDBRecordStore, PersistenceError, RecordStore, build_record


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ProcessingFailed(Exception):
    """Raised from the entry point so the invoking service redelivers the event."""

    def __init__(self, result: ProcessingResult):
        super().__init__(f"{result.failure.value} at {result.stage.value}: {result.error}")
        self.result = result


class EventHandler:
    def __init__(
        self,
        store: RecordStore,
        channel: NotificationChannel,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.store = store
        self.channel = channel
        self.clock = clock

    def handle(self, payload: Any) -> ProcessingResult:
        try:
            result = self._process(payload)
        finally:
            logger.remove_keys(["repository", "image_tag"])
        return result

    def _process(self, payload: Any) -> ProcessingResult:
        try:
            event = parse_event(payload, self.clock)
        except Exception as exc:
            return self._finish(ProcessingResult(
                outcome=ProcessingOutcome.FAILED,
                stage=Stage.RECEIVED,
                failure=FailureKind.UNEXPECTED,
                error=str(exc),
            ), exc)

        if isinstance(event, InvalidEvent):
            return self._finish(ProcessingResult(
                outcome=ProcessingOutcome.REJECTED_INVALID_EVENT,
                stage=Stage.RECEIVED,
                failure=FailureKind.INVALID_EVENT,
                error=f"{event.reason} ({event.payload_type})",
            ))

        logger.append_keys(repository=event.repository, image_tag=event.image_tag)

        try:
            record = self.store.put(build_record(event, self.clock))
        except PersistenceError as exc:
            return self._finish(ProcessingResult(
                outcome=ProcessingOutcome.FAILED,
                stage=Stage.VALIDATED,
                event=event,
                failure=FailureKind.PERSISTENCE,
                error=str(exc),
            ), exc)
        except Exception as exc:
            return self._finish(ProcessingResult(
                outcome=ProcessingOutcome.FAILED,
                stage=Stage.VALIDATED,
                event=event,
                failure=FailureKind.UNEXPECTED,
                error=str(exc),
            ), exc)

        # The record is durable from here on; nothing below may fail the invocation.
        try:
            message_id = self.channel.publish(format_message(record))
        except Exception as exc:
            return self._finish(ProcessingResult(
                outcome=ProcessingOutcome.COMPLETED_WITH_NOTIFICATION_FAILURE,
                stage=Stage.PERSISTED,
                event=event,
                record=record,
                failure=FailureKind.NOTIFICATION,
                error=str(exc),
            ), exc)

        return self._finish(ProcessingResult(
            outcome=ProcessingOutcome.COMPLETED,
            stage=Stage.NOTIFIED,
            event=event,
            record=record,
            message_id=message_id,
        ))

    def _finish(self, result: ProcessingResult, exc: Optional[BaseException] = None) -> ProcessingResult:
        """Log the single terminal line for this invocation."""
        extra = {"outcome": result.outcome.value, "stage": result.stage.value}
        if result.failure is not None:
            extra["failure"] = result.failure.value
            extra["error"] = result.error

        if result.outcome is ProcessingOutcome.COMPLETED:
            logger.info("Image push processed", extra=extra)
        elif result.outcome is ProcessingOutcome.COMPLETED_WITH_NOTIFICATION_FAILURE:
            logger.warning("Image push recorded, notification not sent", extra=extra, exc_info=exc)
        else:
            logger.error("Image push not processed", extra=extra, exc_info=exc)
        return result


def build_handler(settings: Settings, session: Optional[boto3.Session] = None) -> EventHandler:
    session = session or boto3.Session()
    config = Config(
        connect_timeout=settings.connect_timeout,
        read_timeout=settings.read_timeout,
        retries={"total_max_attempts": settings.max_attempts, "mode": "standard"},
    )
    ddb = session.client("dynamodb", config=config)
    sns = session.client("sns", config=config)
    return EventHandler(
        store=DynamoDBRecordStore(ddb, settings.table_name, conditional=settings.conditional_write),
        channel=SnsNotificationChannel(sns, settings.topic_arn),
    )


@functools.lru_cache(maxsize=None)
def _default_handler() -> EventHandler:
    # Built once per container; environment and clients don't change between invocations.
    return build_handler(Settings.from_env())


@logger.inject_lambda_context(log_event=True, clear_state=True)
def lambda_handler(event: Any, context: LambdaContext) -> dict:
    result = _default_handler().handle(event)
    if result.retryable:
        raise ProcessingFailed(result)
    return result.to_response()
