"""Durable record of each pushed image, keyed by ``imageTag``.

Redelivery of the same push rewrites the same logical fact, so the default
write is a plain ``put_item``. With ``conditional=True`` the first write wins
and later deliveries read back what is already stored.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Mapping, Protocol

from botocore.exceptions import BotoCoreError, ClientError

from .events import ImagePushEvent
from .logger import logger


@dataclass(frozen=True)
class ImageRecord:
    image_tag: str
    repository: str
    timestamp: str

    def to_item(self) -> dict:
        return {
            "imageTag": {"S": self.image_tag},
            "repository": {"S": self.repository},
            "timestamp": {"S": self.timestamp},
        }

    @classmethod
    def from_item(cls, item: Mapping, fallback: "ImageRecord") -> "ImageRecord":
        """Parse a stored item; attributes missing or not string-typed keep ``fallback``'s value."""

        def attr(name, default):
            value = item.get(name)
            if isinstance(value, Mapping) and isinstance(value.get("S"), str):
                return value["S"]
            return default

        return cls(
            image_tag=attr("imageTag", fallback.image_tag),
            repository=attr("repository", fallback.repository),
            timestamp=attr("timestamp", fallback.timestamp),
        )


class PersistenceError(Exception):
    """The record store rejected or did not acknowledge a write."""

    def __init__(self, image_tag: str, cause: Exception):
        super().__init__(f"failed to persist record for {image_tag!r}: {cause}")
        self.image_tag = image_tag
        self.cause = cause


class RecordStore(Protocol):
    def put(self, record: ImageRecord) -> ImageRecord: ...


def build_record(event: ImagePushEvent, clock: Callable[[], datetime]) -> ImageRecord:
    return ImageRecord(
        image_tag=event.image_tag,
        repository=event.repository,
        timestamp=clock().isoformat(),
    )


class DynamoDBRecordStore:
    def __init__(self, client, table_name: str, conditional: bool = False):
        self.client = client
        self.table_name = table_name
        self.conditional = conditional

    def put(self, record: ImageRecord) -> ImageRecord:
        if not self.conditional:
            self._put_item(record)
            return record

        try:
            self._put_item(record, ConditionExpression="attribute_not_exists(imageTag)")
        except PersistenceError as exc:
            if not _is_condition_failure(exc.cause):
                raise
            logger.info("Record already exists, keeping stored item", extra={"table": self.table_name})
            return self._get(record)
        return record

    def _put_item(self, record: ImageRecord, **kwargs) -> None:
        try:
            self.client.put_item(TableName=self.table_name, Item=record.to_item(), **kwargs)
        except (ClientError, BotoCoreError) as exc:
            raise PersistenceError(record.image_tag, exc) from exc

    def _get(self, record: ImageRecord) -> ImageRecord:
        try:
            resp = self.client.get_item(
                TableName=self.table_name,
                Key={"imageTag": {"S": record.image_tag}},
                ConsistentRead=True,
            )
        except (ClientError, BotoCoreError) as exc:
            raise PersistenceError(record.image_tag, exc) from exc
        item = resp.get("Item")
        return ImageRecord.from_item(item, fallback=record) if item else record


def _is_condition_failure(exc: Exception) -> bool:
    return (
        isinstance(exc, ClientError)
        and exc.response.get("Error", {}).get("Code") == "ConditionalCheckFailedException"
    )
