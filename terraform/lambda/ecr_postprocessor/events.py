"""Validation of the EventBridge "image pushed" payload.

The Jenkins pipeline emits a custom event whose ``detail`` carries
``repository`` and ``imageTag``. Missing or blank fields become ``"unknown"``
so the push is still recorded; only a payload that is not a mapping at all is
rejected, as is an ``imageTag`` too long to be a table key.
"""
from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Mapping, Union

UNKNOWN = "unknown"

# DynamoDB partition key limit.
MAX_KEY_BYTES = 2048


@dataclass(frozen=True)
class ImagePushEvent:
    repository: str
    image_tag: str
    received_at: datetime


@dataclass(frozen=True)
class InvalidEvent:
    reason: str
    payload_type: str


ParsedEvent = Union[ImagePushEvent, InvalidEvent]


def parse_event(payload: Any, clock: Callable[[], datetime]) -> ParsedEvent:
    if isinstance(payload, (str, bytes, bytearray)):
        raw_type = type(payload).__name__
        try:
            payload = json.loads(payload)
        except (ValueError, RecursionError):
            return InvalidEvent("payload is not valid JSON", raw_type)

    if not isinstance(payload, Mapping):
        return InvalidEvent("payload is not a mapping", type(payload).__name__)

    detail = payload.get("detail")
    if not isinstance(detail, Mapping):
        detail = {}

    image_tag = _field(detail, "imageTag")
    if len(image_tag.encode("utf-8")) > MAX_KEY_BYTES:
        return InvalidEvent(f"imageTag exceeds {MAX_KEY_BYTES} bytes", type(payload).__name__)

    return ImagePushEvent(
        repository=_field(detail, "repository"),
        image_tag=image_tag,
        received_at=clock(),
    )


def _field(detail: Mapping, name: str) -> str:
    value = detail.get(name)
    if not isinstance(value, str) or not value.strip():
        return UNKNOWN
    return value.strip()
