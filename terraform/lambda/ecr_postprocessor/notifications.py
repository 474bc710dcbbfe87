from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Protocol

from botocore.exceptions import BotoCoreError, ClientError

from .records import ImageRecord

SUBJECT = "ECR Image Push Notification"


@dataclass(frozen=True)
class NotificationMessage:
    subject: str
    body: str


class NotificationError(Exception):
    pass


class NotificationChannel(Protocol):
    def publish(self, message: NotificationMessage) -> Optional[str]: ...


def format_message(record: ImageRecord) -> NotificationMessage:
    return NotificationMessage(
        subject=SUBJECT,
        body=f"Image pushed: {record.repository}:{record.image_tag} at {record.timestamp}",
    )


class SnsNotificationChannel:
    def __init__(self, client, topic_arn: str):
        self.client = client
        self.topic_arn = topic_arn

    def publish(self, message: NotificationMessage) -> Optional[str]:
        """Publish to the topic; subscriber delivery is SNS's concern. Returns the MessageId."""
        try:
            resp = self.client.publish(
                TopicArn=self.topic_arn,
                Message=message.body,
                Subject=message.subject,
            )
        except (ClientError, BotoCoreError) as exc:
            raise NotificationError(f"publish to {self.topic_arn} failed: {exc}") from exc
        return resp.get("MessageId")
