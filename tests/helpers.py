from dataclasses import dataclass
from datetime import datetime, timezone

FIXED_NOW = datetime(2025, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


class FakeRecordStore:
    """Dict keyed by image tag, like the DynamoDB table."""

    def __init__(self, fail_with=None):
        self.items = {}
        self.calls = 0
        self.fail_with = fail_with

    def put(self, record):
        self.calls += 1
        if self.fail_with is not None:
            raise self.fail_with
        self.items[record.image_tag] = record
        return record


class FakeChannel:
    def __init__(self, fail_with=None):
        self.published = []
        self.fail_with = fail_with

    def publish(self, message):
        if self.fail_with is not None:
            raise self.fail_with
        self.published.append(message)
        return f"msg-{len(self.published)}"


@dataclass
class FakeLambdaContext:
    function_name: str = "ecr-postprocessor"
    memory_limit_in_mb: int = 128
    invoked_function_arn: str = "arn:aws:lambda:us-east-1:123456789012:function:ecr-postprocessor"
    aws_request_id: str = "52fdfc07-2182-154f-163f-5f0f9a621d72"

    def get_remaining_time_in_millis(self) -> int:
        return 30000


def push_event(repository="sample-app-repo", tag="20250101-1200-abc123"):
    detail = {}
    if repository is not None:
        detail["repository"] = repository
    if tag is not None:
        detail["imageTag"] = tag
    return {
        "version": "0",
        "source": "jenkins.pipeline",
        "detail-type": "ImagePushed",
        "detail": detail,
    }
