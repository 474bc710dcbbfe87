"""Runtime configuration read from the Lambda environment.

Variables:
  DDB_TABLE              DynamoDB table holding one item per image tag (required)
  SNS_ARN                SNS topic receiving push notifications (required)
  DDB_CONDITIONAL_WRITE  "true" to write-if-absent instead of overwrite
  AWS_CONNECT_TIMEOUT    seconds, default 2
  AWS_READ_TIMEOUT       seconds, default 5
  AWS_MAX_ATTEMPTS       SDK attempts per call, default 1
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"", "0", "false", "no", "off"}


class ConfigurationError(Exception):
    pass


@dataclass(frozen=True)
class Settings:
    table_name: str
    topic_arn: str
    conditional_write: bool = False
    connect_timeout: float = 2.0
    read_timeout: float = 5.0
    max_attempts: int = 1

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if environ is None else environ
        problems = []

        table = env.get("DDB_TABLE", "").strip()
        topic = env.get("SNS_ARN", "").strip()
        if not table:
            problems.append("DDB_TABLE is not set")
        if not topic:
            problems.append("SNS_ARN is not set")

        conditional = env.get("DDB_CONDITIONAL_WRITE", "").strip().lower()
        if conditional not in _TRUE | _FALSE:
            problems.append(f"DDB_CONDITIONAL_WRITE must be a boolean, got {conditional!r}")

        connect_timeout = _number(env, "AWS_CONNECT_TIMEOUT", cls.connect_timeout, float, problems)
        read_timeout = _number(env, "AWS_READ_TIMEOUT", cls.read_timeout, float, problems)
        max_attempts = _number(env, "AWS_MAX_ATTEMPTS", cls.max_attempts, int, problems)

        if problems:
            raise ConfigurationError("; ".join(problems))

        return cls(
            table_name=table,
            topic_arn=topic,
            conditional_write=conditional in _TRUE,
            connect_timeout=connect_timeout,
            read_timeout=read_timeout,
            max_attempts=max_attempts,
        )


def _number(env, name, default, kind, problems):
    raw = env.get(name, "").strip()
    if not raw:
        return default
    try:
        value = kind(raw)
    except ValueError:
        problems.append(f"{name} must be a {kind.__name__}, got {raw!r}")
        return default
    if value <= 0:
        problems.append(f"{name} must be positive, got {raw!r}")
        return default
    return value
