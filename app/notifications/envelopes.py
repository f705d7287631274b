"""
Task envelope describing one unit of notification work.

A NotificationTask is what the dispatcher puts on the queue and what the
task processor consumes. It is immutable once built and travels over the
broker as a plain JSON dict (see to_payload/from_payload).

Wire format:
    {
        "recipient_id": 7,
        "title": "Test",
        "body": "hi",
        "url": null,
        "idempotency_key": null
    }

Usage:
    from notifications.envelopes import NotificationTask

    task = NotificationTask(recipient_id=7, title="Test", body="hi")
    payload = task.to_payload()
    same_task = NotificationTask.from_payload(payload)

Note:
    Two envelopes with identical fields are still two distinct tasks;
    nothing in the pipeline deduplicates on field equality. Deduplication
    only happens when an idempotency_key is supplied.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import asdict, dataclass
from typing import Any

from notifications.exceptions import InvalidTaskError

REQUIRED_FIELDS = ("recipient_id", "title")

# Column sizes of the Notification table
TITLE_MAX_LENGTH = 255
URL_MAX_LENGTH = 2048
IDEMPOTENCY_KEY_MAX_LENGTH = 255


@dataclass(frozen=True)
class NotificationTask:
    """
    Immutable description of a notification to create.

    Fields:
        recipient_id: Primary key of the target user (checked at processing time)
        title: Non-empty short text
        body: Text, may be empty
        url: Optional deep link; None means "no link"
        idempotency_key: Optional key making redelivery effectively-once

    Raises:
        InvalidTaskError: If any field has the wrong type, title is empty,
            or a field exceeds its column size
    """

    recipient_id: int
    title: str
    body: str = ""
    url: str | None = None
    idempotency_key: str | None = None

    def __post_init__(self) -> None:
        # bool is an int subclass but never a valid primary key
        if isinstance(self.recipient_id, bool) or not isinstance(
            self.recipient_id, int
        ):
            raise InvalidTaskError(
                "recipient_id must be an integer",
                details={"recipient_id": repr(self.recipient_id)},
            )
        if not isinstance(self.title, str) or not self.title.strip():
            raise InvalidTaskError("title must be a non-empty string")
        if len(self.title) > TITLE_MAX_LENGTH:
            raise InvalidTaskError(
                f"title must be at most {TITLE_MAX_LENGTH} characters",
                details={"length": len(self.title)},
            )
        if not isinstance(self.body, str):
            raise InvalidTaskError("body must be a string")
        if self.url is not None and not isinstance(self.url, str):
            raise InvalidTaskError("url must be a string or None")
        if self.url is not None and len(self.url) > URL_MAX_LENGTH:
            raise InvalidTaskError(
                f"url must be at most {URL_MAX_LENGTH} characters",
                details={"length": len(self.url)},
            )
        if self.idempotency_key is not None and (
            not isinstance(self.idempotency_key, str) or not self.idempotency_key
        ):
            raise InvalidTaskError("idempotency_key must be a non-empty string or None")
        if (
            self.idempotency_key is not None
            and len(self.idempotency_key) > IDEMPOTENCY_KEY_MAX_LENGTH
        ):
            raise InvalidTaskError(
                f"idempotency_key must be at most "
                f"{IDEMPOTENCY_KEY_MAX_LENGTH} characters"
            )

    def to_payload(self) -> dict[str, Any]:
        """Return the JSON-serializable wire representation."""
        return asdict(self)

    @classmethod
    def from_payload(cls, payload: Any) -> NotificationTask:
        """
        Rebuild an envelope from its wire representation.

        Unknown keys are ignored so older workers can read newer payloads.

        Raises:
            InvalidTaskError: If the payload is not a mapping, lacks required
                keys, or carries invalid values
        """
        if not isinstance(payload, Mapping):
            raise InvalidTaskError(
                "Task payload must be a mapping",
                details={"payload_type": type(payload).__name__},
            )

        missing = [name for name in REQUIRED_FIELDS if name not in payload]
        if missing:
            raise InvalidTaskError(
                "Task payload is missing required fields",
                details={"missing": missing},
            )

        return cls(
            recipient_id=payload["recipient_id"],
            title=payload["title"],
            body=payload.get("body", ""),
            url=payload.get("url"),
            idempotency_key=payload.get("idempotency_key"),
        )
