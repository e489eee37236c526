"""In-flight message and the normalized CloudEvents envelope."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

CONTENT_TYPE_HEADER = "Content-Type"
MIME_STRUCTURED_CONTENT_MODE = "application/cloudevents+json"


class Message(BaseModel):
    """A mutable unit of work passed from processor to processor.

    Header names are matched case-insensitively, the way HTTP treats
    them; the spelling of the most recent ``set_header`` call is kept.
    """

    headers: dict[str, Any] = Field(default_factory=dict)
    body: Any = None

    # ------------------------------------------------------------------
    # Headers
    # ------------------------------------------------------------------

    def _key(self, name: str) -> str | None:
        lowered = name.lower()
        for key in self.headers:
            if key.lower() == lowered:
                return key
        return None

    def has_header(self, name: str) -> bool:
        return self._key(name) is not None

    def get_header(self, name: str, default: Any = None) -> Any:
        key = self._key(name)
        return self.headers[key] if key is not None else default

    def set_header(self, name: str, value: Any) -> None:
        key = self._key(name)
        if key is not None:
            del self.headers[key]
        self.headers[name] = value

    def set_header_if_absent(self, name: str, value: Any) -> bool:
        """Set *name* only when it is missing.  Returns ``True`` if set."""
        if value is None or self.has_header(name):
            return False
        self.headers[name] = value
        return True

    def remove_header(self, name: str) -> Any:
        key = self._key(name)
        if key is None:
            return None
        return self.headers.pop(key)

    @property
    def content_type(self) -> str | None:
        return self.get_header(CONTENT_TYPE_HEADER)

    @content_type.setter
    def content_type(self, value: str | None) -> None:
        if value is None:
            self.remove_header(CONTENT_TYPE_HEADER)
        else:
            self.set_header(CONTENT_TYPE_HEADER, value)

    @property
    def is_structured(self) -> bool:
        """Whether the body carries a structured-mode CloudEvent."""
        content_type = self.content_type
        if not content_type:
            return False
        return content_type.split(";")[0].strip().lower() == MIME_STRUCTURED_CONTENT_MODE

    def copy_from(self, other: Message) -> None:
        """Replace headers and body with those of *other*."""
        self.headers = dict(other.headers)
        self.body = other.body


class CloudEvent(BaseModel):
    """Normalized, version-independent view of a CloudEvents envelope.

    ``event_time`` is kept as the exact string seen on the wire so that a
    decode/encode cycle does not reformat it; it must still parse as an
    ISO-8601 timestamp.
    """

    model_config = ConfigDict(frozen=True)

    spec_version: str = Field(min_length=1)
    event_type: str = Field(min_length=1)
    event_id: str = Field(min_length=1)
    event_time: str
    source: str = Field(min_length=1)
    content_type: str | None = None
    data: Any = None
    extensions: dict[str, Any] = Field(default_factory=dict)

    @field_validator("event_time")
    @classmethod
    def _check_event_time(cls, value: str) -> str:
        try:
            datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError as exc:
            raise ValueError(f"event time {value!r} is not an ISO-8601 timestamp") from exc
        return value
