"""Version-independent CloudEvents codec machinery.

Every spec version is described by an attribute table: which header carries
each attribute in binary mode and which JSON key carries it in structured
mode.  The encode/decode algorithm is shared; only the table differs.
"""

from __future__ import annotations

import base64
import binascii
import json
import logging
import uuid
from collections.abc import Sequence
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, ValidationError

from knative_router.errors import ParseError
from knative_router.models.message import (
    CONTENT_TYPE_HEADER,
    CloudEvent,
    Message,
)

if TYPE_CHECKING:
    from knative_router.router.endpoint import KnativeEndpoint

logger = logging.getLogger(__name__)

DEFAULT_EVENT_TYPE = "org.apache.camel.event"
HEADER_PREFIX = "ce-"
DATA_KEY = "data"
# Binary payloads travel base64-encoded under this key instead of DATA_KEY
DATA_BASE64_KEY = "data_base64"

DEFAULT_DATA_CONTENT_TYPE = "application/json"
BINARY_DATA_CONTENT_TYPE = "application/octet-stream"

# Envelope fields every version must carry
REQUIRED_ATTRIBUTES = ("spec_version", "event_type", "event_id", "event_time", "source")


class CloudEventAttribute(BaseModel):
    """Wire names of one envelope attribute in a given spec version."""

    model_config = ConfigDict(frozen=True)

    name: str  # CloudEvent field name
    header: str
    json_key: str


class CloudEventsSpec:
    """One CloudEvents spec version.

    Parameters
    ----------
    version:
        The version string, e.g. ``"0.1"``.
    attributes:
        Attribute table; must cover every ``REQUIRED_ATTRIBUTES`` entry and
        ``content_type``.
    capitalized_extensions:
        ``True`` when extension headers are spelled ``CE-Name`` and map to
        JSON key ``name`` (0.1); ``False`` for lower-case ``ce-name`` (0.2+).
    """

    def __init__(
        self,
        version: str,
        attributes: Sequence[CloudEventAttribute],
        *,
        capitalized_extensions: bool = False,
    ) -> None:
        self._version = version
        self._attributes = {a.name: a for a in attributes}
        self._capitalized_extensions = capitalized_extensions
        self._known_headers = {a.header.lower() for a in attributes}
        self._known_keys = {a.json_key for a in attributes} | {DATA_KEY, DATA_BASE64_KEY}
        missing = set(REQUIRED_ATTRIBUTES + ("content_type",)) - set(self._attributes)
        if missing:
            raise ValueError(f"CloudEvents {version} table lacks {sorted(missing)}")

    @property
    def version(self) -> str:
        return self._version

    @property
    def attributes(self) -> tuple[CloudEventAttribute, ...]:
        return tuple(self._attributes.values())

    def header_for(self, name: str) -> str:
        return self._attributes[name].header

    def json_key_for(self, name: str) -> str:
        return self._attributes[name].json_key

    # ------------------------------------------------------------------
    # Extension naming
    # ------------------------------------------------------------------

    def extension_header(self, key: str) -> str:
        if self._capitalized_extensions:
            return "CE-" + key[:1].upper() + key[1:]
        return HEADER_PREFIX + key.lower()

    def extension_key(self, header: str) -> str:
        name = header[len(HEADER_PREFIX):]
        if self._capitalized_extensions:
            return name[:1].lower() + name[1:]
        return name.lower()

    def is_event_header(self, header: str) -> bool:
        """Whether *header* carries an envelope attribute (content type aside)."""
        lowered = header.lower()
        if lowered == CONTENT_TYPE_HEADER.lower():
            return False
        return lowered.startswith(HEADER_PREFIX) or lowered in self._known_headers

    # ------------------------------------------------------------------
    # Binary mode
    # ------------------------------------------------------------------

    def event_from_headers(self, message: Message) -> CloudEvent:
        """Read a binary-mode envelope from *message* headers.

        Raises
        ------
        ParseError
            If a required attribute is missing or malformed.
        """
        fields: dict[str, Any] = {}
        for name in REQUIRED_ATTRIBUTES:
            value = message.get_header(self.header_for(name))
            if value is not None:
                fields[name] = str(value)
        extensions = {
            self.extension_key(header): value
            for header, value in message.headers.items()
            if self.is_event_header(header) and header.lower() not in self._known_headers
        }
        return self._build(
            fields,
            content_type=message.content_type,
            data=message.body,
            extensions=extensions,
            mode="binary",
        )

    def strip_headers(self, message: Message) -> None:
        for header in [h for h in message.headers if self.is_event_header(h)]:
            del message.headers[header]

    def apply_event(self, event: CloudEvent, message: Message) -> None:
        """Write *event* onto *message* in binary mode.

        An event without a content type gets a default one, so the message
        never keeps a structured-mode marker over a bare payload.
        """
        for name in REQUIRED_ATTRIBUTES:
            message.set_header(self.header_for(name), getattr(event, name))
        for key, value in event.extensions.items():
            message.set_header(self.extension_header(key), value)
        if event.content_type is not None:
            message.content_type = event.content_type
        elif isinstance(event.data, bytes):
            message.content_type = BINARY_DATA_CONTENT_TYPE
        else:
            message.content_type = DEFAULT_DATA_CONTENT_TYPE
        message.body = event.data

    # ------------------------------------------------------------------
    # Structured mode
    # ------------------------------------------------------------------

    def event_from_json(self, document: Any) -> CloudEvent:
        """Decode a structured-mode body.

        *document* may be the raw ``bytes``/``str`` body or an already
        parsed mapping.

        Raises
        ------
        ParseError
            On a body that is not UTF-8, malformed JSON, a non-object
            document, a missing or malformed required attribute, or
            invalid base64 data.
        """
        if isinstance(document, (bytes, bytearray)):
            try:
                document = document.decode("utf-8")
            except UnicodeDecodeError as exc:
                raise ParseError(f"Structured CloudEvent body is not UTF-8: {exc}") from exc
        if isinstance(document, str):
            try:
                document = json.loads(document)
            except json.JSONDecodeError as exc:
                raise ParseError(f"Invalid structured CloudEvent JSON: {exc}") from exc
        if not isinstance(document, dict):
            raise ParseError(
                f"Structured CloudEvent must be a JSON object, got {type(document).__name__}"
            )

        fields = {
            name: document[self.json_key_for(name)]
            for name in REQUIRED_ATTRIBUTES
            if document.get(self.json_key_for(name)) is not None
        }
        extensions = {k: v for k, v in document.items() if k not in self._known_keys}
        return self._build(
            fields,
            content_type=document.get(self.json_key_for("content_type")),
            data=self._data_from_json(document),
            extensions=extensions,
            mode="structured",
        )

    def event_to_json(self, event: CloudEvent) -> dict[str, Any]:
        """Encode *event* as a structured-mode document.

        ``bytes`` data is written base64-encoded under ``data_base64`` so
        that decoding restores the exact payload.
        """
        document: dict[str, Any] = {
            self.json_key_for(name): getattr(event, name) for name in REQUIRED_ATTRIBUTES
        }
        if event.content_type is not None:
            document[self.json_key_for("content_type")] = event.content_type
        document.update(event.extensions)
        data = event.data
        if isinstance(data, (bytes, bytearray)):
            document[DATA_BASE64_KEY] = base64.b64encode(bytes(data)).decode("ascii")
        else:
            document[DATA_KEY] = data
        return document

    def _data_from_json(self, document: dict[str, Any]) -> Any:
        encoded = document.get(DATA_BASE64_KEY)
        if encoded is None:
            return document.get(DATA_KEY)
        if not isinstance(encoded, str):
            raise ParseError(f"{DATA_BASE64_KEY} must be a string, got {type(encoded).__name__}")
        try:
            return base64.b64decode(encoded, validate=True)
        except binascii.Error as exc:
            raise ParseError(f"Invalid {DATA_BASE64_KEY} in structured CloudEvent: {exc}") from exc

    # ------------------------------------------------------------------
    # Processors
    # ------------------------------------------------------------------

    def producer_processor(self, endpoint: KnativeEndpoint) -> CloudEventsProducer:
        """Processor stamping outbound messages with envelope attributes."""
        event_type = (
            endpoint.configuration.cloud_events_type
            or endpoint.service.event_type
            or DEFAULT_EVENT_TYPE
        )
        return CloudEventsProducer(
            self,
            source=endpoint.canonical_uri,
            event_type=event_type,
            content_type=endpoint.service.content_type,
        )

    def consumer_processor(self, endpoint: KnativeEndpoint) -> CloudEventsConsumer:
        """Processor normalizing inbound messages to binary mode."""
        return CloudEventsConsumer(self)

    def _build(
        self,
        fields: dict[str, Any],
        *,
        content_type: Any,
        data: Any,
        extensions: dict[str, Any],
        mode: str,
    ) -> CloudEvent:
        missing = [n for n in REQUIRED_ATTRIBUTES if n not in fields]
        if missing:
            wire = [
                self.header_for(n) if mode == "binary" else self.json_key_for(n)
                for n in missing
            ]
            raise ParseError(
                f"CloudEvents {self._version} {mode} message is missing {', '.join(wire)}"
            )
        try:
            return CloudEvent(
                **fields,
                content_type=content_type,
                data=data,
                extensions=extensions,
            )
        except ValidationError as exc:
            raise ParseError(f"Invalid CloudEvents {self._version} {mode} message: {exc}") from exc

    def __repr__(self) -> str:
        return f"CloudEventsSpec(version={self._version!r})"


class CloudEventsProducer:
    """Stamps envelope attributes on outbound messages.

    Attributes already present on the message are left untouched so that a
    forwarded event keeps its identity.  The id and time are generated per
    message at send time.
    """

    def __init__(
        self,
        spec: CloudEventsSpec,
        *,
        source: str,
        event_type: str,
        content_type: str | None = None,
    ) -> None:
        self.spec = spec
        self.source = source
        self.event_type = event_type
        self.content_type = content_type

    def __call__(self, message: Message) -> None:
        header = self.spec.header_for
        message.set_header_if_absent(header("spec_version"), self.spec.version)
        message.set_header_if_absent(header("event_type"), self.event_type)
        message.set_header_if_absent(header("event_id"), str(uuid.uuid4()))
        message.set_header_if_absent(
            header("event_time"), datetime.now(timezone.utc).isoformat()
        )
        message.set_header_if_absent(header("source"), self.source)
        message.set_header_if_absent(CONTENT_TYPE_HEADER, self.content_type)


class CloudEventsConsumer:
    """Normalizes inbound messages to binary mode.

    Structured bodies are unpacked into headers plus the ``data`` payload;
    binary messages are validated and passed through unchanged.
    """

    def __init__(self, spec: CloudEventsSpec) -> None:
        self.spec = spec

    def __call__(self, message: Message) -> None:
        if message.is_structured:
            event = self.spec.event_from_json(message.body)
            self.spec.apply_event(event, message)
            logger.debug("Decoded structured CloudEvent %s", event.event_id)
        else:
            self.spec.event_from_headers(message)
