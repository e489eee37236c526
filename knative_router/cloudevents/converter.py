"""Binary/structured content-mode conversion for outbound messages."""

from __future__ import annotations

import json
import logging

from knative_router.cloudevents.base import CloudEventsSpec
from knative_router.models.message import MIME_STRUCTURED_CONTENT_MODE, Message

logger = logging.getLogger(__name__)


class ContentModeConverter:
    """Rewrites a binary-mode message into structured mode when enabled.

    The envelope headers are folded, together with the body as ``data``,
    into one JSON object that replaces the body.  Inbound messages need no
    converter: the consumer processor detects the mode from the content
    type.  Holds no per-message state.
    """

    def __init__(self, spec: CloudEventsSpec, json_serialization_enabled: bool = False) -> None:
        self.spec = spec
        self.enabled = json_serialization_enabled

    def __call__(self, message: Message) -> None:
        if not self.enabled or message.is_structured:
            return
        event = self.spec.event_from_headers(message)
        self.spec.strip_headers(message)
        message.body = json.dumps(self.spec.event_to_json(event))
        message.content_type = MIME_STRUCTURED_CONTENT_MODE
        logger.debug("Serialized CloudEvent %s in structured mode", event.event_id)

    def __repr__(self) -> str:
        return f"ContentModeConverter(version={self.spec.version!r}, enabled={self.enabled})"
