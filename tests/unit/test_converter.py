"""Unit tests for content-mode conversion."""

from __future__ import annotations

import json

import pytest

from knative_router.cloudevents import (
    V01,
    V02,
    CloudEventsConsumer,
    CloudEventsProducer,
    ContentModeConverter,
)
from knative_router.errors import ParseError
from knative_router.models.message import MIME_STRUCTURED_CONTENT_MODE, Message


def _encoded(spec, **headers) -> Message:
    message = Message(headers=dict(headers), body="payload")
    CloudEventsProducer(spec, source="knative://endpoint/e", event_type="t")(message)
    return message


class TestContentModeConverter:

    def test_disabled_is_noop(self):
        message = _encoded(V02)
        before = message.model_copy(deep=True)
        ContentModeConverter(V02)(message)
        assert message == before

    def test_structured_body(self):
        message = _encoded(V02, **{"Content-Type": "text/plain", "X-Trace": "1"})
        event_id = message.get_header("ce-id")
        ContentModeConverter(V02, json_serialization_enabled=True)(message)

        assert message.content_type == MIME_STRUCTURED_CONTENT_MODE
        assert message.headers == {"Content-Type": MIME_STRUCTURED_CONTENT_MODE, "X-Trace": "1"}
        document = json.loads(message.body)
        assert document["id"] == event_id
        assert document["source"] == "knative://endpoint/e"
        assert document["type"] == "t"
        assert document["specversion"] == "0.2"
        assert document["contenttype"] == "text/plain"
        assert document["data"] == "payload"

    def test_v01_keys(self):
        message = _encoded(V01)
        ContentModeConverter(V01, json_serialization_enabled=True)(message)
        document = json.loads(message.body)
        assert document["cloudEventsVersion"] == "0.1"
        assert "eventID" in document

    def test_already_structured_untouched(self):
        message = Message(headers={"Content-Type": MIME_STRUCTURED_CONTENT_MODE}, body="{}")
        ContentModeConverter(V02, json_serialization_enabled=True)(message)
        assert message.body == "{}"

    def test_unencoded_message_rejected(self):
        with pytest.raises(ParseError):
            ContentModeConverter(V02, json_serialization_enabled=True)(Message(body="x"))

    def test_consumer_inverts_converter(self):
        message = _encoded(V02, **{"Content-Type": "text/plain"})
        original = dict(message.headers)
        ContentModeConverter(V02, json_serialization_enabled=True)(message)
        CloudEventsConsumer(V02)(message)
        assert message.body == "payload"
        for header, value in original.items():
            assert message.get_header(header) == value

    @pytest.mark.parametrize("payload", [b"hello", b"\x00\xff"])
    def test_bytes_payload_round_trip(self, payload):
        message = _encoded(V01, **{"Content-Type": "application/octet-stream"})
        message.body = payload
        ContentModeConverter(V01, json_serialization_enabled=True)(message)
        assert "data_base64" in json.loads(message.body)
        CloudEventsConsumer(V01)(message)
        assert message.body == payload
        assert message.content_type == "application/octet-stream"

    def test_forwarded_event_without_content_type_converts_again(self):
        message = _encoded(V02)
        ContentModeConverter(V02, json_serialization_enabled=True)(message)
        CloudEventsConsumer(V02)(message)
        assert not message.is_structured

        ContentModeConverter(V02, json_serialization_enabled=True)(message)
        assert message.is_structured
        CloudEventsConsumer(V02)(message)
        assert message.body == "payload"
