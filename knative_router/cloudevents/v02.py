"""CloudEvents 0.2 — lower-case ``ce-`` headers, short attribute names."""

from __future__ import annotations

from knative_router.cloudevents.base import CloudEventAttribute, CloudEventsSpec

V02 = CloudEventsSpec(
    "0.2",
    [
        CloudEventAttribute(name="spec_version", header="ce-specversion", json_key="specversion"),
        CloudEventAttribute(name="event_type", header="ce-type", json_key="type"),
        CloudEventAttribute(name="event_id", header="ce-id", json_key="id"),
        CloudEventAttribute(name="event_time", header="ce-time", json_key="time"),
        CloudEventAttribute(name="source", header="ce-source", json_key="source"),
        CloudEventAttribute(name="content_type", header="Content-Type", json_key="contenttype"),
    ],
)
