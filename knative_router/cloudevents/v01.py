"""CloudEvents 0.1 — ``CE-`` prefixed, capitalized attribute headers."""

from __future__ import annotations

from knative_router.cloudevents.base import CloudEventAttribute, CloudEventsSpec

V01 = CloudEventsSpec(
    "0.1",
    [
        CloudEventAttribute(name="spec_version", header="CE-CloudEventsVersion", json_key="cloudEventsVersion"),
        CloudEventAttribute(name="event_type", header="CE-EventType", json_key="eventType"),
        CloudEventAttribute(name="event_id", header="CE-EventID", json_key="eventID"),
        CloudEventAttribute(name="event_time", header="CE-EventTime", json_key="eventTime"),
        CloudEventAttribute(name="source", header="CE-Source", json_key="source"),
        CloudEventAttribute(name="content_type", header="Content-Type", json_key="contentType"),
    ],
    capitalized_extensions=True,
)
