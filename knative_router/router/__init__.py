"""Knative router — logical ``knative:`` endpoints over physical transports."""

from knative_router.router.component import KnativeComponent
from knative_router.router.configuration import KnativeConfiguration
from knative_router.router.endpoint import KnativeConsumer, KnativeEndpoint, KnativeProducer
from knative_router.router.uri import LogicalUri, parse_logical_uri

__all__ = [
    "KnativeComponent",
    "KnativeConfiguration",
    "KnativeConsumer",
    "KnativeEndpoint",
    "KnativeProducer",
    "LogicalUri",
    "parse_logical_uri",
]
