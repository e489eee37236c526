"""Physical transport protocols.

The router never talks to the network itself.  It resolves a physical URI
and hands it to a ``Transport``, which materializes a ``PhysicalEndpoint``
able to create producers (send) and consumers (receive).  Start/stop of the
physical endpoint is the only shared mutable state the router owns.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from knative_router.core.pipeline import Processor
from knative_router.models.message import Message


@runtime_checkable
class PhysicalProducer(Protocol):
    """Sends a message and returns the reply."""

    def send(self, message: Message) -> Message:
        ...


@runtime_checkable
class PhysicalConsumer(Protocol):
    """Feeds received messages to a processor while started."""

    def start(self) -> None:
        ...

    def stop(self) -> None:
        ...


@runtime_checkable
class PhysicalEndpoint(Protocol):
    """A transport resource bound to one physical URI."""

    @property
    def uri(self) -> str:
        ...

    def start(self) -> None:
        ...

    def stop(self) -> None:
        ...

    def create_producer(self) -> PhysicalProducer:
        ...

    def create_consumer(self, processor: Processor) -> PhysicalConsumer:
        ...


@runtime_checkable
class Transport(Protocol):
    """Factory of physical endpoints."""

    def endpoint(self, uri: str) -> PhysicalEndpoint:
        ...


__all__ = ["PhysicalConsumer", "PhysicalEndpoint", "PhysicalProducer", "Transport"]
