"""Processor protocol and a minimal sequential pipeline.

A processor is anything callable with a ``Message`` that transforms it in
place.  Processors must not keep per-message state of their own so that one
instance can serve concurrent messages.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from knative_router.models.message import Message


@runtime_checkable
class Processor(Protocol):
    """Transforms a message in place."""

    def __call__(self, message: Message) -> None:
        ...


class Pipeline:
    """Runs processors in order on the same message.

    An exception from any step stops the pipeline and propagates.
    """

    def __init__(self, *processors: Processor) -> None:
        self._processors = tuple(processors)

    @property
    def processors(self) -> tuple[Processor, ...]:
        return self._processors

    def __call__(self, message: Message) -> None:
        for processor in self._processors:
            processor(message)

    def __repr__(self) -> str:
        return f"Pipeline({', '.join(repr(p) for p in self._processors)})"
