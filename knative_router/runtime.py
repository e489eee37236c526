"""Application runtime — ordered, phase-based listener invocation.

Listeners hook into the lifecycle of the components a runtime owns.  For
every phase, listeners are invoked in ascending ``order`` (registration
order breaks ties); each decides whether the phase concerns it by
returning ``True`` from ``accept``.

Phase sequence::

    start(): STARTING -> CONFIGURE_ROUTES -> CONFIGURE_CONTEXT
             -> (components started) -> STARTED
    stop():  STOPPING -> (components stopped) -> STOPPED
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from enum import Enum
from typing import Any, Protocol, runtime_checkable

logger = logging.getLogger(__name__)


class Phase(str, Enum):
    """Lifecycle phases, in the order ``start``/``stop`` emit them."""

    STARTING = "starting"
    CONFIGURE_ROUTES = "configure_routes"
    CONFIGURE_CONTEXT = "configure_context"
    STARTED = "started"
    STOPPING = "stopping"
    STOPPED = "stopped"


@runtime_checkable
class RuntimeListener(Protocol):
    """Anything with an ``order`` and an ``accept(phase, runtime)`` method."""

    @property
    def order(self) -> int:
        ...

    def accept(self, phase: Phase, runtime: ApplicationRuntime) -> bool:
        ...


@runtime_checkable
class Lifecycle(Protocol):
    def start(self) -> None:
        ...

    def stop(self) -> None:
        ...


class PhaseListener:
    """Runs *callback* in exactly one phase."""

    def __init__(
        self,
        phase: Phase,
        callback: Callable[[ApplicationRuntime], Any],
        *,
        order: int = 0,
    ) -> None:
        self.phase = phase
        self.callback = callback
        self._order = order

    @property
    def order(self) -> int:
        return self._order

    def accept(self, phase: Phase, runtime: ApplicationRuntime) -> bool:
        if phase != self.phase:
            return False
        self.callback(runtime)
        return True

    def __repr__(self) -> str:
        name = getattr(self.callback, "__name__", repr(self.callback))
        return f"PhaseListener(phase={self.phase.value!r}, callback={name}, order={self._order})"


class ApplicationRuntime:
    """Owns components and drives listeners through the lifecycle.

    Examples
    --------
    >>> runtime = ApplicationRuntime()
    >>> seen = []
    >>> _ = runtime.add_phase_listener(Phase.STARTED, lambda rt: seen.append("started"))
    >>> runtime.start()
    >>> seen
    ['started']
    """

    def __init__(self) -> None:
        self._listeners: list[RuntimeListener] = []
        self._components: list[Lifecycle] = []
        self._running = False

    @property
    def listeners(self) -> list[RuntimeListener]:
        return list(self._listeners)

    @property
    def components(self) -> list[Lifecycle]:
        return list(self._components)

    @property
    def running(self) -> bool:
        return self._running

    def add_component(self, component: Lifecycle) -> None:
        self._components.append(component)

    def add_listener(self, listener: RuntimeListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)
            logger.info("Add listener: %r", listener)

    def add_listeners(self, listeners: list[RuntimeListener]) -> None:
        for listener in listeners:
            self.add_listener(listener)

    def add_phase_listener(
        self,
        phase: Phase,
        callback: Callable[[ApplicationRuntime], Any],
        *,
        order: int = 0,
    ) -> PhaseListener:
        listener = PhaseListener(phase, callback, order=order)
        self.add_listener(listener)
        return listener

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        if self._running:
            return
        self._invoke(Phase.STARTING)
        self._invoke(Phase.CONFIGURE_ROUTES)
        self._invoke(Phase.CONFIGURE_CONTEXT)
        started: list[Lifecycle] = []
        try:
            for component in self._components:
                component.start()
                started.append(component)
        except Exception:
            for component in reversed(started):
                component.stop()
            raise
        self._running = True
        self._invoke(Phase.STARTED)

    def stop(self) -> None:
        if not self._running:
            return
        self._invoke(Phase.STOPPING)
        try:
            for component in reversed(self._components):
                component.stop()
        finally:
            self._running = False
        self._invoke(Phase.STOPPED)

    def __enter__(self) -> ApplicationRuntime:
        self.start()
        return self

    def __exit__(self, *exc: Any) -> None:
        self.stop()

    def _invoke(self, phase: Phase) -> None:
        # stable sort: equal orders keep registration order
        for listener in sorted(self._listeners, key=lambda l: l.order):
            if listener.accept(phase, self):
                logger.info("Listener %r executed in phase %s", listener, phase.value)
