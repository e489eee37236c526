"""Unit tests for the phase-ordered application runtime."""

from __future__ import annotations

import pytest

from knative_router.runtime import ApplicationRuntime, Phase, PhaseListener


class _Recorder:
    def __init__(self, log: list, name: str, fail_on: str | None = None) -> None:
        self.log = log
        self.name = name
        self.fail_on = fail_on

    def start(self) -> None:
        if self.fail_on == "start":
            raise RuntimeError(f"{self.name} failed")
        self.log.append(f"start {self.name}")

    def stop(self) -> None:
        self.log.append(f"stop {self.name}")


class TestApplicationRuntime:

    def test_phase_sequence(self):
        runtime = ApplicationRuntime()
        log: list = []
        for phase in Phase:
            runtime.add_phase_listener(phase, lambda rt, p=phase: log.append(p))
        runtime.add_component(_Recorder(log, "a"))

        runtime.start()
        runtime.stop()
        assert log == [
            Phase.STARTING,
            Phase.CONFIGURE_ROUTES,
            Phase.CONFIGURE_CONTEXT,
            "start a",
            Phase.STARTED,
            Phase.STOPPING,
            "stop a",
            Phase.STOPPED,
        ]

    def test_listeners_ordered(self):
        runtime = ApplicationRuntime()
        log: list = []
        runtime.add_phase_listener(Phase.STARTING, lambda rt: log.append("late"), order=10)
        runtime.add_phase_listener(Phase.STARTING, lambda rt: log.append("first"), order=-1)
        runtime.add_phase_listener(Phase.STARTING, lambda rt: log.append("tie-1"))
        runtime.add_phase_listener(Phase.STARTING, lambda rt: log.append("tie-2"))
        runtime.start()
        assert log == ["first", "tie-1", "tie-2", "late"]

    def test_duplicate_listener_ignored(self):
        runtime = ApplicationRuntime()
        listener = PhaseListener(Phase.STARTED, lambda rt: None)
        runtime.add_listeners([listener, listener])
        assert runtime.listeners == [listener]

    def test_listener_receives_runtime(self):
        runtime = ApplicationRuntime()
        seen = []
        runtime.add_phase_listener(Phase.CONFIGURE_ROUTES, seen.append)
        runtime.start()
        assert seen == [runtime]

    def test_components_stopped_in_reverse(self):
        runtime = ApplicationRuntime()
        log: list = []
        runtime.add_component(_Recorder(log, "a"))
        runtime.add_component(_Recorder(log, "b"))
        with runtime:
            assert runtime.running
        assert log == ["start a", "start b", "stop b", "stop a"]
        assert not runtime.running

    def test_failed_start_rolls_back(self):
        runtime = ApplicationRuntime()
        log: list = []
        runtime.add_phase_listener(Phase.STARTED, lambda rt: log.append("started"))
        runtime.add_component(_Recorder(log, "a"))
        runtime.add_component(_Recorder(log, "b", fail_on="start"))
        with pytest.raises(RuntimeError, match="b failed"):
            runtime.start()
        assert log == ["start a", "stop a"]
        assert not runtime.running

    def test_start_is_idempotent(self):
        runtime = ApplicationRuntime()
        log: list = []
        runtime.add_phase_listener(Phase.STARTING, lambda rt: log.append("x"))
        runtime.start()
        runtime.start()
        assert log == ["x"]

    def test_stop_without_start(self):
        runtime = ApplicationRuntime()
        log: list = []
        runtime.add_phase_listener(Phase.STOPPING, lambda rt: log.append("x"))
        runtime.stop()
        assert log == []
