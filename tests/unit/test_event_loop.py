"""Unit tests for the background command loop."""

from __future__ import annotations

import threading

import pytest

from mole.core.messages import CommandFailed, KeyPress
from mole.infrastructure.event_loop import EventLoop


class RecordingController:
    """Controller double that records messages and schedules scripted commands."""

    def __init__(self, on_init=(), on_key=None):
        self.seen = []
        self._on_init = list(on_init)
        self._on_key = on_key or {}
        self.threads = set()

    def init(self):
        return self._on_init

    def update(self, message):
        self.threads.add(threading.current_thread().name)
        self.seen.append(message)
        if isinstance(message, KeyPress):
            return self._on_key.get(message.key, [])
        return []


def test_results_are_dispatched_on_caller_thread() -> None:
    controller = RecordingController(on_init=[lambda: KeyPress("done")])
    loop = EventLoop(controller)
    try:
        loop.start()
        loop.run_until_idle()
    finally:
        loop.close()

    assert controller.seen == [KeyPress("done")]
    assert controller.threads == {threading.current_thread().name}
    assert loop.pending == 0


def test_chained_commands_run_to_completion() -> None:
    controller = RecordingController(
        on_key={"a": [lambda: KeyPress("b")], "b": [lambda: KeyPress("c")]}
    )
    loop = EventLoop(controller)
    try:
        loop.dispatch(KeyPress("a"))
        loop.run_until_idle()
    finally:
        loop.close()

    assert [m.key for m in controller.seen] == ["a", "b", "c"]


def test_raising_command_becomes_command_failed() -> None:
    def boom():
        raise RuntimeError("exploded")

    controller = RecordingController(on_init=[boom])
    loop = EventLoop(controller)
    try:
        loop.start()
        loop.run_until_idle()
    finally:
        loop.close()

    assert isinstance(controller.seen[0], CommandFailed)
    assert str(controller.seen[0].error) == "exploded"


def test_run_until_idle_times_out() -> None:
    release = threading.Event()
    controller = RecordingController(on_init=[lambda: (release.wait(5), KeyPress("late"))[1]])
    loop = EventLoop(controller)
    try:
        loop.start()
        with pytest.raises(TimeoutError):
            loop.run_until_idle(timeout=0.05)
    finally:
        release.set()
        loop.close()


def test_process_ready_does_not_block() -> None:
    loop = EventLoop(RecordingController())
    try:
        assert loop.process_ready() == 0
    finally:
        loop.close()
