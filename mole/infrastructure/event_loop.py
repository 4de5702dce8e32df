"""Single-threaded dispatch loop with background command execution."""

from __future__ import annotations

import logging
import queue
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Iterable

from mole.core.messages import Command, CommandFailed, Message

logger = logging.getLogger(__name__)


class EventLoop:
    """Feeds messages to the controller in arrival order.

    Commands run on worker threads and hand back a message through a queue;
    only the thread calling :meth:`dispatch` and :meth:`run_until_idle`
    touches the controller.
    """

    def __init__(self, controller, max_workers: int = 4) -> None:
        self.controller = controller
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="mole-task")
        self._messages: queue.Queue = queue.Queue()
        self._pending = 0

    @property
    def pending(self) -> int:
        return self._pending

    def dispatch(self, message: Message) -> None:
        self._submit_all(self.controller.update(message))

    def start(self) -> None:
        self._submit_all(self.controller.init())

    def _submit_all(self, commands: Iterable[Command]) -> None:
        for command in commands:
            self._pending += 1
            future = self._executor.submit(command)
            future.add_done_callback(self._on_done)

    def _on_done(self, future: Future) -> None:
        exc = future.exception()
        if exc is not None:
            logger.error("Background command failed: %s", exc)
            self._messages.put(CommandFailed(exc))
            return
        self._messages.put(future.result())

    def process_ready(self) -> int:
        """Dispatch every completion already queued, without blocking."""
        handled = 0
        while True:
            try:
                message = self._messages.get_nowait()
            except queue.Empty:
                return handled
            self._pending -= 1
            self.dispatch(message)
            handled += 1

    def run_until_idle(self, timeout: float = 30.0) -> None:
        """Block until no command is outstanding.

        Raises:
            TimeoutError: a command did not finish within ``timeout`` seconds
        """
        while self._pending > 0:
            try:
                message = self._messages.get(timeout=timeout)
            except queue.Empty as exc:
                raise TimeoutError(f"{self._pending} command(s) still running") from exc
            self._pending -= 1
            self.dispatch(message)

    def close(self) -> None:
        self._executor.shutdown(wait=True)
