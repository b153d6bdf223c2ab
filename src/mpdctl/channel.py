"""Single-owner command channel.

One worker thread owns the `Connection`. Every operation on the stream is
a job on a FIFO queue, answered through a `Future`, so a foreground command
and a notifier poll never interleave on the wire.
"""

from __future__ import annotations

import logging
import queue
import threading
from concurrent.futures import Future
from typing import Any, Callable

from .connection import Connection
from .protocol.errors import NotConnected
from .protocol.messages import Command
from .protocol.parser import read_response

_logger = logging.getLogger("mpdctl.channel")

_STOP = object()


class CommandChannel:
    """Serializes every exchange with the daemon through one worker."""

    def __init__(self, connection: Connection):
        self.connection = connection
        self._jobs: queue.Queue = queue.Queue()
        self._worker: threading.Thread | None = None
        self._start_lock = threading.Lock()

    def _ensure_worker(self) -> None:
        with self._start_lock:
            if self._worker is None or not self._worker.is_alive():
                self._worker = threading.Thread(
                    target=self._run, name="mpdctl-channel", daemon=True
                )
                self._worker.start()

    def _run(self) -> None:
        while True:
            job = self._jobs.get()
            if job is _STOP:
                break

            future, fn, args = job
            if not future.set_running_or_notify_cancel():
                continue
            try:
                result = fn(*args)
            except BaseException as e:
                future.set_exception(e)
            else:
                future.set_result(result)

    def submit(self, fn: Callable[..., Any], *args: Any) -> Any:
        """Run ``fn(*args)`` on the worker and wait for its outcome."""
        if self._worker is not None and threading.current_thread() is self._worker:
            # Already the owner; queueing would deadlock.
            return fn(*args)

        self._ensure_worker()
        future: Future = Future()
        self._jobs.put((future, fn, args))
        return future.result()

    def execute(self, name: str, *args: Any) -> Any:
        """Send one command and return its parsed result.

        Raises:
            NotConnected: No connection is held.
            ValueError: An argument contains a line break; nothing is sent.
            ConnectionLost: The stream broke mid-command; the connection is
                cleared.
            ServerError: The daemon answered with ACK.
            MalformedError: The response broke the line grammar.
        """
        return self.submit(self._execute, Command(name, args))

    def _execute(self, command: Command) -> Any:
        if not self.connection.connected:
            raise NotConnected()

        line = command.serialize()
        _logger.debug(f">> {line}")
        self.connection.write_line(line)
        return read_response(self.connection.read_line, command.name)

    def shutdown(self) -> None:
        """Stop the worker once queued jobs are done."""
        with self._start_lock:
            worker = self._worker
            self._worker = None
        if worker is not None and worker.is_alive():
            self._jobs.put(_STOP)
            if threading.current_thread() is not worker:
                worker.join()
