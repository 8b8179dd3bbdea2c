"""Single worker thread driving one asyncio event loop."""

from __future__ import annotations

import asyncio
import logging
import random
import string
import threading
from typing import Any, Callable, Coroutine, Dict, Optional

logger = logging.getLogger(__name__)

_THREAD_NAME_PREFIX = "WorkerThread_"
_NAME_ALPHABET = string.ascii_letters + string.digits


def _unique_thread_name(prefix: str = _THREAD_NAME_PREFIX) -> str:
    suffix = "".join(random.choice(_NAME_ALPHABET) for _ in range(3))
    return prefix + suffix


class Reactor:
    """Serializes every sensor callback onto one event loop and one thread.

    Callbacks are handed over with ``post`` (thread-safe) and coroutines with
    ``spawn``. ``stop`` refuses further handoffs, lets the callbacks that are
    already due finish, cancels outstanding I/O and joins the worker thread.
    """

    def __init__(self, join_timeout: float = 10.0) -> None:
        self._loop = asyncio.new_event_loop()
        self._loop.set_exception_handler(self._handle_exception)
        self._join_timeout = join_timeout
        self._thread: Optional[threading.Thread] = None
        self._started = threading.Event()
        self._state_lock = threading.Lock()
        self._accepting = False
        self._stopped = False

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        return self._loop

    @property
    def thread(self) -> Optional[threading.Thread]:
        return self._thread

    @property
    def accepting(self) -> bool:
        with self._state_lock:
            return self._accepting

    def start(self) -> None:
        with self._state_lock:
            if self._thread is not None:
                raise RuntimeError("Reactor has already been started.")
            self._thread = threading.Thread(
                target=self._run, name=_unique_thread_name(), daemon=True
            )
            self._accepting = True
        self._thread.start()
        self._started.wait()

    def post(self, callback: Callable[..., Any], *args: Any) -> bool:
        """Schedule ``callback(*args)`` on the worker thread.

        Returns False when the reactor no longer accepts work.
        """
        with self._state_lock:
            if not self._accepting:
                logger.debug("Reactor is stopping; dropping %r", callback)
                return False
            if threading.current_thread() is self._thread:
                self._loop.call_soon(callback, *args)
            else:
                self._loop.call_soon_threadsafe(callback, *args)
        return True

    def post_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> bool:
        """Schedule ``callback(*args)`` on the worker thread after ``delay`` seconds."""
        with self._state_lock:
            if not self._accepting:
                logger.debug("Reactor is stopping; dropping delayed %r", callback)
                return False
            if threading.current_thread() is self._thread:
                self._loop.call_later(delay, callback, *args)
            else:
                self._loop.call_soon_threadsafe(self._loop.call_later, delay, callback, *args)
        return True

    def spawn(self, coro_factory: Callable[[], Coroutine[Any, Any, Any]], name: str | None = None) -> bool:
        """Run the coroutine produced by ``coro_factory`` as a task on the loop."""
        return self.post(self._create_task, coro_factory, name)

    def stop(self) -> bool:
        """Stop the loop and join the worker thread.

        Returns False when the worker thread is still running after the join
        timeout.
        """
        with self._state_lock:
            if self._stopped:
                return not (self._thread is not None and self._thread.is_alive())
            self._stopped = True
            self._accepting = False
            thread = self._thread
            if thread is not None and thread.is_alive():
                self._loop.call_soon_threadsafe(self._loop.stop)

        if thread is None:
            self._loop.close()
            return True
        if thread is threading.current_thread():
            raise RuntimeError("Reactor cannot be stopped from its own worker thread.")
        thread.join(self._join_timeout)
        if thread.is_alive():
            logger.warning("Worker thread %s did not exit in time", thread.name)
            return False
        return True

    def _create_task(
        self, coro_factory: Callable[[], Coroutine[Any, Any, Any]], name: str | None
    ) -> None:
        self._loop.create_task(coro_factory(), name=name)

    def _run(self) -> None:
        asyncio.set_event_loop(self._loop)
        logger.info("Worker thread %s started", threading.current_thread().name)
        self._started.set()
        try:
            self._loop.run_forever()
        finally:
            self._cancel_outstanding()
            self._loop.run_until_complete(self._loop.shutdown_asyncgens())
            self._loop.close()
            logger.warning("Exiting worker thread %s", threading.current_thread().name)

    def _cancel_outstanding(self) -> None:
        pending = asyncio.all_tasks(self._loop)
        if not pending:
            return
        for task in pending:
            task.cancel()
        self._loop.run_until_complete(asyncio.gather(*pending, return_exceptions=True))

    @staticmethod
    def _handle_exception(loop: asyncio.AbstractEventLoop, context: Dict[str, Any]) -> None:
        exc = context.get("exception")
        message = context.get("message", "Unhandled error in reactor callback")
        if exc is not None:
            logger.error(message, exc_info=exc)
        else:
            logger.error(message)
