"""
Script execution boundary.

Extracted player functions are untrusted, externally sourced JavaScript. They
are never interpreted in-process; instead they are handed to a ScriptInvoker,
which runs a snippet in an isolated runtime and calls one named entry point
with a single string argument.

The default implementation uses PyExecJS, which drives whatever external
JavaScript runtime is installed (Node.js, etc.). Tests substitute a fake.
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Any, Protocol

import execjs

from ..config import get_settings

logger = logging.getLogger(__name__)


class InvocationError(Exception):
    """Raised when a snippet cannot be compiled or its entry point fails."""

    pass


class ScriptInvoker(Protocol):
    """Runs `entry_point(argument)` inside `snippet` and returns a string."""

    def invoke(self, snippet: str, entry_point: str, argument: str) -> str: ...


class ExecJSInvoker:
    """
    ScriptInvoker backed by PyExecJS.

    Compiled contexts are cached per snippet text, so every format sharing one
    player release compiles its functions once. Each call runs on a worker
    thread and is abandoned after `timeout` seconds. A timed-out call leaves
    its worker blocked on the runtime, so the pool it ran on is retired and
    later calls get fresh workers.
    """

    def __init__(self, timeout: float | None = None, max_workers: int = 4):
        self._timeout = timeout or get_settings().script_timeout
        self._max_workers = max_workers
        self._contexts: dict[str, Any] = {}
        self._lock = threading.Lock()
        self._executor = self._new_executor()

    def _new_executor(self) -> ThreadPoolExecutor:
        return ThreadPoolExecutor(max_workers=self._max_workers, thread_name_prefix="execjs")

    @property
    def runtime_name(self) -> str | None:
        try:
            return execjs.get().name
        except execjs.Error:
            return None

    def _compile(self, snippet: str) -> Any:
        with self._lock:
            context = self._contexts.get(snippet)
            if context is None:
                try:
                    context = execjs.compile(snippet)
                except execjs.Error as e:
                    raise InvocationError(f"Snippet failed to compile: {e}") from e
                self._contexts[snippet] = context
            return context

    def _retire(self, executor: ThreadPoolExecutor):
        with self._lock:
            if self._executor is executor:
                self._executor = self._new_executor()
        executor.shutdown(wait=False)
        logger.warning("Retired a script worker pool after a timed-out call")

    def invoke(self, snippet: str, entry_point: str, argument: str) -> str:
        context = self._compile(snippet)
        executor = self._executor
        future = executor.submit(context.call, entry_point, argument)
        try:
            result = future.result(timeout=self._timeout)
        except FutureTimeoutError as e:
            if not future.cancel():
                self._retire(executor)
            raise InvocationError(
                f"{entry_point}() did not return within {self._timeout}s"
            ) from e
        except execjs.Error as e:
            raise InvocationError(f"{entry_point}() raised: {e}") from e

        if not isinstance(result, str):
            raise InvocationError(
                f"{entry_point}() returned {type(result).__name__}, expected string"
            )
        return result

    def close(self):
        self._executor.shutdown(wait=False, cancel_futures=True)
        self._contexts.clear()


_invoker: ExecJSInvoker | None = None


def get_invoker() -> ExecJSInvoker:
    global _invoker
    if _invoker is None:
        _invoker = ExecJSInvoker()
    return _invoker
