"""
Dispatchers - Execution contexts for binding writes.

A binding never writes its destination from an arbitrary thread; it hands
the write to a Dispatcher:

- MainThreadDispatcher: the UI-safe thread. Inline when already there,
  otherwise posted to the Qt event loop without blocking the caller.
- SerialDispatcher: a dedicated worker thread. The caller blocks until the
  write has run (inline when already on the worker).
- ImmediateDispatcher: runs on whatever thread emitted the change.

Usage:
    from keypath_bindings.core.dispatch import SerialDispatcher

    worker = SerialDispatcher("model-writer")
    binding = KeyPathBinding(src, "value", dst, "value", dispatcher=worker)
"""
import queue
import threading
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Optional
from loguru import logger
from PySide6.QtCore import QCoreApplication, QObject, QThread, Qt, Signal, Slot


class Dispatcher(ABC):
    """Abstract execution context."""

    name = "dispatcher"

    @abstractmethod
    def is_current(self) -> bool:
        """True when the calling thread already belongs to this context."""

    @abstractmethod
    def dispatch(self, fn: Callable[[], None]) -> None:
        """Run ``fn`` on this context."""

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} '{self.name}'>"


class ImmediateDispatcher(Dispatcher):
    """Runs every call inline on the calling thread."""

    name = "immediate"

    def is_current(self) -> bool:
        return True

    def dispatch(self, fn: Callable[[], None]) -> None:
        fn()


class _MainThreadInvoker(QObject):
    """Lives in the Qt application thread and runs callables posted to it."""

    invoke = Signal(object)

    def __init__(self):
        super().__init__()
        self.invoke.connect(self._run, Qt.ConnectionType.QueuedConnection)

    @Slot(object)
    def _run(self, fn):
        try:
            fn()
        except Exception as e:
            logger.error(f"Main thread call {fn!r} failed: {e}")


class MainThreadDispatcher(Dispatcher):
    """
    The UI-safe execution context.

    With a running QCoreApplication, calls from other threads are queued on
    the application thread's event loop. Without one, they are kept until
    ``process_pending()`` is called from the main thread.
    """

    name = "main"

    def __init__(self):
        self._lock = threading.Lock()
        self._invoker: Optional[_MainThreadInvoker] = None
        self._pending: "queue.SimpleQueue[Callable[[], None]]" = queue.SimpleQueue()
        if QCoreApplication.instance() is not None and self.is_current():
            self._get_invoker()

    def is_current(self) -> bool:
        app = QCoreApplication.instance()
        if app is not None:
            return QThread.currentThread() == app.thread()
        return threading.current_thread() is threading.main_thread()

    def dispatch(self, fn: Callable[[], None]) -> None:
        if self.is_current():
            fn()
            return

        invoker = self._get_invoker()
        if invoker is not None:
            logger.debug("Deferring call to the Qt application thread")
            invoker.invoke.emit(fn)
        else:
            logger.warning("No Qt application; main thread call queued until process_pending()")
            self._pending.put(fn)

    def process_pending(self) -> int:
        """
        Run calls queued while no Qt application existed.

        Must be called from the main thread.

        Returns:
            Number of calls run.
        """
        if not self.is_current():
            raise RuntimeError("process_pending() must be called from the main thread")
        count = 0
        while True:
            try:
                fn = self._pending.get_nowait()
            except queue.Empty:
                return count
            try:
                fn()
            except Exception as e:
                logger.error(f"Main thread call {fn!r} failed: {e}")
            count += 1

    def _get_invoker(self) -> Optional[_MainThreadInvoker]:
        app = QCoreApplication.instance()
        if app is None:
            return None
        with self._lock:
            if self._invoker is None:
                invoker = _MainThreadInvoker()
                if invoker.thread() != app.thread():
                    invoker.moveToThread(app.thread())
                self._invoker = invoker
            return self._invoker


class SerialDispatcher(Dispatcher):
    """
    A single dedicated worker thread.

    ``dispatch`` blocks the caller until the worker has run the call. Calls
    made from the worker itself run inline so a binding never waits on
    its own thread.
    """

    def __init__(self, name: str = "binding-serial"):
        self.name = name
        self._thread_id: Optional[int] = None
        self._executor = ThreadPoolExecutor(
            max_workers=1,
            thread_name_prefix=name,
            initializer=self._remember_thread,
        )

    def _remember_thread(self):
        self._thread_id = threading.get_ident()

    def is_current(self) -> bool:
        return self._thread_id is not None and threading.get_ident() == self._thread_id

    def dispatch(self, fn: Callable[[], None]) -> None:
        if self.is_current():
            fn()
            return
        self._executor.submit(fn).result()

    def shutdown(self, wait: bool = True):
        self._executor.shutdown(wait=wait)
        logger.debug(f"SerialDispatcher '{self.name}' shut down")


_main_dispatcher: Optional[MainThreadDispatcher] = None
_main_lock = threading.Lock()


def main_dispatcher() -> MainThreadDispatcher:
    """Shared MainThreadDispatcher, created on first use."""
    global _main_dispatcher
    if _main_dispatcher is None:
        with _main_lock:
            if _main_dispatcher is None:
                _main_dispatcher = MainThreadDispatcher()
    return _main_dispatcher


def dispatcher_from_settings(name: str) -> Dispatcher:
    """Map a ``binding.default_dispatcher`` config value to a dispatcher."""
    if name == "main":
        return main_dispatcher()
    if name == "immediate":
        return ImmediateDispatcher()
    raise ValueError(f"Unknown dispatcher: {name}")
