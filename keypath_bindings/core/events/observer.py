from loguru import logger
from typing import Callable, List

class Signal:
    """
    Synchronous in-process callback list.

    Used for notifications that are not about one object's property,
    e.g. ``ConfigManager.on_changed``. Property changes go through
    ChangeNotifier instead.
    """
    def __init__(self, name: str = "Signal"):
        self.name = name
        self._receivers: List[Callable] = []

    def connect(self, callback: Callable):
        """Add ``callback``; connecting the same callable twice has no effect."""
        if callback not in self._receivers:
            self._receivers.append(callback)

    def disconnect(self, callback: Callable):
        """Remove ``callback``. Unknown callbacks are ignored."""
        try:
            self._receivers.remove(callback)
        except ValueError:
            pass

    @property
    def receiver_count(self) -> int:
        return len(self._receivers)

    def emit(self, *args, **kwargs):
        # Snapshot: receivers may disconnect themselves while being called
        for receiver in tuple(self._receivers):
            try:
                receiver(*args, **kwargs)
            except Exception as e:
                logger.error(f"Signal '{self.name}' receiver {receiver!r} failed: {e}")

    def __repr__(self) -> str:
        return f"<Signal '{self.name}' receivers={len(self._receivers)}>"
