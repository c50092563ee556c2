"""
Event System - Synchronous notifications.

Provides:
- Signal: Simple observer pattern for sync notifications (e.g., config changes)
- ChangeNotifier: Pub/sub for property changes keyed by object identity
- default_notifier(): The process-wide ChangeNotifier

Usage:
    from keypath_bindings.core.events import default_notifier

    sub = default_notifier().subscribe(model, "count", on_count_changed)
    default_notifier().emit(model, "count")
"""
from .observer import Signal
from .notifier import (
    MISSING,
    ChangeEvent,
    ChangeNotifier,
    Subscription,
    default_notifier,
    property_name,
)


__all__ = [
    "Signal",
    "MISSING",
    "ChangeEvent",
    "ChangeNotifier",
    "Subscription",
    "default_notifier",
    "property_name",
]
