"""
KeyPath Bindings - One-way property bindings for PySide6 applications.

A change to a source property, announced on the ChangeNotifier, is copied
(optionally transformed) to a destination property on the UI thread.
"""

# Core
from keypath_bindings.core.config import ConfigManager, AppConfig, BindingSettings
from keypath_bindings.core.dispatch import (
    Dispatcher,
    ImmediateDispatcher,
    MainThreadDispatcher,
    SerialDispatcher,
    main_dispatcher,
)
from keypath_bindings.core.events import (
    MISSING,
    ChangeEvent,
    ChangeNotifier,
    Signal,
    Subscription,
    default_notifier,
)
from keypath_bindings.core.logging import setup_logging

# Bindings
from keypath_bindings.ui.mvvm import (
    BindingError,
    BindingState,
    ChangeNotifierMixin,
    IncompatibleTypesError,
    KeyPath,
    KeyPathBinding,
    NotifyingProperty,
    SameObjectAndPropertyError,
    bind,
    configure,
    is_assignable,
    notify_on_signal,
    widget_keypath,
)

__version__ = "0.1.0"

__all__ = [
    # Core
    "ConfigManager",
    "AppConfig",
    "BindingSettings",
    "Dispatcher",
    "ImmediateDispatcher",
    "MainThreadDispatcher",
    "SerialDispatcher",
    "main_dispatcher",
    "MISSING",
    "ChangeEvent",
    "ChangeNotifier",
    "Signal",
    "Subscription",
    "default_notifier",
    "setup_logging",

    # Bindings
    "BindingError",
    "BindingState",
    "ChangeNotifierMixin",
    "IncompatibleTypesError",
    "KeyPath",
    "KeyPathBinding",
    "NotifyingProperty",
    "SameObjectAndPropertyError",
    "bind",
    "configure",
    "is_assignable",
    "notify_on_signal",
    "widget_keypath",
]
