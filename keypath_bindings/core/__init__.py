"""
Core - Binding Infrastructure.

Provides the non-UI building blocks:
- ChangeNotifier: Property change pub/sub keyed by object identity
- Signal: Plain synchronous observer
- Dispatchers: Execution contexts for destination writes
- ConfigManager: Configuration with persistence
- setup_logging: Loguru configuration

Usage:
    from keypath_bindings.core import default_notifier, setup_logging

    setup_logging(debug_mode=True)
    default_notifier().emit(model, "count")
"""
from .config import (
    ConfigManager,
    AppConfig,
    GeneralSettings,
    BindingSettings,
    DemoSettings,
)
from .dispatch import (
    Dispatcher,
    ImmediateDispatcher,
    MainThreadDispatcher,
    SerialDispatcher,
    dispatcher_from_settings,
    main_dispatcher,
)
from .events import (
    MISSING,
    ChangeEvent,
    ChangeNotifier,
    Signal,
    Subscription,
    default_notifier,
)
from .logging import setup_logging

__all__ = [
    # Config
    "ConfigManager",
    "AppConfig",
    "GeneralSettings",
    "BindingSettings",
    "DemoSettings",

    # Dispatch
    "Dispatcher",
    "ImmediateDispatcher",
    "MainThreadDispatcher",
    "SerialDispatcher",
    "dispatcher_from_settings",
    "main_dispatcher",

    # Events
    "MISSING",
    "ChangeEvent",
    "ChangeNotifier",
    "Signal",
    "Subscription",
    "default_notifier",

    # Logging
    "setup_logging",
]
