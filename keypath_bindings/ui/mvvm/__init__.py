"""
MVVM Package - One-way KeyPath bindings.

Provides:
- KeyPath: Typed, comparable property accessor.
- NotifyingProperty: Descriptor emitting change events on assignment.
- ChangeNotifierMixin: notify_property_changed() helpers for models.
- KeyPathBinding / bind(): One-way property binding with optional transform.
- widget_keypath() / notify_on_signal(): Qt widget properties as KeyPaths.
"""
from keypath_bindings.ui.mvvm.keypath import KeyPath
from keypath_bindings.ui.mvvm.bindable import NotifyingProperty, ChangeNotifierMixin
from keypath_bindings.ui.mvvm.binding import (
    BindingError,
    BindingState,
    IncompatibleTypesError,
    KeyPathBinding,
    SameObjectAndPropertyError,
    bind,
    configure,
    is_assignable,
)
from keypath_bindings.ui.mvvm.widgets import widget_keypath, notify_on_signal

__all__ = [
    # Accessors
    "KeyPath",
    "widget_keypath",

    # Models
    "NotifyingProperty",
    "ChangeNotifierMixin",
    "notify_on_signal",

    # Binding
    "KeyPathBinding",
    "BindingState",
    "bind",
    "configure",
    "is_assignable",

    # Errors
    "BindingError",
    "IncompatibleTypesError",
    "SameObjectAndPropertyError",
]
