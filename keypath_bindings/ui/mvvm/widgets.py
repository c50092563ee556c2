"""
KeyPaths for Qt widget properties.

Qt widgets expose properties through getter/setter methods
(``text()``/``setText()``). This module registers KeyPaths for the common
ones so they can be bound by name like any Python attribute:

    bind((slider, "value"), (label, "text", lambda s, d, old, new: str(new)))

Widgets do not emit on the ChangeNotifier by themselves; forward their Qt
change signal with ``notify_on_signal``:

    notify_on_signal(slider, "value")
"""
import weakref
from typing import Any, Callable, Optional
from PySide6.QtCore import QObject
from PySide6.QtWidgets import (
    QCheckBox, QComboBox, QDoubleSpinBox, QLabel, QLineEdit, QProgressBar, QSlider, QSpinBox,
)

from keypath_bindings.core.events import ChangeNotifier, default_notifier
from keypath_bindings.ui.mvvm.keypath import KeyPath

# widget type -> property -> (getter, setter, value type, change signal or None)
_WIDGET_PROPERTY_MAP = {
    QLineEdit: {"text": ("text", "setText", str, "textChanged")},
    QLabel: {"text": ("text", "setText", str, None)},
    QCheckBox: {"checked": ("isChecked", "setChecked", bool, "toggled")},
    QSpinBox: {"value": ("value", "setValue", int, "valueChanged")},
    QDoubleSpinBox: {"value": ("value", "setValue", float, "valueChanged")},
    QSlider: {"value": ("value", "setValue", int, "valueChanged")},
    QProgressBar: {"value": ("value", "setValue", int, "valueChanged")},
    QComboBox: {"currentIndex": ("currentIndex", "setCurrentIndex", int, "currentIndexChanged")},
}


def _accessors(getter_name: str, setter_name: str):
    def getter(widget: QObject) -> Any:
        return getattr(widget, getter_name)()

    def setter(widget: QObject, value: Any) -> None:
        getattr(widget, setter_name)(value)

    return getter, setter


def widget_keypath(widget_type: type, prop_name: str) -> KeyPath:
    """
    KeyPath for a mapped widget property.

    Raises:
        KeyError: The widget type (or its bases) has no mapping for ``prop_name``.
    """
    for klass in widget_type.__mro__:
        props = _WIDGET_PROPERTY_MAP.get(klass)
        if props and prop_name in props:
            return KeyPath.of(klass, prop_name)
    raise KeyError(f"No widget property mapping for {widget_type.__name__}.{prop_name}")


def notify_on_signal(
    widget: QObject,
    prop_name: str,
    notifier: Optional[ChangeNotifier] = None,
) -> Callable[..., None]:
    """
    Forward the widget's Qt change signal to the ChangeNotifier.

    Returns:
        The connected slot, for ``signal.disconnect(slot)``.

    Raises:
        KeyError: The property has no mapped change signal.
    """
    key_path = widget_keypath(type(widget), prop_name)
    signal_name = None
    for klass in type(widget).__mro__:
        props = _WIDGET_PROPERTY_MAP.get(klass)
        if props and prop_name in props:
            signal_name = props[prop_name][3]
            break
    if signal_name is None:
        raise KeyError(f"{type(widget).__name__}.{prop_name} has no change signal")

    target = notifier or default_notifier()
    widget_ref = weakref.ref(widget)

    def forward(*args) -> None:
        current = widget_ref()
        if current is not None:
            target.emit(current, key_path)

    getattr(widget, signal_name).connect(forward)
    return forward


def _register_widget_keypaths() -> None:
    for widget_type, props in _WIDGET_PROPERTY_MAP.items():
        for prop_name, (getter_name, setter_name, value_type, _signal) in props.items():
            getter, setter = _accessors(getter_name, setter_name)
            KeyPath.register(KeyPath(widget_type, prop_name, value_type, getter=getter, setter=setter))


_register_widget_keypaths()
