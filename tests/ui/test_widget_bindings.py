"""
Tests for binding Qt widget properties.
"""
import pytest
from PySide6.QtWidgets import QLabel, QLineEdit, QSlider, QWidget

from keypath_bindings.core.config import DemoSettings
from keypath_bindings.core.dispatch import ImmediateDispatcher
from keypath_bindings.core.events import default_notifier
from keypath_bindings.ui.mvvm.binding import IncompatibleTypesError, KeyPathBinding, bind
from keypath_bindings.ui.mvvm.keypath import KeyPath
from keypath_bindings.ui.mvvm.widgets import notify_on_signal, widget_keypath
from samples.binding_demo.main import AppModel, DemoWindow, DeviceInfo, format_uptime


def test_widget_keypath_types(qapp):
    assert KeyPath.of(QLabel, "text").value_type is str
    assert KeyPath.of(QSlider, "value").value_type is int
    assert widget_keypath(QSlider, "value") == KeyPath.of(QSlider, "value")


def test_widget_keypath_unknown_property(qapp):
    with pytest.raises(KeyError):
        widget_keypath(QSlider, "orientation")
    with pytest.raises(KeyError):
        notify_on_signal(QWidget(), "text")


def test_label_has_no_change_signal(qapp):
    with pytest.raises(KeyError):
        notify_on_signal(QLabel(), "text")


def test_slider_to_label_with_transform(qapp, notifier):
    slider = QSlider()
    slider.setRange(0, 100)
    label = QLabel()
    notify_on_signal(slider, "value", notifier)

    binding = bind((slider, "value"), (label, "text", lambda s, d, old, new: f"{new}"),
                   notifier=notifier, dispatcher=ImmediateDispatcher())
    assert label.text() == "0"

    slider.setValue(42)

    assert label.text() == "42"
    binding.dispose()
    slider.setValue(7)
    assert label.text() == "42"


def test_slider_to_label_without_transform(qapp, notifier):
    with pytest.raises(IncompatibleTypesError):
        KeyPathBinding(QSlider(), "value", QLabel(), "text", notifier=notifier)


def test_line_edit_to_label(qapp, notifier):
    line_edit = QLineEdit()
    label = QLabel()
    notify_on_signal(line_edit, "text", notifier)

    binding = KeyPathBinding(line_edit, "text", label, "text",
                             notifier=notifier, dispatcher=ImmediateDispatcher())
    line_edit.setText("typed")

    assert label.text() == "typed"
    assert binding.is_active


@pytest.mark.parametrize("seconds, expected", [
    (0, "Uptime: 00:00"),
    (75.9, "Uptime: 01:15"),
    (3599, "Uptime: 59:59"),
    (3600, "Uptime: 00:00"),
])
def test_format_uptime(seconds, expected):
    assert format_uptime(seconds) == expected


def test_demo_window_bindings(qapp):
    model = AppModel()
    device = DeviceInfo()
    window = DemoWindow(model, device, DemoSettings())
    try:
        assert window.uptime_label.text() == "Uptime: 00:00"
        assert window.device_label.text() == device.description
        assert window.slider_value_label.text() == "0"

        assert default_notifier().subscription_count(model) == 2
        window.slider.setValue(30)
        model.uptime = 61.0

        assert window.slider_value_label.text() == "30"
        assert window.uptime_label.text() == "Uptime: 01:01"
        # The one-shot subscription cancelled itself
        assert default_notifier().subscription_count(model) == 1
    finally:
        for binding in window.bindings:
            binding.dispose()
        default_notifier().unsubscribe(window._uptime_subscription)
        window.deleteLater()

    assert default_notifier().subscription_count(model) == 0
