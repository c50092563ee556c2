"""
Binding Demo Sample Application.

Demonstrates one-way KeyPath bindings in a single window.
Shows:
- NotifyingProperty on a model updated by a timer (uptime readout)
- A slider bound to a label through an int -> str transform
- A same-type binding without transform (device label)
- A raw ChangeNotifier subscription that cancels itself

Run with: python samples/binding_demo/main.py [config.json]
"""
import platform
import sys
import time
from PySide6.QtWidgets import (
    QApplication, QMainWindow, QWidget, QVBoxLayout, QHBoxLayout,
    QLabel, QSlider, QGroupBox
)
from PySide6.QtCore import Qt, QTimer
from loguru import logger

from keypath_bindings.core.config import ConfigManager, DemoSettings
from keypath_bindings.core.events import ChangeEvent, default_notifier
from keypath_bindings.core.logging import setup_logging
from keypath_bindings.ui.mvvm import (
    BindingError, ChangeNotifierMixin, NotifyingProperty, bind, configure, notify_on_signal,
)

# =============================================================================
# Models
# =============================================================================

class AppModel(ChangeNotifierMixin):
    """Application-wide state. ``uptime`` is seconds since start."""

    uptime: float = NotifyingProperty(default=0.0)

    def __init__(self):
        self.started_at = time.monotonic()

    def tick(self):
        self.uptime = time.monotonic() - self.started_at


class DeviceInfo(ChangeNotifierMixin):
    """Host description. Never changes, but is bound like any other property."""

    description: str = NotifyingProperty(default="")

    def __init__(self):
        self.description = f"{platform.system()} {platform.machine()}".strip()


def format_uptime(seconds: float) -> str:
    minutes, secs = divmod(int(seconds), 60)
    return f"Uptime: {minutes % 60:02d}:{secs:02d}"

# =============================================================================
# View
# =============================================================================

class DemoWindow(QMainWindow):
    """
    Main window: uptime label, slider with its value label, device label.
    """

    def __init__(self, model: AppModel, device: DeviceInfo, settings: DemoSettings):
        super().__init__()
        self.setWindowTitle(settings.window_title)
        self.resize(420, 220)

        self.model = model
        self.device = device
        self.settings = settings
        self.bindings = []
        self._uptime_subscription = None

        self._setup_ui()
        self._setup_bindings()

    def _setup_ui(self):
        """Build the UI."""
        central = QWidget()
        self.setCentralWidget(central)
        layout = QVBoxLayout(central)

        status_group = QGroupBox("Status")
        status_layout = QVBoxLayout(status_group)
        self.uptime_label = QLabel()
        self.device_label = QLabel()
        status_layout.addWidget(self.uptime_label)
        status_layout.addWidget(self.device_label)
        layout.addWidget(status_group)

        slider_group = QGroupBox("Slider")
        slider_layout = QHBoxLayout(slider_group)
        self.slider = QSlider(Qt.Horizontal)
        self.slider.setRange(self.settings.slider_minimum, self.settings.slider_maximum)
        self.slider_value_label = QLabel()
        self.slider_value_label.setMinimumWidth(40)
        slider_layout.addWidget(self.slider)
        slider_layout.addWidget(self.slider_value_label)
        layout.addWidget(slider_group)

        layout.addStretch()

    def _setup_bindings(self):
        """Bind models and widgets to the labels."""
        # QSlider has no notion of the ChangeNotifier; forward its Qt signal
        notify_on_signal(self.slider, "value")

        try:
            self.bindings = [
                bind(
                    (self.model, "uptime"),
                    (self.uptime_label, "text", lambda s, d, old, new: format_uptime(new)),
                ),
                bind(
                    (self.slider, "value"),
                    (self.slider_value_label, "text", lambda s, d, old, new: f"{new}"),
                ),
                # str -> str, no transform needed
                bind((self.device, "description"), (self.device_label, "text")),
            ]
        except BindingError as e:
            logger.error(f"Failed to set up bindings: {e}")

        self._uptime_subscription = default_notifier().subscribe(
            self.model, "uptime", self._on_first_uptime_change
        )

    def _on_first_uptime_change(self, event: ChangeEvent):
        logger.info(f"First uptime change: {event.old_value!r} -> {event.new_value!r}")
        # Cancel after the first event
        default_notifier().unsubscribe(self._uptime_subscription)

    def closeEvent(self, event):
        for binding in self.bindings:
            binding.dispose()
        default_notifier().unsubscribe(self._uptime_subscription)
        super().closeEvent(event)

# =============================================================================
# Main
# =============================================================================

def main():
    config_path = sys.argv[1] if len(sys.argv) > 1 else "binding_demo.json"
    config = ConfigManager(config_path)
    setup_logging(config.data.general.debug_mode, config.data.general.log_dir)
    configure(config.data.binding)
    config.on_changed.connect(lambda section, key, value: configure(config.data.binding) if section == "binding" else None)

    app = QApplication(sys.argv[:1])

    model = AppModel()
    device = DeviceInfo()

    window = DemoWindow(model, device, config.data.demo)
    window.show()

    timer = QTimer()
    timer.timeout.connect(model.tick)
    timer.start(config.data.demo.uptime_interval_ms)

    sys.exit(app.exec())

if __name__ == "__main__":
    main()
