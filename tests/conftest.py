import os
import pytest
from loguru import logger

# Widgets must be creatable on CI machines without a display
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from PySide6.QtWidgets import QApplication
from keypath_bindings.core.events import ChangeNotifier


@pytest.fixture(scope="session")
def qapp():
    """Ensure a QApplication exists for Qt tests."""
    app = QApplication.instance()
    if app is None:
        app = QApplication([])
    yield app


@pytest.fixture
def caplog(caplog):
    """Route loguru records into pytest's caplog."""
    handler_id = logger.add(caplog.handler, format="{message}", level="DEBUG")
    yield caplog
    logger.remove(handler_id)


@pytest.fixture
def notifier():
    """An isolated ChangeNotifier so tests never share subscriptions."""
    notifier = ChangeNotifier("test")
    yield notifier
    notifier.clear()
