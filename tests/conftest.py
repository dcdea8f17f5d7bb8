import json
import os
import time

# Must be set before the first QApplication is created
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import pytest
from PyQt5.QtWidgets import QApplication


@pytest.fixture(scope="session", autouse=True)
def qapp():
    app = QApplication.instance()
    if app is None:
        app = QApplication([])
    yield app


@pytest.fixture
def wait_until(qapp):
    """Pump the Qt event loop until ``predicate()`` holds or time runs out."""

    def _wait(predicate, timeout=3.0):
        deadline = time.monotonic() + timeout
        while time.monotonic() < deadline:
            qapp.processEvents()
            if predicate():
                return True
            time.sleep(0.01)
        qapp.processEvents()
        return predicate()

    return _wait


@pytest.fixture
def payload():
    return {
        "id": "42",
        "from": {"email": "a@x.com"},
        "to": [],
        "subject": "Hi",
        "time": 1,
        "date": "d",
        "size": "1k",
        "opened": False,
        "has_html": True,
        "has_plain": False,
        "attachments": [],
    }


@pytest.fixture
def frame(payload):
    return json.dumps(payload)
