import logging
import subprocess
from unittest.mock import Mock, patch

import pytest

from crab_alert.decoder import parse_incoming_message
from crab_alert.notifications import (
    Notification,
    NotificationPresenter,
    build_notification,
    send_system_notification,
)

URL = "http://localhost:1080/"


class InlineThread:
    """Runs the target on start() so notify-send handling can be asserted."""

    def __init__(self, target, daemon=None, **kwargs):
        self.target = target

    def start(self):
        self.target()


@pytest.fixture
def message(frame):
    return parse_incoming_message(frame)


def test_enriched_notification(message):
    notification = build_notification(message.with_body("Body text"), URL)

    assert notification == Notification(
        title="Hi", subtitle="From: a@x.com", body="Body text", url=URL
    )


def test_missing_body_degrades_to_empty(message):
    assert build_notification(message, URL).body == ""


def test_base_revision_body(message):
    notification = build_notification(message, URL, enrich=False)
    assert notification.body == "Received at: d"


def test_text_joins_subtitle_and_body():
    assert Notification("t", "From: a", "hello", URL).text == "From: a\nhello"
    assert Notification("t", "From: a", "", URL).text == "From: a"


def test_present_schedules_exactly_once(message, qapp, wait_until):
    sender = Mock()
    presenter = NotificationPresenter(URL, delay=0, sender=sender)

    notification = presenter.present(message.with_body("Body text"))

    assert wait_until(lambda: sender.called)
    for _ in range(10):
        qapp.processEvents()
    sender.assert_called_once_with(notification)


def test_present_is_delayed(message, qapp):
    sender = Mock()
    presenter = NotificationPresenter(URL, delay=1, sender=sender)

    presenter.present(message)
    qapp.processEvents()

    sender.assert_not_called()


def test_delivery_failure_is_logged(caplog):
    presenter = NotificationPresenter(URL, sender=Mock(side_effect=OSError("denied")))

    with caplog.at_level(logging.WARNING):
        presenter._deliver(Notification("Hi", "From: a@x.com", "", URL))

    assert "Could not schedule notification" in caplog.text


@patch("crab_alert.notifications.webbrowser.open")
@patch("crab_alert.notifications.subprocess.run")
@patch("crab_alert.notifications.threading.Thread", InlineThread)
def test_open_action_opens_web_ui(mock_run, mock_open):
    mock_run.return_value = Mock(returncode=0, stdout="open\n", stderr="")

    send_system_notification(Notification("Hi", "From: a@x.com", "Body text", URL))

    cmd = mock_run.call_args.args[0]
    assert cmd[0] == "notify-send"
    assert cmd[-2:] == ["Hi", "From: a@x.com\nBody text"]
    mock_open.assert_called_once_with(URL)


@patch("crab_alert.notifications.webbrowser.open")
@patch("crab_alert.notifications.subprocess.run")
@patch("crab_alert.notifications.threading.Thread", InlineThread)
def test_dismissed_notification_opens_nothing(mock_run, mock_open):
    mock_run.return_value = Mock(returncode=0, stdout="", stderr="")

    send_system_notification(Notification("Hi", "", "", URL))

    mock_open.assert_not_called()


@patch("crab_alert.notifications.subprocess.run")
@patch("crab_alert.notifications.threading.Thread", InlineThread)
def test_missing_notify_send_is_logged(mock_run, caplog):
    mock_run.side_effect = FileNotFoundError("notify-send")

    with caplog.at_level(logging.WARNING):
        send_system_notification(Notification("Hi", "", "", URL))

    assert "notify-send not available" in caplog.text


@patch("crab_alert.notifications.subprocess.run")
@patch("crab_alert.notifications.threading.Thread", InlineThread)
def test_refused_notification_is_logged(mock_run, caplog):
    mock_run.return_value = Mock(returncode=1, stdout="", stderr="permission denied")

    with caplog.at_level(logging.WARNING):
        send_system_notification(Notification("Hi", "", "", URL))

    assert "permission denied" in caplog.text


@patch("crab_alert.notifications.subprocess.run")
@patch("crab_alert.notifications.threading.Thread", InlineThread)
def test_expired_notification_is_quiet(mock_run, caplog):
    mock_run.side_effect = subprocess.TimeoutExpired("notify-send", 15)

    with caplog.at_level(logging.WARNING):
        send_system_notification(Notification("Hi", "", "", URL))

    assert caplog.text == ""
