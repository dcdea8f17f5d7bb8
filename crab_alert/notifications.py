#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Notification utilities for CrabAlert.

This module builds the notification shown for a captured email and sends
it with notify-send. The notification has an "Open MailCrab" action that
opens the MailCrab web UI in the default browser.
"""

import logging
import subprocess
import threading
import webbrowser
from dataclasses import dataclass

from PyQt5.QtCore import QObject, QTimer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Notification:
    """Payload handed to the desktop notification subsystem."""
    title: str
    subtitle: str
    body: str
    url: str

    @property
    def text(self):
        """Subtitle and body joined for backends without a subtitle line."""
        return "\n".join(part for part in (self.subtitle, self.body) if part)


def build_notification(message, url, enrich=True):
    """Build the notification for a captured email.

    Args:
        message: IncomingMessage, enriched or not.
        url: Link opened when the notification is activated.
        enrich: If True, the body is the fetched plain text (empty when
                missing). If False, the body states when the mail arrived.

    Returns:
        Notification: The payload to present.
    """
    if enrich:
        body = message.body or ""
    else:
        body = f"Received at: {message.date}"

    return Notification(
        title=message.subject,
        subtitle=f"From: {message.from_.email}",
        body=body,
        url=url,
    )


def send_system_notification(notification, icon="mail-unread"):
    """Send a system notification with an "Open MailCrab" action.

    This function is non-blocking - runs notify-send in a background thread.
    Failures are logged and never raised.

    Args:
        notification: Notification to display.
        icon: Icon name or path (default: "mail-unread").
    """

    def run_notification():
        # -e: auto-expire after timeout (prevents lingering)
        # -t: timeout in milliseconds (10 seconds)
        cmd = [
            "notify-send",
            "-a",
            "CrabAlert",
            "-i",
            icon,
            "-e",
            "-t",
            "10000",
            "-A",
            "open=Open MailCrab",
            notification.title,
            notification.text,
        ]
        try:
            result = subprocess.run(
                cmd,
                check=False,
                capture_output=True,
                text=True,
                timeout=15,  # Kill process after 15 seconds max
            )
        except subprocess.TimeoutExpired:
            logger.debug("Notification %r expired without action", notification.title)
            return
        except FileNotFoundError:
            logger.warning("notify-send not available, notification dropped")
            return

        if result.returncode != 0:
            logger.warning(
                "notify-send failed (code %s): %s",
                result.returncode,
                result.stderr.strip(),
            )
            return

        if result.stdout.strip() == "open":
            webbrowser.open(notification.url)

    # Run in a separate thread to not block the UI
    threading.Thread(target=run_notification, daemon=True).start()


class NotificationPresenter(QObject):
    """Schedules one notification per processed message.

    Attributes:
        url: Web UI link attached to every notification.
        delay: Seconds between present() and delivery.
        enrich: Use fetched bodies (True) or the arrival date (False).
    """

    def __init__(self, url, delay=1, enrich=True, sender=send_system_notification, parent=None):
        super().__init__(parent)
        self.url = url
        self.delay = delay
        self.enrich = enrich
        self._sender = sender

    def present(self, message):
        """Build the notification for ``message`` and schedule its delivery.

        Returns:
            Notification: The scheduled payload.
        """
        notification = build_notification(message, self.url, self.enrich)
        QTimer.singleShot(int(self.delay * 1000), lambda: self._deliver(notification))
        return notification

    def _deliver(self, notification):
        try:
            self._sender(notification)
        except (OSError, RuntimeError) as e:
            logger.warning("Could not schedule notification %r: %s", notification.title, e)
