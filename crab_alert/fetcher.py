#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Message body enrichment for CrabAlert.

MailCrab pushes metadata only. This module fetches the HTML body of a
message over HTTP and renders it to plain text for the notification.
"""

import logging
import threading
from urllib.parse import quote

import requests
from PyQt5.QtCore import QObject, pyqtSignal
from PyQt5.QtGui import QTextDocument

logger = logging.getLogger(__name__)


class FetchError(Exception):
    """Raised when a message body cannot be retrieved or decoded."""


def html_to_text(html):
    """Render HTML to readable plain text.

    Uses Qt's rich text engine, so entities are decoded and block
    elements such as paragraphs end up on their own lines.

    Args:
        html: HTML markup (plain text passes through unchanged).

    Returns:
        str: Visible text with blank-line runs collapsed and outer
             whitespace removed.
    """
    document = QTextDocument()
    document.setHtml(html)
    text = document.toPlainText()

    lines = []
    for line in text.splitlines():
        line = line.strip()
        if not line and (not lines or not lines[-1]):
            continue
        lines.append(line)
    return "\n".join(lines).strip()


class BodyFetcher:
    """Synchronous HTTP client for the MailCrab message body endpoint.

    Attributes:
        server_url: Base URL of MailCrab, e.g. http://localhost:1080.
        timeout: Request timeout in seconds.
    """

    def __init__(self, server_url, timeout=10):
        self.server_url = server_url.rstrip("/")
        self.timeout = timeout

    def body_url(self, message_id):
        return f"{self.server_url}/api/message/{quote(message_id, safe='')}/body"

    def fetch_html(self, message_id):
        """Download the raw HTML body of a message.

        Raises:
            FetchError: On network failure, a non-2xx status or a body
                that is not valid UTF-8.
        """
        url = self.body_url(message_id)
        try:
            response = requests.get(url, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            raise FetchError(f"Could not fetch body of message {message_id}: {e}") from e

        try:
            return response.content.decode("utf-8")
        except UnicodeDecodeError as e:
            raise FetchError(f"Body of message {message_id} is not valid UTF-8") from e

    def fetch_body(self, message_id):
        """Download a message body and return it as plain text."""
        return html_to_text(self.fetch_html(message_id))


class BodyEnricher(QObject):
    """Runs body fetches off the Qt thread.

    Every enrich() call gets its own daemon thread, so a slow fetch never
    holds up another message or the socket. Results come back through
    signals on the Qt thread.

    Signals:
        enriched: Emitted with the IncomingMessage carrying its body.
        failed: Emitted with (IncomingMessage, FetchError).
    """

    enriched = pyqtSignal(object)
    failed = pyqtSignal(object, object)
    _fetched = pyqtSignal(object, str)

    def __init__(self, fetcher, parent=None):
        super().__init__(parent)
        self.fetcher = fetcher
        # Queued back to this object's thread when emitted from a worker
        self._fetched.connect(self._on_fetched)

    def enrich(self, message):
        """Start fetching the body of ``message`` in the background."""
        threading.Thread(
            target=self._fetch,
            args=(message,),
            name=f"fetch-body-{message.id}",
            daemon=True,
        ).start()

    def _fetch(self, message):
        try:
            html = self.fetcher.fetch_html(message.id)
        except FetchError as e:
            self.failed.emit(message, e)
            return
        except Exception as e:
            logger.exception("Unexpected error fetching body of message %s", message.id)
            self.failed.emit(message, FetchError(f"Unexpected error: {e}"))
            return
        self._fetched.emit(message, html)

    def _on_fetched(self, message, html):
        self.enriched.emit(message.with_body(html_to_text(html)))
