#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Frame processing for CrabAlert.

This module contains the MessagePipeline class which turns WebSocket
text frames into notifications: decode, optionally fetch the body, then
present. Nothing that goes wrong for one message affects the connection
or other messages.
"""

import logging

from PyQt5.QtCore import QObject

from crab_alert.decoder import DecodeError, parse_incoming_message
from crab_alert.transport import TextFrame

logger = logging.getLogger(__name__)


class MessagePipeline(QObject):
    """Consumer of transport events.

    Attributes:
        presenter: NotificationPresenter used for every processed message.
        enricher: BodyEnricher, or None to notify straight from the frame.
    """

    def __init__(self, presenter, enricher=None, parent=None):
        super().__init__(parent)
        self.presenter = presenter
        self.enricher = enricher

        if self.enricher is not None:
            self.enricher.enriched.connect(self._on_enriched)
            self.enricher.failed.connect(self._on_enrichment_failed)

    def handle_event(self, event):
        """Slot for TransportClient.event_received."""
        if isinstance(event, TextFrame):
            self.handle_text(event.text)

    def handle_text(self, text):
        """Decode one text frame and start processing it.

        Returns:
            IncomingMessage or None if the frame was dropped.
        """
        try:
            message = parse_incoming_message(text)
        except DecodeError as e:
            logger.warning("Dropping malformed frame: %s", e)
            return None

        logger.info("New message %s: %r from %s", message.id, message.subject, message.from_.email)

        if self.enricher is None:
            self.presenter.present(message)
        else:
            self.enricher.enrich(message)
        return message

    def _on_enriched(self, message):
        self.presenter.present(message)

    def _on_enrichment_failed(self, message, error):
        # Fail closed: no notification without its body
        logger.warning("Not notifying about message %s: %s", message.id, error)
