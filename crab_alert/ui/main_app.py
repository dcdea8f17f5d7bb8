#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Main application class for CrabAlert.

This module contains the CrabAlert class which wires the system tray
indicator to the WebSocket transport, the reconnect supervisor and the
message pipeline.
"""

import logging
import sys
import webbrowser

from PyQt5.QtWidgets import QApplication, QSystemTrayIcon, QMenu, QAction

from crab_alert.config import SERVER_URL, WEB_UI_URL, WEBSOCKET_URL, load_settings
from crab_alert.fetcher import BodyEnricher, BodyFetcher
from crab_alert.notifications import NotificationPresenter
from crab_alert.pipeline import MessagePipeline
from crab_alert.supervisor import ReconnectSupervisor
from crab_alert.transport import ConnectionState, TransportClient
from crab_alert.tray_icon import ConnectionIndicator, get_app_icon, status_text

logger = logging.getLogger(__name__)


class CrabAlert:
    """Main application class.

    Orchestrates:
    - System tray icon showing the connection status
    - WebSocket transport and its reconnect supervisor
    - Decoding, body enrichment and notifications for new mail

    Attributes:
        app: QApplication instance.
        settings: Dict of configuration settings.
        tray_icon: QSystemTrayIcon for system tray.
        transport: TransportClient connected to MailCrab.
        supervisor: ReconnectSupervisor driving reconnects.
        pipeline: MessagePipeline handling text frames.
    """

    def __init__(self, settings=None):
        """Initialize the CrabAlert application."""
        self.app = QApplication(sys.argv)
        self.app.setQuitOnLastWindowClosed(False)
        self.app.setApplicationName("CrabAlert")
        self.app.setDesktopFileName("crab-alert")
        self.app.setWindowIcon(get_app_icon())

        self.settings = settings if settings is not None else load_settings()
        self.web_url = WEB_UI_URL

        # Create the system tray icon
        self.tray_icon = QSystemTrayIcon()
        self.tray_icon.setToolTip("CrabAlert")

        self._setup_menu()
        self.tray_icon.setContextMenu(self.menu)
        self.tray_icon.activated.connect(self._on_tray_activated)

        self._setup_connection()

        self.indicator = ConnectionIndicator(self.tray_icon, self.status_action)
        self.indicator.attach(self.transport)
        self.tray_icon.show()
        self.supervisor.start()

    def _setup_menu(self):
        """Create the system tray context menu."""
        self.menu = QMenu()

        # Status line, not clickable
        self.status_action = QAction(status_text(ConnectionState.DISCONNECTED))
        self.status_action.setEnabled(False)
        self.menu.addAction(self.status_action)

        self.menu.addSeparator()

        self.open_action = QAction("Open MailCrab")
        self.open_action.triggered.connect(self.open_mailcrab)
        self.menu.addAction(self.open_action)

        self.quit_action = QAction("Quit CrabAlert")
        self.quit_action.setShortcut("Ctrl+Q")
        self.quit_action.triggered.connect(self.quit)
        self.menu.addAction(self.quit_action)

    def _setup_connection(self):
        """Create transport, supervisor and message pipeline."""
        settings = self.settings

        self.transport = TransportClient(WEBSOCKET_URL)
        self.supervisor = ReconnectSupervisor(
            self.transport,
            interval=settings["reconnect_interval"],
            backoff=settings["reconnect_backoff"],
            max_interval=settings["reconnect_max_interval"],
        )

        self.presenter = NotificationPresenter(
            self.web_url,
            delay=settings["notification_delay"],
            enrich=settings["enrich_body"],
        )
        enricher = None
        if settings["enrich_body"]:
            fetcher = BodyFetcher(SERVER_URL, timeout=settings["fetch_timeout"])
            enricher = BodyEnricher(fetcher)
        self.pipeline = MessagePipeline(self.presenter, enricher)

        self.transport.event_received.connect(self.pipeline.handle_event)
        self.transport.watch_network()

    # -------------------------------------------------------------------------
    # Tray Icon
    # -------------------------------------------------------------------------

    def _on_tray_activated(self, reason):
        """Handle tray icon activation (clicks).

        Args:
            reason: QSystemTrayIcon.ActivationReason value.
        """
        if reason == QSystemTrayIcon.DoubleClick:
            self.open_mailcrab()

    def open_mailcrab(self):
        """Open the MailCrab web UI in the default web browser."""
        webbrowser.open(self.web_url)

    # -------------------------------------------------------------------------
    # Application Lifecycle
    # -------------------------------------------------------------------------

    def quit(self):
        """Clean up and exit the application."""
        logger.info("Quitting")
        self.supervisor.stop()
        self.transport.shutdown()
        self.app.quit()

    def run(self):
        """Start the Qt event loop.

        Returns:
            int: Application exit code.
        """
        return self.app.exec_()
