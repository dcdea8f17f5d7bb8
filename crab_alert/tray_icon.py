#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Tray icon utilities for CrabAlert.

This module loads the envelope icon and derives the connection status
variants shown in the system tray.
"""

import os

from PyQt5.QtCore import Qt
from PyQt5.QtGui import QIcon, QColor, QPainter, QPixmap

from crab_alert.config import ICON_PATH
from crab_alert.transport import ConnectionState

# Opacity while disconnected (0.0 = invisible, 1.0 = fully visible)
DISCONNECTED_OPACITY = 0.35

STATUS_TEXT = {
    ConnectionState.CONNECTED: "Connected to MailCrab",
    ConnectionState.CONNECTING: "Waiting for MailCrab...",
    ConnectionState.DISCONNECTED: "Waiting for MailCrab...",
    ConnectionState.CANCELLED: "Stopped",
}


def status_text(state):
    """Menu label for a ConnectionState."""
    return STATUS_TEXT[state]


def get_app_icon():
    """Find the envelope icon, preferring the local config dir icon.

    Returns:
        QIcon: Local icon if installed, else the 'mail-unread' theme icon.
    """
    if os.path.exists(ICON_PATH):
        return QIcon(ICON_PATH)
    return QIcon.fromTheme("mail-unread")


def create_status_icon(base_icon, is_connected):
    """Create the tray icon for the current connection status.

    Connected shows the plain icon; otherwise the icon is faded and marked
    with a grey dot.

    Args:
        base_icon: Base QIcon.
        is_connected: Whether the WebSocket is connected.

    Returns:
        QIcon: Status icon, or base_icon when nothing needs drawing.
    """
    if is_connected:
        return base_icon

    # Size 64x64 provides enough resolution for most trays
    pixmap = base_icon.pixmap(64, 64)
    if pixmap.isNull():
        return base_icon

    pixmap = _create_faded_pixmap(pixmap, DISCONNECTED_OPACITY)

    painter = QPainter(pixmap)
    painter.setRenderHint(QPainter.Antialiasing)
    _draw_disconnected_badge(painter, pixmap)
    painter.end()

    return QIcon(pixmap)


def _create_faded_pixmap(pixmap, opacity):
    faded = QPixmap(pixmap.size())
    faded.fill(Qt.transparent)

    painter = QPainter(faded)
    painter.setOpacity(opacity)
    painter.drawPixmap(0, 0, pixmap)
    painter.end()

    return faded


def _draw_disconnected_badge(painter, pixmap):
    """Draw a grey dot at the bottom-right corner."""
    dot_size = 20  # Relative to 64x64
    painter.setBrush(QColor("#9e9e9e"))
    painter.setPen(Qt.NoPen)
    painter.drawEllipse(pixmap.width() - dot_size - 2, pixmap.height() - dot_size - 2, dot_size, dot_size)


class ConnectionIndicator:
    """Tray icon, tooltip and status menu entry for the connection state.

    Attributes:
        tray_icon: QSystemTrayIcon to update.
        status_action: Disabled QAction showing the status line.
        base_icon: Icon drawn for the connected state.
    """

    def __init__(self, tray_icon, status_action, base_icon=None):
        self.tray_icon = tray_icon
        self.status_action = status_action
        self.base_icon = base_icon if base_icon is not None else get_app_icon()

    def attach(self, transport):
        """Follow ``transport``, starting from its current state."""
        transport.state_changed.connect(self.update_connection_ui)
        self.update_connection_ui(transport.state)

    def update_connection_ui(self, state):
        """Reflect a connection state in the tray icon and menu.

        Args:
            state: ConnectionState reported by the transport.
        """
        is_connected = state is ConnectionState.CONNECTED
        self.tray_icon.setIcon(create_status_icon(self.base_icon, is_connected))
        self.status_action.setText(status_text(state))
        self.tray_icon.setToolTip(f"CrabAlert ({status_text(state)})")
