#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""WebSocket transport for CrabAlert.

This module contains the TransportClient class which owns the single
WebSocket connection to MailCrab. Raw QWebSocket signals are translated
into typed event records, the connection state is advanced by one
transition function, and the event is re-emitted to observers. Everything
runs on the Qt event loop, so events from one connection arrive in order.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from functools import partial

from PyQt5.QtCore import QObject, QUrl, pyqtSignal
from PyQt5.QtNetwork import QNetworkConfigurationManager
from PyQt5.QtWebSockets import QWebSocket, QWebSocketProtocol

logger = logging.getLogger(__name__)


class ConnectionState(Enum):
    """Lifecycle stage of the WebSocket connection."""
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    CANCELLED = "cancelled"  # Terminal, reached on shutdown


# -------------------------------------------------------------------------
# Events
# -------------------------------------------------------------------------


@dataclass(frozen=True)
class Connected:
    headers: dict = field(default_factory=dict)


@dataclass(frozen=True)
class Disconnected:
    reason: str = ""
    code: int = 0


@dataclass(frozen=True)
class TextFrame:
    text: str


@dataclass(frozen=True)
class BinaryFrame:
    data: bytes


@dataclass(frozen=True)
class Pong:
    payload: bytes = b""


@dataclass(frozen=True)
class ViabilityChanged:
    is_viable: bool


@dataclass(frozen=True)
class ReconnectSuggested:
    should_reconnect: bool


@dataclass(frozen=True)
class Cancelled:
    pass


@dataclass(frozen=True)
class Error:
    cause: str


@dataclass(frozen=True)
class PeerClosed:
    pass


# Events that always leave the connection unusable
TERMINAL_EVENTS = (Disconnected, Cancelled, Error, PeerClosed)


def next_state(state, event):
    """Return the connection state that follows ``event``.

    Args:
        state: Current ConnectionState.
        event: One of the event records above.

    Returns:
        ConnectionState: CONNECTED after a handshake, DISCONNECTED after any
        terminal event, otherwise unchanged. CANCELLED never changes.
    """
    if state is ConnectionState.CANCELLED:
        return state
    if isinstance(event, Connected):
        return ConnectionState.CONNECTED
    if isinstance(event, TERMINAL_EVENTS):
        return ConnectionState.DISCONNECTED
    return state


class TransportClient(QObject):
    """Owner of the WebSocket connection to MailCrab.

    Signals:
        event_received: Emitted with each event record, after the state
                        transition for that event has been applied.
        state_changed: Emitted with the new ConnectionState on every change.

    Attributes:
        url: WebSocket endpoint, e.g. ws://localhost:1080/ws.
    """

    event_received = pyqtSignal(object)
    state_changed = pyqtSignal(object)

    def __init__(self, url, socket_factory=None, parent=None):
        """Initialize the transport.

        Args:
            url: WebSocket endpoint to connect to.
            socket_factory: Callable returning a new QWebSocket-like object.
                            Defaults to a QWebSocket owned by this client.
            parent: Optional parent QObject.
        """
        super().__init__(parent)
        self.url = url
        self._socket_factory = socket_factory or self._create_socket
        self._socket = None
        self._state = ConnectionState.DISCONNECTED
        self._network_manager = None

    @property
    def state(self):
        return self._state

    @property
    def is_connected(self):
        return self._state is ConnectionState.CONNECTED

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def open(self):
        """Open a new connection unless already connected.

        A pending attempt is abandoned and replaced, so a handshake that
        never completes cannot block reconnection.
        """
        if self._state in (ConnectionState.CONNECTED, ConnectionState.CANCELLED):
            logger.debug("open() ignored while %s", self._state.value)
            return

        abandoned = self._state is ConnectionState.CONNECTING
        self._discard_socket()
        if abandoned:
            self._dispatch(Cancelled())

        sock = self._socket_factory()
        self._socket = sock
        sock.connected.connect(partial(self._on_connected, sock))
        sock.disconnected.connect(partial(self._on_disconnected, sock))
        sock.textMessageReceived.connect(partial(self._on_text_message, sock))
        sock.binaryMessageReceived.connect(partial(self._on_binary_message, sock))
        sock.pong.connect(partial(self._on_pong, sock))
        sock.error.connect(partial(self._on_error, sock))
        sock.readChannelFinished.connect(partial(self._on_read_channel_finished, sock))

        self._set_state(ConnectionState.CONNECTING)
        logger.info("Connecting to %s", self.url)
        sock.open(QUrl(self.url))

    def close(self):
        """Close the current connection normally.

        The resulting Disconnected event arrives through the socket.
        """
        if self._socket is not None:
            self._socket.close()

    def shutdown(self):
        """Cancel the transport for good (process shutdown)."""
        self._set_state(ConnectionState.CANCELLED)
        self._discard_socket()
        self._dispatch(Cancelled())

    def watch_network(self):
        """Report network reachability changes as informational events."""
        self._network_manager = QNetworkConfigurationManager(self)
        self._network_manager.onlineStateChanged.connect(self._on_online_state_changed)

    # -------------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------------

    def _set_state(self, state):
        if state is self._state:
            return
        logger.debug("Connection state %s -> %s", self._state.value, state.value)
        self._state = state
        self.state_changed.emit(state)

    def _dispatch(self, event):
        """Log an event, apply its transition, then hand it to observers."""
        self._log_event(event)
        self._set_state(next_state(self._state, event))
        self.event_received.emit(event)

    def _log_event(self, event):
        if isinstance(event, Connected):
            logger.info("WebSocket is connected: %s", event.headers)
        elif isinstance(event, Disconnected):
            logger.info(
                "WebSocket is disconnected: %s with code: %s", event.reason, event.code
            )
        elif isinstance(event, TextFrame):
            logger.debug("Received text: %s", event.text)
        elif isinstance(event, BinaryFrame):
            logger.info("Received data: %d bytes (ignored)", len(event.data))
        elif isinstance(event, Pong):
            logger.debug("Received pong")
        elif isinstance(event, ViabilityChanged):
            logger.info("Network viability changed: %s", event.is_viable)
        elif isinstance(event, ReconnectSuggested):
            logger.info("Reconnect suggested: %s", event.should_reconnect)
        elif isinstance(event, Cancelled):
            logger.info("WebSocket was cancelled")
        elif isinstance(event, Error):
            logger.warning("WebSocket error: %s", event.cause)
        elif isinstance(event, PeerClosed):
            logger.info("Peer closed")

    # -------------------------------------------------------------------------
    # Socket
    # -------------------------------------------------------------------------

    def _create_socket(self):
        return QWebSocket("", QWebSocketProtocol.VersionLatest, self)

    def _discard_socket(self):
        # Clear the reference first so signals fired by abort() are ignored
        sock, self._socket = self._socket, None
        if sock is None:
            return
        sock.abort()
        sock.deleteLater()

    def _on_connected(self, sock):
        if sock is not self._socket:
            return
        headers = {
            "url": sock.requestUrl().toString(),
            "peer_port": sock.peerPort(),
        }
        self._dispatch(Connected(headers))

    def _on_disconnected(self, sock):
        if sock is not self._socket:
            return
        self._dispatch(Disconnected(sock.closeReason(), int(sock.closeCode())))

    def _on_text_message(self, sock, text):
        if sock is not self._socket:
            return
        self._dispatch(TextFrame(text))

    def _on_binary_message(self, sock, data):
        if sock is not self._socket:
            return
        self._dispatch(BinaryFrame(bytes(data)))

    def _on_pong(self, sock, elapsed_time, payload):
        if sock is not self._socket:
            return
        self._dispatch(Pong(bytes(payload)))

    def _on_error(self, sock, socket_error):
        if sock is not self._socket:
            return
        self._dispatch(Error(sock.errorString() or f"socket error {int(socket_error)}"))

    def _on_read_channel_finished(self, sock):
        if sock is not self._socket:
            return
        self._dispatch(PeerClosed())

    def _on_online_state_changed(self, is_online):
        self._dispatch(ViabilityChanged(is_online))
        if is_online and self._state is ConnectionState.DISCONNECTED:
            self._dispatch(ReconnectSuggested(True))
