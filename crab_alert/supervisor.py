#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Reconnection supervisor for CrabAlert.

Polls the transport on a fixed timer and asks it to reconnect whenever
it is not connected. MailCrab runs locally, so by default there is no
backoff and no retry limit.
"""

import logging

from PyQt5.QtCore import QObject, QTimer

from crab_alert.transport import ConnectionState

logger = logging.getLogger(__name__)


class ReconnectSupervisor(QObject):
    """Periodic reconnect driver.

    Attributes:
        transport: TransportClient being supervised.
        interval: Base tick period in seconds.
        backoff: Double the period after every failed tick when True.
        max_interval: Upper bound for the period when backing off.
        failures: Consecutive ticks that found the transport disconnected.
    """

    def __init__(self, transport, interval=5, backoff=False, max_interval=60, parent=None):
        super().__init__(parent)
        self.transport = transport
        self.interval = interval
        self.backoff = backoff
        self.max_interval = max(max_interval, interval)
        self.failures = 0

        self.timer = QTimer(self)
        self.timer.setSingleShot(True)
        self.timer.timeout.connect(self._on_tick)

        self.transport.state_changed.connect(self._on_state_changed)

    def current_interval(self):
        """Seconds until the next tick."""
        if not self.backoff or self.failures == 0:
            return self.interval
        return min(self.interval * (2 ** self.failures), self.max_interval)

    def start(self):
        """Make the first connection attempt and start ticking."""
        logger.info("Supervising %s every %ss", self.transport.url, self.interval)
        self.transport.open()
        self._schedule()

    def stop(self):
        self.timer.stop()

    def _schedule(self):
        self.timer.start(int(self.current_interval() * 1000))

    def _on_tick(self):
        state = self.transport.state
        if state is ConnectionState.CANCELLED:
            return

        if state is not ConnectionState.CONNECTED:
            logger.info("Not connected (%s), reconnecting", state.value)
            self.transport.open()
            self.failures += 1

        self._schedule()

    def _on_state_changed(self, state):
        if state is ConnectionState.CONNECTED:
            self.failures = 0
        elif state is ConnectionState.CANCELLED:
            self.stop()
