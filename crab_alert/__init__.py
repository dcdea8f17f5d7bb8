#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""CrabAlert - A system tray notifier for MailCrab.

This package provides desktop notifications for mail captured by a local
MailCrab server:
- Keeps a WebSocket connection to MailCrab and reconnects when it drops
- Fetches each new message body and converts it to plain text
- Shows a desktop notification that opens the MailCrab web UI
- Shows the connection status in the system tray

Usage:
    # As a module
    python -m crab_alert

    # Or import and call main()
    from crab_alert import main
    main()
"""

__version__ = "1.0.0"
__all__ = ["main"]


def main():
    from crab_alert.__main__ import main as _main

    _main()
