#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Entry point for CrabAlert when run as a module.

Usage:
    python -m crab_alert

This module handles application startup including:
- Logging setup
- Lock file to prevent multiple instances
- Main application initialization
"""

import logging
import os
import sys

from PyQt5.QtCore import QLockFile, QDir

from crab_alert.ui.main_app import CrabAlert

logger = logging.getLogger("crab_alert")

LOCK_PATH = os.path.join(QDir.tempPath(), "crab-alert.lock")


def main():
    """Main entry point for CrabAlert.

    Exits immediately if another instance holds the lock file.
    """
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    lock_file = QLockFile(LOCK_PATH)
    # No age limit; locks left by dead processes are still reclaimed
    lock_file.setStaleLockTime(0)
    if not lock_file.tryLock():
        logger.error("Another instance of CrabAlert is already running")
        sys.exit(1)

    logger.info("Starting CrabAlert")
    notifier = CrabAlert()
    sys.exit(notifier.run())


if __name__ == "__main__":
    main()
