#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""UI components for CrabAlert.

This package contains the Qt system tray application:
- CrabAlert: Main application class with tray icon and status menu
"""

from crab_alert.ui.main_app import CrabAlert

__all__ = ["CrabAlert"]
