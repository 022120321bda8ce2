"""
System tray icon for Kanban Desktop
"""

import os
import sys

from PyQt6.QtGui import QAction, QIcon
from PyQt6.QtWidgets import QMenu, QSystemTrayIcon

ICON_PATH = "assets/icon.svg"


def resource_path(relative: str) -> str:
    base = getattr(sys, "_MEIPASS", None)
    if base:
        p = os.path.join(base, relative)
        if os.path.exists(p):
            return p
    here = os.path.dirname(os.path.abspath(__file__))
    p = os.path.join(here, relative)
    if os.path.exists(p):
        return p
    return relative


def app_icon() -> QIcon:
    icon = QIcon(resource_path(ICON_PATH))
    if icon.isNull():
        icon = QIcon.fromTheme("view-list-details")
    return icon


class SystemTrayIcon(QSystemTrayIcon):
    """Tray icon that keeps the board reachable while its window is hidden"""

    def __init__(self, coordinator, parent=None):
        super().__init__(parent)
        self.coordinator = coordinator

        self.setIcon(app_icon())
        self.setToolTip("Kanban Board")
        self.create_context_menu()

        self.activated.connect(self.on_activated)

        self.show()

    def create_context_menu(self):
        """Create the context menu for the tray icon"""
        # QSystemTrayIcon does not take ownership of the menu
        self.menu = QMenu()

        show_action = QAction("Show", self.menu)
        show_action.triggered.connect(self.coordinator.surface)
        self.menu.addAction(show_action)

        hide_action = QAction("Hide", self.menu)
        hide_action.triggered.connect(self.coordinator.hide)
        self.menu.addAction(hide_action)

        self.menu.addSeparator()

        reload_action = QAction("Reload", self.menu)
        reload_action.triggered.connect(self.coordinator.reload)
        self.menu.addAction(reload_action)

        self.menu.addSeparator()

        quit_action = QAction("Quit", self.menu)
        quit_action.triggered.connect(self.coordinator.request_quit)
        self.menu.addAction(quit_action)

        self.setContextMenu(self.menu)

    def on_activated(self, reason):
        """Left click toggles the board window"""
        if reason == QSystemTrayIcon.ActivationReason.Trigger:
            self.coordinator.toggle_visibility()
