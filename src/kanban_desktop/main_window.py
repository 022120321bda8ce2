"""
Main window for Kanban Desktop: the board in a web view
"""

import logging

from PyQt6.QtCore import QEvent, QUrl
from PyQt6.QtGui import QDesktopServices
from PyQt6.QtWebEngineCore import QWebEnginePage, QWebEngineProfile
from PyQt6.QtWebEngineWidgets import QWebEngineView
from PyQt6.QtWidgets import QApplication, QMainWindow

from .lifecycle import CloseRequest, GeometryChange, LifecycleEvents
from .session_store import Bounds
from .system_tray import app_icon
from .url_tracker import BoardUrlPolicy
from .window_handle import handle_buffer

logger = logging.getLogger(__name__)


def opens_in_app(url: str, policy: BoardUrlPolicy) -> bool:
    """Board pages and sign-in pop-ups stay in the app; the rest goes to
    the desktop browser."""
    return policy.accepts(url) or "auth" in url.lower()


class PopupWindow(QMainWindow):
    """Top-level window for pop-ups the board opens, such as sign-in."""

    def __init__(self, page: QWebEnginePage, parent=None):
        super().__init__(parent)
        self.setWindowTitle("Kanban Board")
        self.setWindowIcon(app_icon())
        self.resize(600, 700)
        view = QWebEngineView(self)
        view.setPage(page)
        page.setParent(view)
        page.windowCloseRequested.connect(self.close)
        view.titleChanged.connect(self.setWindowTitle)
        self.setCentralWidget(view)


class _PendingPopupPage(QWebEnginePage):
    """Receives a new-window request until its target URL is known."""

    def __init__(self, profile: QWebEngineProfile, policy: BoardUrlPolicy, owner: QMainWindow):
        super().__init__(profile, owner)
        self._policy = policy
        self._owner = owner
        self._decided = False
        self.urlChanged.connect(self._decide)

    def _decide(self, url: QUrl) -> None:
        if self._decided or url.isEmpty():
            return
        self._decided = True
        target = url.toString()
        if opens_in_app(target, self._policy):
            logger.debug("Opening pop-up in app: %s", target)
            popup = PopupWindow(self, self._owner)
            popup.show()
            return
        logger.debug("Opening %s in the default browser", target)
        QDesktopServices.openUrl(url)
        self.deleteLater()


class BoardPage(QWebEnginePage):
    def __init__(self, profile: QWebEngineProfile, policy: BoardUrlPolicy, owner: QMainWindow):
        super().__init__(profile, owner)
        self._policy = policy
        self._owner = owner

    def createWindow(self, _type):
        return _PendingPopupPage(self.profile(), self._policy, self._owner)


class BoardWindow(QMainWindow):
    """Hosts the board and reports lifecycle events through ``events``."""

    def __init__(self, config, policy: BoardUrlPolicy, bounds: Bounds):
        super().__init__()
        self.config = config
        self.events = LifecycleEvents(self)
        self._ready = False

        self.setWindowTitle("Kanban Board")
        self.setWindowIcon(app_icon())
        self.setMinimumSize(
            int(config.get("window.min_width", 200)),
            int(config.get("window.min_height", 400)),
        )
        self.apply_bounds(bounds)

        # owned by the application so every page is gone before the profile
        self.profile = QWebEngineProfile(
            config.get("board.profile_name", "kanban-board"), QApplication.instance()
        )
        self.profile.setPersistentCookiesPolicy(
            QWebEngineProfile.PersistentCookiesPolicy.ForcePersistentCookies
        )

        self.view = QWebEngineView(self)
        self.page = BoardPage(self.profile, policy, self)
        self.view.setPage(self.page)
        self.setCentralWidget(self.view)

        self.view.urlChanged.connect(self._on_url_changed)
        self.view.loadFinished.connect(self._on_load_finished)
        self.view.titleChanged.connect(self._on_title_changed)

    def apply_bounds(self, bounds: Bounds) -> None:
        self.resize(bounds.width, bounds.height)
        if bounds.x is not None and bounds.y is not None:
            self.move(bounds.x, bounds.y)

    def load(self, url: str) -> None:
        logger.info("Loading %s", url)
        self.view.load(QUrl(url))

    # ShellWindow ----------------------------------------------------

    def native_handle(self) -> bytes:
        return handle_buffer(self.winId())

    def current_url(self) -> str | None:
        url = self.view.url()
        return url.toString() if url.isValid() and not url.isEmpty() else None

    def reload_board(self) -> None:
        self.view.reload()

    def geometry_change(self) -> GeometryChange:
        pos = self.pos()
        size = self.size()
        return GeometryChange(
            bounds=Bounds(width=size.width(), height=size.height(), x=pos.x(), y=pos.y()),
            minimized=self.isMinimized(),
            maximized=self.isMaximized(),
        )

    # Qt events ------------------------------------------------------

    def moveEvent(self, event):
        super().moveEvent(event)
        self.events.moved.emit(self.geometry_change())

    def resizeEvent(self, event):
        super().resizeEvent(event)
        self.events.resized.emit(self.geometry_change())

    def showEvent(self, event):
        super().showEvent(event)
        if not event.spontaneous():
            self.events.shown.emit()

    def hideEvent(self, event):
        super().hideEvent(event)
        if not event.spontaneous():
            self.events.hidden.emit()

    def changeEvent(self, event):
        super().changeEvent(event)
        if event.type() == QEvent.Type.ActivationChange and self.isActiveWindow():
            self.events.activated.emit()

    def closeEvent(self, event):
        request = CloseRequest()
        self.events.close_requested.emit(request)
        if request.accept:
            event.accept()
        else:
            event.ignore()

    # Web view -------------------------------------------------------

    def _on_url_changed(self, url: QUrl) -> None:
        if not url.isEmpty():
            self.events.navigated.emit(url.toString())

    def _on_load_finished(self, ok: bool) -> None:
        if not ok:
            logger.warning("Board failed to load: %s", self.view.url().toString())
        if not self._ready:
            self._ready = True
            self.events.ready.emit()

    def _on_title_changed(self, title: str) -> None:
        self.setWindowTitle(title or "Kanban Board")
