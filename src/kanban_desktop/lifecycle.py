"""
Wires window lifecycle events to session persistence and workspace placement
"""

import logging
from dataclasses import dataclass, field
from typing import Protocol

from PyQt6.QtCore import QObject, pyqtSignal

from .config import Config, read_board_url_override
from .scheduling import AfterCancelFn, AfterFn, qt_after, qt_after_cancel
from .session_store import WORKSPACE_KEY, Bounds, SessionStore
from .url_tracker import UrlTracker
from .window_handle import resolve_window_id
from .workspace import WorkspaceService, is_workspace_index

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GeometryChange:
    """Window geometry reported by a move or resize"""

    bounds: Bounds
    minimized: bool
    maximized: bool

    @property
    def restorable(self) -> bool:
        return not self.minimized and not self.maximized


@dataclass
class CloseRequest:
    """A close attempt; handlers set ``accept`` to let the window close."""

    accept: bool = False


class LifecycleEvents(QObject):
    """The lifecycle events a shell window reports."""

    moved = pyqtSignal(object)  # GeometryChange
    resized = pyqtSignal(object)  # GeometryChange
    shown = pyqtSignal()
    hidden = pyqtSignal()
    activated = pyqtSignal()
    navigated = pyqtSignal(str)
    ready = pyqtSignal()
    close_requested = pyqtSignal(object)  # CloseRequest


class ShellWindow(Protocol):
    events: LifecycleEvents

    def native_handle(self) -> bytes: ...

    def current_url(self) -> str | None: ...

    def reload_board(self) -> None: ...

    def show(self) -> None: ...

    def hide(self) -> None: ...

    def raise_(self) -> None: ...

    def activateWindow(self) -> None: ...

    def isVisible(self) -> bool: ...


@dataclass
class AppContext:
    """Process-wide state shared by the lifecycle handlers."""

    config: Config
    store: SessionStore
    tracker: UrlTracker
    workspaces: WorkspaceService
    window: ShellWindow | None = None
    quitting: bool = False
    start_hidden: bool = False
    cli_url: str | None = None
    last_workspace: int | None = None
    window_id: int | None = field(default=None, repr=False)


class LifecycleCoordinator:
    """Handles lifecycle events for the board window."""

    def __init__(
        self,
        context: AppContext,
        *,
        quit_app=None,
        after: AfterFn = qt_after,
        after_cancel: AfterCancelFn = qt_after_cancel,
    ):
        self.context = context
        self._quit_app = quit_app
        self._after = after
        self._after_cancel = after_cancel
        self._retry_handle: object | None = None
        self._sample_handle: object | None = None
        self._bounds_handle: object | None = None
        self._pending_bounds: Bounds | None = None
        # between the first placement and its retry, samples report where
        # the window manager put the window, not where it belongs
        self._placing = False
        self._restored = False
        self.context.last_workspace = context.store.workspace()
        context.workspaces.workspace_sampled.connect(self.on_workspace_sampled)

    # Startup --------------------------------------------------------

    def initial_url(self) -> str:
        """Command line, then the override file, then the last board URL,
        then the configured default."""
        for source, url in (
            ("command line", self.context.cli_url),
            ("override file", read_board_url_override()),
            ("session", self.context.store.last_board_url()),
        ):
            if url:
                logger.info("Starting at %s from %s", url, source)
                return url
        return self.context.config.get("board.default_url")

    def initial_bounds(self) -> Bounds:
        stored = self.context.store.bounds()
        if stored is not None:
            return stored
        return Bounds(
            width=int(self.context.config.get("window.width", 1200)),
            height=int(self.context.config.get("window.height", 800)),
        )

    def attach(self, window: ShellWindow) -> None:
        self.context.window = window
        self.context.window_id = None
        events = window.events
        events.moved.connect(self.on_moved)
        events.resized.connect(self.on_resized)
        events.shown.connect(self.on_shown)
        events.hidden.connect(self.on_hidden)
        events.activated.connect(self.on_activated)
        events.navigated.connect(self.on_navigated)
        events.ready.connect(self.on_ready)
        events.close_requested.connect(self.on_close_requested)

    @property
    def window_id(self) -> int | None:
        """X11 id of the board window, resolved once and then cached."""
        if self.context.window_id is None and self.context.window is not None:
            self.context.window_id = resolve_window_id(self.context.window.native_handle())
        return self.context.window_id

    # Workspace ------------------------------------------------------

    def present(self) -> None:
        """Show the window on its saved workspace.

        Placement runs before showing and once more after a short delay,
        for window managers that reset the desktop when a window is mapped.
        Both attempts target the desktop saved before the first one.
        """
        window = self.context.window
        if window is None:
            return
        self._restored = True
        if self._retry_handle is not None:
            self._after_cancel(self._retry_handle)
            self._retry_handle = None
        target = self.context.store.workspace()
        self._placing = target is not None
        if target is not None:
            self.context.last_workspace = target
            self.context.workspaces.request_move(self.window_id, target)
        window.show()
        if target is not None:
            delay = int(self.context.config.get("timing.workspace_retry_ms", 150))
            self._retry_handle = self._after(delay, lambda: self._retry_placement(target))

    def _retry_placement(self, target: int) -> None:
        self._retry_handle = None
        self.context.workspaces.request_move(self.window_id, target)
        self._placing = False

    def sample_workspace(self) -> None:
        if self._placing:
            return
        self.context.workspaces.request_sample(self.window_id)

    def on_workspace_sampled(self, workspace: int) -> None:
        if self._placing or not is_workspace_index(workspace):
            return
        self.context.last_workspace = workspace
        self.context.store.set(WORKSPACE_KEY, workspace)

    # Event handlers -------------------------------------------------

    def on_ready(self) -> None:
        if self.context.start_hidden:
            logger.info("Starting hidden in the tray")
            return
        if self._restored:
            # already surfaced from the tray or a second launch
            return
        self.present()

    def on_moved(self, change: GeometryChange) -> None:
        self._save_bounds(change)
        self.sample_workspace()

    def on_resized(self, change: GeometryChange) -> None:
        self._save_bounds(change)

    def on_shown(self) -> None:
        # re-read once the delayed placement has had its chance
        if self._sample_handle is not None:
            self._after_cancel(self._sample_handle)
        delay = int(self.context.config.get("timing.workspace_retry_ms", 150)) * 2
        self._sample_handle = self._after(delay, self.sample_workspace)

    def on_hidden(self) -> None:
        self._persist_url()
        self._flush_bounds()

    def on_activated(self) -> None:
        self.sample_workspace()

    def on_navigated(self, url: str) -> None:
        self.context.tracker.track_navigation(url)

    def on_close_requested(self, request: CloseRequest) -> None:
        self._persist_url()
        self._flush_bounds()
        if self.context.quitting:
            self._persist_workspace(sample=True)
            request.accept = True
            return
        self._persist_workspace(sample=False)
        request.accept = False
        if self.context.window is not None:
            self.context.window.hide()

    # Tray and single-instance actions --------------------------------

    def surface(self) -> None:
        window = self.context.window
        if window is None:
            return
        if self._restored:
            window.show()
        else:
            # first showing after a hidden start restores the saved desktop
            self.present()
        window.raise_()
        window.activateWindow()

    def toggle_visibility(self) -> None:
        window = self.context.window
        if window is None:
            return
        if window.isVisible():
            window.hide()
        else:
            self.surface()

    def hide(self) -> None:
        if self.context.window is not None:
            self.context.window.hide()

    def reload(self) -> None:
        if self.context.window is not None:
            self.context.window.reload_board()

    def request_quit(self) -> None:
        """Persist everything, then end the event loop."""
        self.context.quitting = True
        self.shutdown()
        if self._quit_app is not None:
            self._quit_app()

    def shutdown(self) -> None:
        """Final synchronous persistence; safe to call more than once."""
        for attr in ("_retry_handle", "_sample_handle"):
            handle = getattr(self, attr)
            if handle is not None:
                self._after_cancel(handle)
                setattr(self, attr, None)
        self._persist_url()
        self._flush_bounds()
        self._persist_workspace(sample=True)
        self._placing = False
        self.context.workspaces.shutdown()

    # Internal helpers -----------------------------------------------

    def _save_bounds(self, change: GeometryChange) -> None:
        """Coalesce geometry writes; a drag ends in a single store write."""
        if not change.restorable:
            return
        self._pending_bounds = change.bounds
        if self._bounds_handle is not None:
            self._after_cancel(self._bounds_handle)
        delay = int(self.context.config.get("timing.bounds_debounce_ms", 250))
        self._bounds_handle = self._after(delay, self._commit_bounds)

    def _commit_bounds(self) -> None:
        self._bounds_handle = None
        bounds, self._pending_bounds = self._pending_bounds, None
        if bounds is not None:
            self.context.store.save_bounds(bounds)

    def _flush_bounds(self) -> None:
        if self._bounds_handle is not None:
            self._after_cancel(self._bounds_handle)
        self._commit_bounds()

    def _persist_url(self) -> None:
        window = self.context.window
        current = window.current_url() if window is not None else None
        self.context.tracker.flush(current)

    def _persist_workspace(self, sample: bool) -> None:
        workspace = None
        window = self.context.window
        if sample and not self._placing and window is not None and window.isVisible():
            workspace = self.context.workspaces.sample_now(self.window_id)
        if workspace is None:
            workspace = self.context.last_workspace
        if is_workspace_index(workspace):
            self.context.last_workspace = workspace
            self.context.store.set(WORKSPACE_KEY, workspace)
