"""
Kanban Desktop - a kanban board in a native window that remembers where you left it
"""

import argparse
import logging
import sys

from PyQt6.QtWidgets import QApplication

from . import __version__
from .config import Config, is_absolute_url
from .lifecycle import AppContext, LifecycleCoordinator
from .logging_utils import configure_logging
from .main_window import BoardWindow
from .session_store import SessionStore
from .single_instance import SingleInstance
from .system_tray import SystemTrayIcon, app_icon
from .tool_invoker import ToolInvoker
from .url_tracker import BoardUrlPolicy, UrlTracker
from .workspace import WorkspaceInspector, WorkspacePlacer, WorkspaceService

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="kanban-desktop", description="Kanban board desktop shell")
    parser.add_argument("--debug", action="store_true", help="Enable verbose logging")
    parser.add_argument("--url", help="Open this URL instead of the remembered board")
    parser.add_argument("--hidden", action="store_true", help="Start in the tray without showing the window")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    args = parser.parse_args(argv)
    if args.url is not None and not is_absolute_url(args.url):
        parser.error(f"--url must be an absolute URL: {args.url}")
    return args


def build_context(config: Config, args: argparse.Namespace) -> AppContext:
    store = SessionStore(config.session_file)
    policy = BoardUrlPolicy(config.get("board.origin"), config.get("board.path_prefix"))
    tracker = UrlTracker(store, policy, delay_ms=int(config.get("timing.url_debounce_ms", 200)))

    runner = ToolInvoker(timeout=float(config.get("timing.tool_timeout_s", 1.5)))
    workspaces = WorkspaceService(WorkspaceInspector(runner), WorkspacePlacer(runner))
    if not workspaces.enabled:
        logger.info("Virtual desktop placement unavailable on this session")

    return AppContext(
        config=config,
        store=store,
        tracker=tracker,
        workspaces=workspaces,
        start_hidden=args.hidden,
        cli_url=args.url,
    )


def main(argv: list[str] | None = None) -> int:
    """Main application entry point"""
    args = parse_args(sys.argv[1:] if argv is None else argv)
    config = Config()
    configure_logging(
        args.debug or config.debug_logging,
        retention=int(config.get("logging.retention", 5)),
    )

    app = QApplication(sys.argv[:1])
    app.setApplicationName("Kanban Desktop")
    app.setApplicationVersion(__version__)
    app.setOrganizationName("kanban-desktop")
    app.setDesktopFileName("kanban-desktop")
    app.setWindowIcon(app_icon())
    # closing the window hides it to the tray
    app.setQuitOnLastWindowClosed(False)

    instance = SingleInstance()
    if not instance.acquire():
        return 0

    context = build_context(config, args)
    coordinator = LifecycleCoordinator(context, quit_app=app.quit)
    instance.activation_requested.connect(coordinator.surface)

    window = BoardWindow(config, context.tracker.policy, coordinator.initial_bounds())
    coordinator.attach(window)
    tray = SystemTrayIcon(coordinator)

    app.aboutToQuit.connect(coordinator.shutdown)
    app.aboutToQuit.connect(instance.release)

    window.load(coordinator.initial_url())

    status = app.exec()
    tray.hide()
    logger.info("Exiting with status %s", status)
    return status


if __name__ == "__main__":
    sys.exit(main())
