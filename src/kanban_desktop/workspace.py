"""
Virtual-desktop inspection and placement through external X11 tools
"""

import logging
import os
import re
import sys
from collections.abc import Mapping, Sequence
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from typing import Protocol

from PyQt6.QtCore import QObject, pyqtSignal

from .tool_invoker import ToolRunner, run_tool

logger = logging.getLogger(__name__)

DESKTOP_PROPERTY = "_NET_WM_DESKTOP"
_PROPERTY_VALUE = re.compile(r"=\s*(-?\d+)")


def virtual_desktops_supported(
    platform: str | None = None, env: Mapping[str, str] | None = None
) -> bool:
    """True on Linux sessions where X11 desktop properties are reachable."""
    platform = sys.platform if platform is None else platform
    env = os.environ if env is None else env
    if not platform.startswith("linux"):
        return False
    session = (env.get("XDG_SESSION_TYPE") or "").lower()
    if session == "wayland":
        # only an xcb (XWayland) window has an X11 id
        return (env.get("QT_QPA_PLATFORM") or "").lower().startswith("xcb")
    return session == "x11" or bool(env.get("DISPLAY"))


def is_workspace_index(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


def _is_window_id(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


def parse_desktop_property(output: str | None) -> int | None:
    """Extract the desktop index from ``xprop`` output such as
    ``_NET_WM_DESKTOP(CARDINAL) = 3``."""
    if not output:
        return None
    match = _PROPERTY_VALUE.search(output)
    if match is None:
        return None
    try:
        value = int(match.group(1))
    except ValueError:
        return None
    return value if value >= 0 else None


class WorkspaceInspector:
    """Reads the virtual desktop a window is currently assigned to."""

    def __init__(self, runner: ToolRunner = run_tool, enabled: bool | None = None):
        self.runner = runner
        self.enabled = virtual_desktops_supported() if enabled is None else enabled

    def get_workspace(self, window_id: int | None) -> int | None:
        if not self.enabled or not _is_window_id(window_id):
            return None
        output = self.runner("xprop", ["-id", str(window_id), DESKTOP_PROPERTY])
        workspace = parse_desktop_property(output)
        if workspace is None:
            logger.debug("No desktop assignment for window 0x%x: %r", window_id, output)
        return workspace


class PlacementStrategy(Protocol):
    name: str

    def attempt(self, runner: ToolRunner, window_id: int, workspace: int) -> bool:
        ...


class WmctrlPlacement:
    """Move by hex window id with ``wmctrl``."""

    name = "wmctrl"

    def attempt(self, runner: ToolRunner, window_id: int, workspace: int) -> bool:
        args = ["-i", "-r", f"0x{window_id:x}", "-t", str(workspace)]
        return runner("wmctrl", args) is not None


class XdotoolPlacement:
    """Move by decimal window id with ``xdotool``."""

    name = "xdotool"

    def attempt(self, runner: ToolRunner, window_id: int, workspace: int) -> bool:
        args = ["set_desktop_for_window", str(window_id), str(workspace)]
        return runner("xdotool", args) is not None


class XpropPlacement:
    """Write the desktop property directly; the window manager may or may
    not act on it, and nothing waits to find out."""

    name = "xprop"

    def attempt(self, runner: ToolRunner, window_id: int, workspace: int) -> bool:
        args = [
            "-id",
            str(window_id),
            "-f",
            DESKTOP_PROPERTY,
            "32c",
            "-set",
            DESKTOP_PROPERTY,
            str(workspace),
        ]
        return runner("xprop", args) is not None


def default_strategies() -> list[PlacementStrategy]:
    return [WmctrlPlacement(), XdotoolPlacement(), XpropPlacement()]


class WorkspacePlacer:
    """Tries each placement strategy in order until one succeeds."""

    def __init__(
        self,
        runner: ToolRunner = run_tool,
        strategies: Sequence[PlacementStrategy] | None = None,
        enabled: bool | None = None,
    ):
        self.runner = runner
        self.strategies = list(strategies) if strategies is not None else default_strategies()
        self.enabled = virtual_desktops_supported() if enabled is None else enabled

    def move_to(self, window_id: int | None, workspace: object) -> str | None:
        """Return the name of the strategy that placed the window, or None."""
        if not self.enabled or not _is_window_id(window_id) or not is_workspace_index(workspace):
            return None
        for strategy in self.strategies:
            if strategy.attempt(self.runner, window_id, workspace):
                logger.debug("Placed window 0x%x on desktop %d via %s", window_id, workspace, strategy.name)
                return strategy.name
        logger.debug("No tool could place window 0x%x on desktop %d", window_id, workspace)
        return None


class WorkspaceService(QObject):
    """Runs inspector and placer calls off the GUI thread.

    A single worker executes requests in submission order, so an earlier
    placement never lands after a later one. Sampled desktops are delivered
    back through ``workspace_sampled``.
    """

    workspace_sampled = pyqtSignal(int)

    def __init__(
        self,
        inspector: WorkspaceInspector,
        placer: WorkspacePlacer,
        executor: Executor | None = None,
        parent: QObject | None = None,
    ):
        super().__init__(parent)
        self.inspector = inspector
        self.placer = placer
        self._executor = executor or ThreadPoolExecutor(max_workers=1, thread_name_prefix="workspace")
        self._pending_sample: Future | None = None

    @property
    def enabled(self) -> bool:
        return self.inspector.enabled or self.placer.enabled

    def request_sample(self, window_id: int | None) -> Future | None:
        """Queue a desktop sample unless one is still waiting to run.

        The queued sample has not read anything yet, so it already answers
        for the newer request.
        """
        if not self.inspector.enabled or window_id is None:
            return None
        pending = self._pending_sample
        if pending is not None and not pending.done() and not pending.running():
            return pending
        future = self._submit(self.inspector.get_workspace, window_id)
        if future is not None:
            self._pending_sample = future
            future.add_done_callback(self._deliver_sample)
        return future

    def request_move(self, window_id: int | None, workspace: int | None) -> Future | None:
        if not self.placer.enabled or window_id is None or not is_workspace_index(workspace):
            return None
        return self._submit(self.placer.move_to, window_id, workspace)

    def sample_now(self, window_id: int | None) -> int | None:
        """Blocking sample bounded by the runner timeout, for use at quit."""
        return self.inspector.get_workspace(window_id)

    def shutdown(self) -> None:
        self._executor.shutdown(wait=False, cancel_futures=True)

    def _submit(self, fn, *args) -> Future | None:
        try:
            return self._executor.submit(fn, *args)
        except RuntimeError as exc:
            # executor already shut down
            logger.debug("Workspace request dropped: %s", exc)
            return None

    def _deliver_sample(self, future: Future) -> None:
        if future.cancelled():
            return
        exc = future.exception()
        if exc is not None:
            logger.debug("Workspace sample failed: %s", exc)
            return
        workspace = future.result()
        if workspace is not None:
            self.workspace_sampled.emit(workspace)
