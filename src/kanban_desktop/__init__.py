"""
Kanban Desktop - a kanban board in a native window that remembers where you left it
"""

__version__ = "0.1.0"
__description__ = "Desktop shell for a kanban board with session and workspace memory"

from .config import Config, read_board_url_override
from .session_store import SessionStore, Bounds
from .tool_invoker import ToolInvoker, run_tool
from .window_handle import resolve_window_id
from .workspace import WorkspaceInspector, WorkspacePlacer, WorkspaceService
from .url_tracker import BoardUrlPolicy, UrlTracker
from .lifecycle import AppContext, LifecycleCoordinator

__all__ = [
    "Config",
    "read_board_url_override",
    "SessionStore",
    "Bounds",
    "ToolInvoker",
    "run_tool",
    "resolve_window_id",
    "WorkspaceInspector",
    "WorkspacePlacer",
    "WorkspaceService",
    "BoardUrlPolicy",
    "UrlTracker",
    "AppContext",
    "LifecycleCoordinator",
]
