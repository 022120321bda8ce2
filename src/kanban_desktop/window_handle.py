"""
Native window handle decoding
"""

import struct
from typing import Any

_HANDLE_FORMAT = "<I"


def resolve_window_id(handle: Any) -> int | None:
    """Return the X11 window id held in a native handle buffer.

    The id is the first four bytes read as an unsigned little-endian
    integer. Short, absent or malformed buffers and a zero id yield None.
    """
    try:
        (window_id,) = struct.unpack_from(_HANDLE_FORMAT, handle, 0)
    except (struct.error, TypeError, ValueError):
        return None
    return window_id or None


def handle_buffer(win_id: Any) -> bytes:
    """Pack a Qt ``winId()`` value into a little-endian handle buffer."""
    try:
        return int(win_id).to_bytes(8, "little", signed=False)
    except (TypeError, ValueError, OverflowError):
        return b""
