"""
Cancelable one-shot callbacks on the Qt event loop
"""

from collections.abc import Callable

from PyQt6.QtCore import QTimer

AfterFn = Callable[[int, Callable[[], None]], object]
AfterCancelFn = Callable[[object], None]


def qt_after(ms: int, callback: Callable[[], None]) -> QTimer:
    """Run ``callback`` once after ``ms`` milliseconds; returns the handle.

    The caller keeps the returned timer alive until it fires or is cancelled.
    """
    timer = QTimer()
    timer.setSingleShot(True)
    timer.timeout.connect(callback)
    timer.start(ms)
    return timer


def qt_after_cancel(handle: object) -> None:
    if isinstance(handle, QTimer):
        handle.stop()
