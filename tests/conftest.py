import os
from concurrent.futures import Executor, Future

import pytest


def pytest_runtest_setup(item):
    if item.get_closest_marker("pyqt_required"):
        if not os.getenv("PYQT_TESTS"):
            pytest.skip("PYQT_TESTS not set; skipping PyQt-dependent test")


@pytest.fixture
def qt_app(monkeypatch):
    monkeypatch.setenv("QT_QPA_PLATFORM", os.getenv("QT_QPA_PLATFORM", "offscreen"))
    # web engine must be loaded before the first QApplication exists
    from PyQt6 import QtWebEngineWidgets  # noqa: F401
    from PyQt6.QtWidgets import QApplication

    app = QApplication.instance()
    if app is None:
        app = QApplication([])
    yield app


class AfterHarness:
    """Virtual clock standing in for QTimer one-shots."""

    def __init__(self) -> None:
        self.now = 0
        self.scheduled: list[tuple[str, int, object]] = []
        self.cancelled: list[str] = []

    def after(self, ms: int, cb) -> str:
        handle = f"h{len(self.scheduled) + 1}"
        self.scheduled.append((handle, self.now + ms, cb))
        return handle

    def cancel(self, handle: object) -> None:
        self.cancelled.append(handle)

    def pending(self) -> list[str]:
        return [h for h, _due, _cb in self.scheduled if h not in self.cancelled]

    def advance(self, ms: int) -> None:
        target = self.now + ms
        while True:
            due = [
                (when, h, cb)
                for h, when, cb in self.scheduled
                if h not in self.cancelled and when <= target
            ]
            if not due:
                break
            when, handle, cb = min(due, key=lambda item: item[0])
            self.now = when
            self.cancelled.append(handle)  # fired
            cb()
        self.now = target


class ImmediateExecutor(Executor):
    """Runs submitted work on the calling thread."""

    def __init__(self) -> None:
        self.submitted: list[tuple] = []
        self.closed = False

    def submit(self, fn, /, *args, **kwargs):
        if self.closed:
            raise RuntimeError("cannot schedule new futures after shutdown")
        self.submitted.append((fn.__name__, args))
        future: Future = Future()
        try:
            future.set_result(fn(*args, **kwargs))
        except Exception as exc:
            future.set_exception(exc)
        return future

    def shutdown(self, wait=True, *, cancel_futures=False):
        self.closed = True


class FakeRunner:
    """Records tool invocations and answers from a per-command table."""

    def __init__(self, responses: dict | None = None) -> None:
        self.responses = responses or {}
        self.calls: list[tuple[str, list[str]]] = []

    def __call__(self, command, args):
        self.calls.append((command, list(args)))
        response = self.responses.get(command)
        if callable(response):
            return response(list(args))
        return response

    @property
    def commands(self) -> list[str]:
        return [command for command, _args in self.calls]


class MemoryStore:
    def __init__(self, data: dict | None = None) -> None:
        self.data = dict(data or {})
        self.writes: list[tuple[str, object]] = []

    def get(self, key, default=None):
        return self.data.get(key, default)

    def set(self, key, value):
        self.writes.append((key, value))
        self.data[key] = value


@pytest.fixture
def harness() -> AfterHarness:
    return AfterHarness()


@pytest.fixture
def memory_store() -> MemoryStore:
    return MemoryStore()
