import uuid

import pytest

pytestmark = pytest.mark.pyqt_required


def _process_events(app, until, attempts=200):
    from PyQt6.QtCore import QThread

    for _ in range(attempts):
        app.processEvents()
        if until():
            return True
        QThread.msleep(5)
    return False


def test_default_server_name_is_safe():
    from kanban_desktop.single_instance import default_server_name

    name = default_server_name("kanban-desktop")
    assert name.startswith("kanban-desktop-")
    assert "/" not in name and " " not in name


def test_first_instance_acquires(qt_app, tmp_path):
    from kanban_desktop.single_instance import SingleInstance

    instance = SingleInstance(f"kanban-test-{uuid.uuid4().hex}", lock_path=str(tmp_path / "instance.lock"))
    try:
        assert instance.acquire() is True
        assert instance.is_primary is True
    finally:
        instance.release()


def test_second_instance_surfaces_the_first(qt_app):
    from kanban_desktop.single_instance import SingleInstance

    name = f"kanban-test-{uuid.uuid4().hex}"
    first = SingleInstance(name)
    second = SingleInstance(name)
    activations = []
    first.activation_requested.connect(lambda: activations.append(True))
    try:
        assert first.acquire() is True
        assert second.acquire() is False
        assert second.is_primary is False
        assert _process_events(qt_app, lambda: bool(activations))
    finally:
        first.release()
        second.release()


def test_release_allows_a_new_primary(qt_app):
    from kanban_desktop.single_instance import SingleInstance

    name = f"kanban-test-{uuid.uuid4().hex}"
    first = SingleInstance(name)
    assert first.acquire() is True
    first.release()

    replacement = SingleInstance(name)
    try:
        assert replacement.acquire() is True
    finally:
        replacement.release()


def test_concurrent_launch_does_not_replace_a_live_socket(qt_app, tmp_path):
    from kanban_desktop.single_instance import SingleInstance

    name = f"kanban-test-{uuid.uuid4().hex}"
    lock_path = str(tmp_path / "instance.lock")
    first = SingleInstance(name, lock_path=lock_path)
    second = SingleInstance(name, lock_path=lock_path)
    activations = []
    first.activation_requested.connect(lambda: activations.append("first"))

    # the second launch checked before the first one was listening
    real_notify = second._notify_running_instance
    checks = []

    def notify_after_first_check():
        checks.append(True)
        return len(checks) > 1 and real_notify()

    second._notify_running_instance = notify_after_first_check

    try:
        assert first.acquire() is True
        assert second.acquire() is False
        assert second.is_primary is False
        assert first.is_primary is True
        assert _process_events(qt_app, lambda: bool(activations))

        third = SingleInstance(name, lock_path=lock_path)
        assert third.acquire() is False
        assert _process_events(qt_app, lambda: len(activations) >= 2)
    finally:
        first.release()
        second.release()
