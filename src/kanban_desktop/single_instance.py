"""
Single-instance guard over a local socket
"""

import getpass
import logging
import re

from PyQt6.QtCore import QDir, QLockFile, QObject, QStandardPaths, pyqtSignal
from PyQt6.QtNetwork import QLocalServer, QLocalSocket

logger = logging.getLogger(__name__)

SHOW_MESSAGE = b"show\n"


def default_server_name(app_id: str = "kanban-desktop") -> str:
    try:
        user = getpass.getuser()
    except (KeyError, OSError):
        user = "user"
    return f"{app_id}-{re.sub(r'[^A-Za-z0-9_.-]', '_', user)}"


def default_lock_path(name: str) -> str:
    runtime = QStandardPaths.writableLocation(QStandardPaths.StandardLocation.RuntimeLocation)
    return QDir(runtime or QDir.tempPath()).filePath(f"{name}.lock")


class SingleInstance(QObject):
    """Owns the instance socket, or forwards to the process that does.

    ``acquire()`` returns False when another instance answered; that
    instance has then been asked to show its window. The check and the
    listen run under a lock file so two simultaneous launches cannot both
    become primary.
    """

    activation_requested = pyqtSignal()

    def __init__(
        self,
        name: str | None = None,
        timeout_ms: int = 500,
        lock_path: str | None = None,
        parent: QObject | None = None,
    ):
        super().__init__(parent)
        self.name = name or default_server_name()
        self.timeout_ms = timeout_ms
        self.lock_path = lock_path or default_lock_path(self.name)
        self._server: QLocalServer | None = None

    @property
    def is_primary(self) -> bool:
        return self._server is not None and self._server.isListening()

    def acquire(self) -> bool:
        lock = QLockFile(self.lock_path)
        locked = lock.tryLock(self.timeout_ms * 4)
        if not locked:
            logger.warning("Could not lock %s; checking for a running instance anyway", self.lock_path)
        try:
            return self._acquire()
        finally:
            if locked:
                lock.unlock()

    def _acquire(self) -> bool:
        if self._notify_running_instance():
            logger.info("Kanban Desktop is already running; asked it to show its window")
            return False

        server = QLocalServer(self)
        server.setSocketOptions(QLocalServer.SocketOption.UserAccessOption)
        if not server.listen(self.name):
            # another process may have started listening since the check
            if self._notify_running_instance():
                logger.info("Kanban Desktop started concurrently; asked it to show its window")
                server.deleteLater()
                return False
            logger.debug("Removing stale single-instance socket %s", self.name)
            QLocalServer.removeServer(self.name)
            if not server.listen(self.name):
                logger.warning("Single-instance socket %s unavailable: %s", self.name, server.errorString())
                return True
        server.newConnection.connect(self._on_new_connection)
        self._server = server
        return True

    def release(self) -> None:
        if self._server is not None:
            self._server.close()
            self._server = None

    def _notify_running_instance(self) -> bool:
        socket = QLocalSocket()
        socket.connectToServer(self.name)
        if not socket.waitForConnected(self.timeout_ms):
            return False
        socket.write(SHOW_MESSAGE)
        socket.flush()
        socket.waitForBytesWritten(self.timeout_ms)
        socket.disconnectFromServer()
        return True

    def _on_new_connection(self) -> None:
        while self._server is not None and self._server.hasPendingConnections():
            connection = self._server.nextPendingConnection()
            if connection is None:
                break
            connection.readyRead.connect(lambda c=connection: self._read_message(c))
            # the sender may hang up before readyRead is delivered
            connection.disconnected.connect(lambda c=connection: self._read_message(c))
            connection.disconnected.connect(connection.deleteLater)
            if connection.bytesAvailable():
                self._read_message(connection)

    def _read_message(self, connection: QLocalSocket) -> None:
        data = bytes(connection.readAll())
        if b"show" in data:
            logger.debug("Second launch detected; surfacing window")
            self.activation_requested.emit()
