from __future__ import annotations

from typing import Any

from PySide6.QtCore import QObject, QRunnable, QThreadPool
from loguru import logger


class _ReconcileTask(QRunnable):
    """QRunnable that builds a sorted image list off the UI thread.

    Emits `receiver.imageListLoaded(token, path, images, error)` upon
    completion. The receiver is expected to own a Qt
    `Signal(str, str, object, object)` named `imageListLoaded`.
    """

    def __init__(self, *, path: str, commands: Any, receiver: QObject, token: str) -> None:
        super().__init__()
        self._path = path
        self._commands = commands
        self._receiver = receiver
        self._token = token

    def run(self) -> None:  # type: ignore[override]
        try:
            images, error = self._commands.get_sorted_image_list(self._path)
        except Exception as ex:  # pylint: disable=broad-exception-caught
            logger.exception("Reconcile task failed for {}", self._path)
            images, error = None, str(ex)
        self._receiver.imageListLoaded.emit(  # type: ignore[attr-defined]
            self._token, self._path, images, error
        )


class ReconcileTaskRunner:
    """Dispatches directory reconciliation to the global thread pool.

    Tokens have the form "list|{path}".
    """

    def __init__(
        self, *, commands: Any, receiver: QObject, pool: QThreadPool | None = None
    ) -> None:
        self._commands = commands
        self._receiver = receiver
        self._pool = pool if pool is not None else QThreadPool.globalInstance()

    def request_image_list(self, path: str) -> str:
        """Request the sorted image list for `path`. Returns the token string."""
        token = f"list|{path}"
        task = _ReconcileTask(
            path=path, commands=self._commands, receiver=self._receiver, token=token
        )
        self._pool.start(task)
        return token
