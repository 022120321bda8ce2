"""
Remembers the last visited board URL with a debounced write
"""

import logging
from urllib.parse import urlsplit

from .scheduling import AfterCancelFn, AfterFn, qt_after, qt_after_cancel
from .session_store import LAST_URL_KEY

logger = logging.getLogger(__name__)


class BoardUrlPolicy:
    """Accepts only absolute URLs on the board origin under the board path."""

    def __init__(self, origin: str, path_prefix: str):
        parts = urlsplit(origin)
        self.scheme = parts.scheme.lower()
        self.netloc = parts.netloc.lower()
        self.path_prefix = path_prefix if path_prefix.startswith("/") else f"/{path_prefix}"

    def accepts(self, url: object) -> bool:
        if not isinstance(url, str) or not url:
            return False
        try:
            parts = urlsplit(url)
            # .port raises on a malformed port
            parts.port
        except ValueError:
            return False
        if not parts.scheme or not parts.netloc:
            return False
        return (
            parts.scheme.lower() == self.scheme
            and parts.netloc.lower() == self.netloc
            and parts.path.startswith(self.path_prefix)
        )


class UrlTracker:
    """Debounces board URL writes so a burst of in-page navigations ends
    in one store write carrying the last URL."""

    def __init__(
        self,
        store,
        policy: BoardUrlPolicy,
        *,
        delay_ms: int = 200,
        after: AfterFn = qt_after,
        after_cancel: AfterCancelFn = qt_after_cancel,
    ):
        self.store = store
        self.policy = policy
        self.delay_ms = delay_ms
        self._after = after
        self._after_cancel = after_cancel
        self._handle: object | None = None
        self._pending_url: str | None = None

    @property
    def pending_url(self) -> str | None:
        return self._pending_url

    def track_navigation(self, url: str) -> bool:
        """Schedule ``url`` for persistence; returns False if it was rejected."""
        if not self.policy.accepts(url):
            logger.debug("Not remembering non-board URL %s", url)
            return False
        self._cancel()
        self._pending_url = url
        self._handle = self._after(self.delay_ms, self._commit)
        return True

    def flush(self, current_url: str | None = None) -> str | None:
        """Persist immediately, bypassing the debounce.

        ``current_url`` wins when it is a board URL; otherwise a pending URL
        is written. The pending timer is cancelled before anything is
        written, so it can never fire afterwards.
        """
        pending = self._pending_url
        self._cancel()
        url = current_url if self.policy.accepts(current_url) else pending
        if url is None:
            return None
        self.store.set(LAST_URL_KEY, url)
        logger.debug("Flushed board URL %s", url)
        return url

    def _cancel(self) -> None:
        if self._handle is not None and self._pending_url is not None:
            self._after_cancel(self._handle)
        self._pending_url = None

    def _commit(self) -> None:
        url = self._pending_url
        # the fired timer is kept until the next schedule replaces it
        self._pending_url = None
        if url is not None:
            self.store.set(LAST_URL_KEY, url)
            logger.debug("Saved board URL %s", url)
