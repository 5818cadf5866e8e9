"""
Background search jobs.

A search blocks on network fetches for up to several seconds, so callers that must
stay responsive (the API, an interactive shell) run it on a worker thread and keep
a handle to poll or cancel it.
"""

from __future__ import annotations

import logging
import threading
import time
import uuid

from sightline.core.errors import ErrorKind
from sightline.search.outcome import Failed, SearchOutcome
from sightline.search.walker import Observer, SightLineWalker

logger = logging.getLogger(__name__)


class SearchJob:
    """One sight-line search running on a daemon thread."""

    def __init__(self, walker: SightLineWalker, observer: Observer, *, job_id: str | None = None):
        self.job_id = job_id or uuid.uuid4().hex[:12]
        self.observer = observer
        self.created_at_unix = int(time.time())
        self.finished_at_unix: int | None = None
        self._walker = walker
        self._cancel = threading.Event()
        self._done = threading.Event()
        self._outcome: SearchOutcome | None = None
        self._thread = threading.Thread(target=self._run, name=f"sightline-{self.job_id}", daemon=True)

    def _run(self) -> None:
        try:
            outcome = self._walker.search(self.observer, self._cancel)
        except Exception as exc:
            logger.exception("Search job %s crashed", self.job_id)
            outcome = Failed(reason=ErrorKind.INTERNAL, message=f"{type(exc).__name__}: {exc}")
        self._outcome = outcome
        self.finished_at_unix = int(time.time())
        self._done.set()

    def start(self) -> "SearchJob":
        self._thread.start()
        return self

    def cancel(self) -> None:
        """Request cancellation; takes effect at the next chunk boundary."""
        self._cancel.set()

    @property
    def cancel_requested(self) -> bool:
        return self._cancel.is_set()

    @property
    def done(self) -> bool:
        return self._done.is_set()

    @property
    def outcome(self) -> SearchOutcome | None:
        return self._outcome

    @property
    def status(self) -> str:
        if self._outcome is not None:
            return self._outcome.kind
        if self._cancel.is_set():
            return "cancel_requested"
        return "running" if self._thread.is_alive() else "queued"

    def wait(self, timeout: float | None = None) -> SearchOutcome | None:
        """Block until the search finishes (or `timeout` passes); returns the outcome."""
        self._done.wait(timeout)
        return self._outcome
