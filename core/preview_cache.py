"""
Session-scoped preview cache with in-flight request de-duplication.

Every file name maps to at most one record: resolved (a Preview), unavailable
(resolution ran and produced nothing) or pending (a resolution is running).
Whoever creates the pending record runs the resolver; everyone else asking
for the same name while it runs waits on the same Future.  Record creation
happens under one lock together with the existence check, the resolver itself
runs outside it.
"""
import logging
import threading
from concurrent.futures import Executor, Future
from dataclasses import dataclass
from typing import Dict, Optional, Set, Tuple

from core.file_ops import FileHandle
from core.preview_resolver import Preview, PreviewResolver

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CacheStats:
    resolved: int
    unavailable: int
    pending: int
    resolutions_started: int


class PreviewCache:
    def __init__(self, resolver: PreviewResolver, cache_failures: bool = True):
        self.resolver = resolver
        self.cache_failures = cache_failures
        self._resolved: Dict[str, Preview] = {}
        self._unavailable: Set[str] = set()
        self._pending: Dict[str, Future] = {}
        self._lock = threading.Lock()
        self._resolutions_started = 0
        self._closed = False

    def request(self, name: str, handle: FileHandle) -> Optional[Preview]:
        """Return the preview for *name*, resolving it at most once; blocks while pending."""
        future, owner = self._claim(name)
        if owner:
            self._run(name, handle, future)
        return future.result()

    def request_async(self, name: str, handle: FileHandle, executor: Executor) -> "Future[Optional[Preview]]":
        """Like request(), but returns a Future; new resolutions run on *executor*."""
        future, owner = self._claim(name)
        if owner:
            try:
                executor.submit(self._run, name, handle, future)
            except RuntimeError as e:
                # Executor already shut down: finish the record so nobody waits forever.
                logger.warning(f"Could not schedule preview for {name}: {e}")
                self._finish(name, future, None)
        return future

    def peek(self, name: str) -> Optional[Preview]:
        """Return the cached preview for *name* without resolving anything."""
        with self._lock:
            return self._resolved.get(name)

    def is_pending(self, name: str) -> bool:
        with self._lock:
            return name in self._pending

    def is_unavailable(self, name: str) -> bool:
        with self._lock:
            return name in self._unavailable

    def invalidate(self, name: str) -> None:
        """Forget any finished outcome for *name*; an in-flight resolution is left alone."""
        with self._lock:
            self._resolved.pop(name, None)
            self._unavailable.discard(name)
        logger.debug(f"Invalidated preview for {name}")

    def clear(self) -> None:
        """Drop every finished record. Pending resolutions still complete for their waiters."""
        with self._lock:
            count = len(self._resolved) + len(self._unavailable)
            self._resolved.clear()
            self._unavailable.clear()
        logger.info(f"Preview cache cleared ({count} records)")

    def close(self) -> None:
        """Release every record. Resolutions that have not started yet finish as unavailable."""
        self._closed = True
        self.clear()

    def stats(self) -> CacheStats:
        with self._lock:
            return CacheStats(
                resolved=len(self._resolved),
                unavailable=len(self._unavailable),
                pending=len(self._pending),
                resolutions_started=self._resolutions_started,
            )

    def _claim(self, name: str) -> Tuple[Future, bool]:
        """Return (future, owner). The owner must run the resolution."""
        with self._lock:
            preview = self._resolved.get(name)
            if preview is not None:
                return _completed(preview), False
            if name in self._unavailable:
                return _completed(None), False
            future = self._pending.get(name)
            if future is not None:
                return future, False
            future = Future()
            future.set_running_or_notify_cancel()
            self._pending[name] = future
            self._resolutions_started += 1
            return future, True

    def _run(self, name: str, handle: FileHandle, future: Future) -> None:
        preview: Optional[Preview] = None
        try:
            if not self._closed:
                preview = self.resolver.resolve(name, handle)
        except Exception as e:  # why: a crashed resolution must still release its waiters
            logger.error(f"Preview resolution for {name} crashed: {e}", exc_info=True)
        finally:
            self._finish(name, future, preview)

    def _finish(self, name: str, future: Future, preview: Optional[Preview]) -> None:
        with self._lock:
            if self._pending.get(name) is future:
                del self._pending[name]
                if preview is not None:
                    self._resolved[name] = preview
                elif self.cache_failures:
                    self._unavailable.add(name)
        future.set_result(preview)


def _completed(value: Optional[Preview]) -> Future:
    future: Future = Future()
    future.set_result(value)
    return future
