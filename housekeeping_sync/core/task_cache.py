"""In-memory store of fetched task pages keyed by filter signature."""

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from housekeeping_sync.domain.page import CachePage, FilterSignature
from housekeeping_sync.domain.task import CleaningTask


logger = logging.getLogger(__name__)


@dataclass
class _Entry:
    page: CachePage
    seq: int
    fetched_at: float = field(default_factory=time.monotonic)
    invalidated: bool = False


@dataclass
class _PendingPatch:
    """An optimistic patch whose remote call has not settled yet.

    ``floor`` is the first fetch sequence number issued after the patch was
    applied. ``originals`` maps each patched signature to the page identity
    and the pre-patch page the record is restored from.
    """

    patch_fn: Callable[[CleaningTask], CleaningTask]
    floor: int
    originals: dict[FilterSignature, tuple[int, CachePage]] = field(default_factory=dict)


class TaskPageCache:
    """Holds one authoritative page per filter signature.

    Pages are only written through ``replace``, ``patch_record`` and
    ``restore_record``. Every installed page carries the sequence number of
    the fetch that produced it; that number is the page's identity. Sequence
    numbers are handed out by ``next_sequence`` so fetches and optimistic
    patches share one clock.
    """

    def __init__(self) -> None:
        """Initialize an empty cache."""
        self._entries: dict[FilterSignature, _Entry] = {}
        self._pending: dict[int, _PendingPatch] = {}
        self._next_seq = 1
        self._closed = False

        # Health tracking
        self._last_successful_operation: float | None = None
        self._total_operations = 0
        self._discarded_late_arrivals = 0

    def get_health_status(self) -> dict[str, Any]:
        """Get cache health status.

        Returns:
            Dict with entry count, operation counters and last successful operation
        """
        return {
            "closed": self._closed,
            "entries": len(self._entries),
            "stale_entries": sum(1 for entry in self._entries.values() if entry.invalidated),
            "last_successful_operation": self._last_successful_operation,
            "total_operations": self._total_operations,
            "discarded_late_arrivals": self._discarded_late_arrivals,
        }

    def _record_success(self) -> None:
        self._last_successful_operation = time.time()
        self._total_operations += 1

    def read(self, signature: FilterSignature) -> CachePage | None:
        """Return the current page for ``signature`` or None if never fetched."""
        entry = self._entries.get(signature)
        return entry.page if entry else None

    def sequence(self, signature: FilterSignature) -> int | None:
        """Return the fetch sequence number of the installed page."""
        entry = self._entries.get(signature)
        return entry.seq if entry else None

    def next_sequence(self) -> int:
        """Reserve the sequence number for a fetch that is about to be sent."""
        seq = self._next_seq
        self._next_seq += 1
        return seq

    def signatures_containing(self, task_id: int) -> list[FilterSignature]:
        return [signature for signature, entry in self._entries.items() if entry.page.index_of(task_id) is not None]

    def replace(self, signature: FilterSignature, page: CachePage, seq: int) -> bool:
        """Install a freshly fetched page.

        A fetch sent before an optimistic patch on one of its records was
        applied carries pre-patch data; the patch is re-applied to that record
        on the way in, so it stays visible until the mutation settles.

        Args:
            signature: Filter signature the page was fetched for
            page: The fetched page
            seq: Sequence number of the fetch

        Returns:
            True if installed, False if the cache is closed or a newer fetch
            for the same signature was already installed
        """
        if self._closed:
            logger.debug("cache_write_after_close", extra={"op": "replace", "signature": signature.key()})
            return False

        current = self._entries.get(signature)
        if current is not None and seq < current.seq:
            self._discarded_late_arrivals += 1
            logger.info(
                "fetch_discarded_late",
                extra={"signature": signature.key(), "seq": seq, "installed_seq": current.seq},
            )
            return False

        for task_id, pending in self._pending.items():
            index = page.index_of(task_id)
            if seq >= pending.floor or index is None:
                continue
            pending.originals[signature] = (seq, page)
            page = page.with_record_at(index, pending.patch_fn(page.records[index]))
            logger.info(
                "optimistic_patch_reapplied",
                extra={"signature": signature.key(), "task_id": task_id, "seq": seq},
            )

        self._entries[signature] = _Entry(page=page, seq=seq)
        self._record_success()
        logger.debug("Installed page for %s (seq=%d, records=%d)", signature.key(), seq, len(page.records))
        return True

    def begin_optimistic(
        self,
        task_id: int,
        patch_fn: Callable[[CleaningTask], CleaningTask],
    ) -> list[FilterSignature]:
        """Patch ``task_id`` in every cached page and hold the patch until settled.

        Returns:
            The signatures whose page was patched
        """
        if self._closed:
            return []

        pending = _PendingPatch(patch_fn=patch_fn, floor=self._next_seq)
        for signature in self.signatures_containing(task_id):
            seq = self._entries[signature].seq
            result = self.patch_record(signature, task_id, patch_fn)
            if result is not None:
                pending.originals[signature] = (seq, result[0])
        self._pending[task_id] = pending
        return list(pending.originals)

    def end_optimistic(self, task_id: int, *, rollback: bool) -> list[FilterSignature]:
        """Stop holding the patch on ``task_id``, restoring the pre-patch record if ``rollback``.

        Each page is only restored if it still has the identity it was
        patched under.

        Returns:
            The signatures whose record was restored
        """
        pending = self._pending.pop(task_id, None)
        if pending is None or not rollback:
            return []
        return [
            signature
            for signature, (seq, before) in pending.originals.items()
            if self.restore_record(signature, task_id, before, seq)
        ]

    def patch_record(
        self,
        signature: FilterSignature,
        task_id: int,
        patch_fn: Callable[[CleaningTask], CleaningTask],
    ) -> tuple[CachePage, CachePage] | None:
        """Rewrite one record in place.

        Ordering and pagination metadata are preserved. A missing page or
        record is a silent no-op.

        Returns:
            ``(before, after)`` pages, or None if nothing was patched
        """
        if self._closed:
            logger.debug("cache_write_after_close", extra={"op": "patch", "task_id": task_id})
            return None

        entry = self._entries.get(signature)
        if entry is None:
            return None

        index = entry.page.index_of(task_id)
        if index is None:
            logger.debug("Task %s not in page %s, patch skipped", task_id, signature.key())
            return None

        before = entry.page
        after = before.with_record_at(index, patch_fn(before.records[index]))
        entry.page = after
        self._record_success()
        return before, after

    def restore_record(
        self,
        signature: FilterSignature,
        task_id: int,
        snapshot: CachePage,
        expected_seq: int,
    ) -> bool:
        """Put the snapshot's copy of one record back into the page.

        The restore only happens if the installed page still has the identity
        the snapshot was taken from. If a fetch installed a newer page in the
        meantime, the fresher server data wins and this is a no-op.

        Returns:
            True if the record was restored
        """
        if self._closed:
            logger.debug("cache_write_after_close", extra={"op": "restore", "task_id": task_id})
            return False

        entry = self._entries.get(signature)
        if entry is None or entry.seq != expected_seq:
            logger.info(
                "rollback_superseded",
                extra={"signature": signature.key(), "task_id": task_id, "expected_seq": expected_seq},
            )
            return False

        original = snapshot.find(task_id)
        index = entry.page.index_of(task_id)
        if original is None or index is None:
            return False

        entry.page = entry.page.with_record_at(index, original)
        self._record_success()
        return True

    def invalidate(self, signature: FilterSignature | None = None) -> None:
        """Mark one signature, or every cached signature, as possibly stale.

        Nothing is refetched here; the next natural fetch picks it up.
        """
        if signature is None:
            targets = list(self._entries.values())
        else:
            entry = self._entries.get(signature)
            targets = [entry] if entry else []
        for entry in targets:
            entry.invalidated = True

    def is_stale(self, signature: FilterSignature, max_age_seconds: float) -> bool:
        """True if the page is absent, invalidated or older than ``max_age_seconds``."""
        entry = self._entries.get(signature)
        if entry is None:
            return True
        return entry.invalidated or time.monotonic() - entry.fetched_at > max_age_seconds

    def close(self) -> None:
        """Stop accepting writes; results of in-flight work become no-ops."""
        self._closed = True
        self._entries.clear()
        self._pending.clear()
        logger.info("Task page cache closed")
