"""Single-owner cache cell for the current snapshot.

The snapshot lives in the key-value store under one key and is replaced
with a single SET, so readers see either the previous snapshot or the new
one, never a mix. Transport failures degrade instead of raising: reads
report the store as unreachable, writes report ``False``.
"""

from __future__ import annotations

import logging

from pyfuelprices._constants import DEFAULT_CACHE_KEY
from pyfuelprices._kv import KeyValueStore
from pyfuelprices.exceptions import FuelCacheTransportError
from pyfuelprices.models.snapshot import Snapshot

_logger = logging.getLogger(__name__)


class SnapshotStore:
    """Reads and atomically replaces the snapshot stored under ``key``."""

    def __init__(self, kv: KeyValueStore, *, key: str = DEFAULT_CACHE_KEY) -> None:
        self._kv = kv
        self._key = key

    @property
    def key(self) -> str:
        return self._key

    @property
    def is_configured(self) -> bool:
        return self._kv.is_configured

    async def inspect(self) -> tuple[bool, Snapshot | None]:
        """Reachability and current snapshot in one read.

        ``(False, None)`` means the store could not be asked at all;
        ``(True, None)`` means it answered and holds no usable snapshot.
        """
        if not self._kv.is_configured:
            return False, None
        try:
            text = await self._kv.get(self._key)
        except FuelCacheTransportError as exc:
            _logger.warning("Snapshot read failed: %s", exc)
            return False, None
        snapshot = Snapshot.from_json(text)
        if text and snapshot is None:
            _logger.warning("Stored snapshot under %s could not be decoded; treating as absent", self._key)
        return True, snapshot

    async def load(self) -> Snapshot | None:
        """Current snapshot, or ``None`` when absent, unreadable or corrupt."""
        _, snapshot = await self.inspect()
        return snapshot

    async def save(self, snapshot: Snapshot) -> bool:
        """Replace the stored snapshot; ``False`` leaves the old one in place."""
        try:
            ok = await self._kv.set(self._key, snapshot.to_json())
        except FuelCacheTransportError as exc:
            _logger.warning("Snapshot write failed: %s", exc)
            return False
        if ok:
            _logger.info(
                "Stored snapshot with %d locations generated at %s",
                snapshot.location_count,
                snapshot.last_update,
            )
        return ok
