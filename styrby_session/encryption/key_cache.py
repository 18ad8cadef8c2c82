"""
Session Key Cache — Bounded in-memory cache of derived session keys.

Long-running agent processes encrypt many messages for the same
(session, machine) pair; the cache avoids re-deriving the key each time.
Eviction is FIFO by insertion order.

Security Note:
    Keys exist in process memory while cached. Never log cached keys,
    only counts and identifiers.
"""
import logging
import threading
from collections import OrderedDict
from collections.abc import Callable

from .errors import InvalidInputError

logger = logging.getLogger("styrby.session.encryption")

_DEFAULT_MAX_SIZE = 100
_DEFAULT_HEADROOM = 10


class SessionKeyCache:
    """Thread-safe FIFO cache of derived keys keyed by (session_id, machine_id).

    When a new key is inserted into a full cache, the oldest entries are
    evicted until ``max_size - headroom`` remain.
    """

    def __init__(
        self,
        max_size: int = _DEFAULT_MAX_SIZE,
        headroom: int = _DEFAULT_HEADROOM,
    ):
        if max_size < 1:
            raise InvalidInputError("max_size must be at least 1")
        if not 0 <= headroom < max_size:
            raise InvalidInputError(
                f"headroom must be in [0, {max_size}), got {headroom}"
            )
        self._max_size = max_size
        self._headroom = headroom
        self._keys: OrderedDict[tuple[str, str], bytes] = OrderedDict()
        self._lock = threading.Lock()

    @property
    def max_size(self) -> int:
        return self._max_size

    def __len__(self) -> int:
        return len(self._keys)

    def __contains__(self, item: object) -> bool:
        return item in self._keys

    def _prune(self) -> None:
        """Evict oldest entries if the cache is full. Caller holds the lock."""
        if len(self._keys) < self._max_size:
            return
        target = self._max_size - self._headroom - 1
        removed = 0
        while len(self._keys) > target:
            self._keys.popitem(last=False)
            removed += 1
        logger.debug(
            "Pruned key cache: removed=%d remaining=%d", removed, len(self._keys),
        )

    def get_or_derive(
        self,
        session_id: str,
        machine_id: str,
        derive: Callable[[], bytes],
    ) -> bytes:
        """Return the cached key, deriving and storing it on a miss.

        Args:
            session_id: Session identifier.
            machine_id: Machine identifier.
            derive: Zero-argument callable producing the key.

        Returns:
            The derived key.
        """
        cache_key = (session_id, machine_id)
        with self._lock:
            key = self._keys.get(cache_key)
            if key is not None:
                return key
            key = derive()
            self._prune()
            self._keys[cache_key] = key
        return key

    def discard(self, session_id: str, machine_id: str) -> None:
        """Drop the key for one (session, machine) pair, if cached."""
        with self._lock:
            self._keys.pop((session_id, machine_id), None)

    def clear(self) -> None:
        """Drop every cached key."""
        with self._lock:
            self._keys.clear()
