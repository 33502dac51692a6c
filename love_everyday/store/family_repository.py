"""Family document persistence: the protocol and an in-memory store.

Design notes:
    - StatusMonitor depends only on the FamilyRepository protocol, so the
      backing document database can be swapped without touching it.
    - InMemoryFamilyRepository guards all mutations with an asyncio.Lock
      and fans every change out to per-family subscriber queues.
    - update() takes Firestore-style dotted paths
      ("survivalAlert.isActive"), matching how the phone app writes.
    - An empty document is pushed when a family is removed; subscribers
      treat it as "document gone", not as an error.
"""

from __future__ import annotations

import asyncio
import copy
import logging
from datetime import datetime
from typing import Any, AsyncIterator, Protocol

from love_everyday.foundation.clock import utc_now

logger = logging.getLogger(__name__)

Document = dict[str, Any]


class FamilyNotFoundError(LookupError):
    """Raised when no family document exists for a connection code."""

    def __init__(self, family_code: str) -> None:
        self.family_code = family_code
        super().__init__(f"No family document for code '{family_code}'")


class FamilyRepository(Protocol):
    """Read/write/listen primitives the status engine needs."""

    def subscribe(self, family_code: str) -> AsyncIterator[Document]:
        """Yield the current document, then every subsequent change.

        Raises FamilyNotFoundError if the family does not exist.
        """
        ...

    async def fetch(self, family_code: str) -> Document | None:
        """Return a copy of the current document, or None."""
        ...

    async def clear_alert(self, family_code: str) -> bool:
        """Mark the survival alert inactive.  Returns False on failure."""
        ...

    async def record_critical_alert(self, family_code: str, record: dict[str, Any]) -> None:
        """Store an audit record of a detected critical transition."""
        ...


def _set_path(doc: Document, dotted: str, value: Any) -> None:
    """Assign *value* at a dotted path, creating intermediate maps."""
    keys = dotted.split(".")
    node = doc
    for key in keys[:-1]:
        child = node.get(key)
        if not isinstance(child, dict):
            child = {}
            node[key] = child
        node = child
    node[keys[-1]] = value


class InMemoryFamilyRepository:
    """Async-safe, in-memory family document store.

    Stands in for the cloud document database in tests and in the
    service's standalone mode.
    """

    def __init__(self) -> None:
        self._lock = asyncio.Lock()
        self._documents: dict[str, Document] = {}
        self._subscribers: dict[str, set[asyncio.Queue[Document]]] = {}

    # ── Writes ───────────────────────────────────────────────────────────

    async def put(self, family_code: str, document: Document) -> None:
        """Create or replace the whole document."""
        async with self._lock:
            self._documents[family_code] = copy.deepcopy(document)
            self._publish(family_code)
        logger.debug("Stored document for family %s", family_code)

    async def update(self, family_code: str, fields: dict[str, Any]) -> None:
        """Apply dotted-path field updates to an existing document.

        Raises:
            FamilyNotFoundError: If the family does not exist.
        """
        async with self._lock:
            doc = self._documents.get(family_code)
            if doc is None:
                raise FamilyNotFoundError(family_code)
            for path, value in fields.items():
                _set_path(doc, path, value)
            self._publish(family_code)

    async def touch_activity(self, family_code: str, at: datetime | None = None) -> datetime:
        """Record a phone activity heartbeat and return its timestamp."""
        at = at or utc_now()
        await self.update(family_code, {"lastPhoneActivity": at.isoformat()})
        return at

    async def remove(self, family_code: str) -> bool:
        """Delete a family document; subscribers receive an empty document."""
        async with self._lock:
            if self._documents.pop(family_code, None) is None:
                return False
            for queue in self._subscribers.get(family_code, ()):
                queue.put_nowait({})
            return True

    # ── FamilyRepository protocol ────────────────────────────────────────

    async def subscribe(self, family_code: str) -> AsyncIterator[Document]:
        queue: asyncio.Queue[Document] = asyncio.Queue()
        async with self._lock:
            doc = self._documents.get(family_code)
            if doc is None:
                raise FamilyNotFoundError(family_code)
            self._subscribers.setdefault(family_code, set()).add(queue)
            queue.put_nowait(copy.deepcopy(doc))

        try:
            while True:
                yield await queue.get()
        finally:
            subscribers = self._subscribers.get(family_code)
            if subscribers is not None:
                subscribers.discard(queue)
                if not subscribers:
                    del self._subscribers[family_code]

    async def fetch(self, family_code: str) -> Document | None:
        async with self._lock:
            doc = self._documents.get(family_code)
            return copy.deepcopy(doc) if doc is not None else None

    async def clear_alert(self, family_code: str) -> bool:
        try:
            await self.update(family_code, {
                "survivalAlert.isActive": False,
                "survivalAlert.clearedAt": utc_now().isoformat(),
                "survivalAlert.clearedBy": "child_app",
            })
        except FamilyNotFoundError:
            logger.warning("Cannot clear alert: family %s not found", family_code)
            return False
        return True

    async def record_critical_alert(self, family_code: str, record: dict[str, Any]) -> None:
        await self.update(family_code, {
            "alerts.survival": utc_now().isoformat(),
            "alertsTriggered.survival": record,
        })

    # ── Queries ──────────────────────────────────────────────────────────

    async def family_count(self) -> int:
        async with self._lock:
            return len(self._documents)

    def subscriber_count(self, family_code: str) -> int:
        return len(self._subscribers.get(family_code, ()))

    # ── Internals ────────────────────────────────────────────────────────

    def _publish(self, family_code: str) -> None:
        """Must be called while holding self._lock."""
        doc = self._documents[family_code]
        for queue in self._subscribers.get(family_code, ()):
            queue.put_nowait(copy.deepcopy(doc))
