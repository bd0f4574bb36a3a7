"""
Pipeyard Backend - Pipe Store (Record Store)
=============================================

What:  Owns the in-memory pipe collection and keeps it durable.
How:   One list of dicts, loaded from the JSON document at startup and
       rewritten in full after every successful create or update.
Who:   Created by the application lifespan; reached by routes through the
       get_pipe_store dependency.

Upsert rules:
    id missing or falsy (None, 0, False, "")  → create
        new id = max(existing ids) + 1, or 1 for an empty collection
        record = {"id": new id, **payload without its id}
        appended at the end
    id truthy and stored                       → update
        shallow overlay of every key in the payload onto the stored record,
        in place (order unchanged)
    id truthy and not stored                   → PipeNotFoundError,
                                                 collection unchanged

Persistence is best effort: a failed write is logged and the request
still succeeds, because the in-memory collection stays authoritative for
the rest of the process lifetime.

Concurrency:
    Requests run on a single event loop and the collection is only touched
    between awaits, so no locking is needed. Overlapping writes each carry
    a full snapshot; whichever lands last wins on disk.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

from pipeyard.database import JsonDocument
from pipeyard.exceptions import PersistenceError, PipeNotFoundError

logger = logging.getLogger(__name__)

Record = Dict[str, Any]


class PipeStore:
    """
    Authoritative collection of pipe records.

    All mutation goes through upsert(), all reads through list().
    """

    def __init__(self, document: JsonDocument):
        self.document = document
        self._records: List[Record] = []

    async def load(self) -> int:
        """
        Populate the collection from the durable document (startup only).

        Returns:
            Number of pipes loaded.

        Raises:
            StoreLoadError: the document exists but is unreadable or corrupt.
        """
        records = await self.document.read()
        if records is None:
            logger.info(
                "%s not found. It will be created on the first write.",
                self.document.path.name,
            )
            records = []

        self._records = records
        logger.info("Loaded %d pipes from the database.", len(self._records))
        return len(self._records)

    def list(self) -> List[Record]:
        """Every stored pipe, in insertion order."""
        return self._records.copy()

    async def upsert(self, payload: Record) -> Tuple[Record, bool]:
        """
        Create or update a pipe.

        Args:
            payload: Partial record. `id` selects update vs create.

        Returns:
            (stored record, created) where created is True for a new pipe.

        Raises:
            PipeNotFoundError: truthy id that matches no stored pipe.
        """
        pipe_id = payload.get("id")

        if pipe_id:
            index = self._index_of(pipe_id)
            if index is None:
                raise PipeNotFoundError(pipe_id)
            stored = self._records[index]
            # stored id wins so 1.0 from a client does not replace 1
            record = {**stored, **payload, "id": stored["id"]}
            self._records[index] = record
            created = False
            logger.info("Updated pipe %s (%d fields)", pipe_id, len(payload) - 1)
        else:
            new_id = self._next_id()
            record = {"id": new_id}
            record.update((k, v) for k, v in payload.items() if k != "id")
            self._records.append(record)
            created = True
            logger.info("Created pipe %d", new_id)

        await self._persist()
        return record, created

    def _next_id(self) -> int:
        if not self._records:
            return 1
        return max(record["id"] for record in self._records) + 1

    def _index_of(self, pipe_id: Any) -> Optional[int]:
        # JSON `true` must not match pipe 1
        if isinstance(pipe_id, bool):
            return None
        for index, record in enumerate(self._records):
            if record["id"] == pipe_id:
                return index
        return None

    async def _persist(self) -> None:
        try:
            await self.document.write(self._records)
        except PersistenceError as e:
            logger.error("Error writing to database: %s | Context: %s", e.message, e.context)
