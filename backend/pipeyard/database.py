"""
Pipeyard Backend - Durable Document & Store Dependency
=======================================================

What:  Reads and writes the JSON document that backs the pipe collection,
       and provides the FastAPI dependency that hands routes the store.
How:   Async file I/O through aiofiles. Writes go to a uniquely named temp
       file next to the document and are then renamed over it, so a reader
       sees either the previous snapshot or the new one.
Who:   JsonDocument is owned by PipeStore; get_pipe_store is used by routes.

Document format:
    [
      {
        "id": 1,
        "material": "Carbon Steel",
        "diameter": 114.3
      },
      ...
    ]
    A JSON array of objects, each carrying a positive integer "id".
    Pretty-printed with 2-space indentation and fully rewritten each time.
"""

import json
import logging
import uuid
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import aiofiles
import aiofiles.os
from fastapi import Request

from pipeyard.exceptions import PersistenceError, StoreLoadError

logger = logging.getLogger(__name__)

Record = Dict[str, Any]


class JsonDocument:
    """
    A single JSON file holding a snapshot of every pipe record.

    Nothing outside PipeStore reads or writes this file.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    async def read(self) -> Optional[List[Record]]:
        """
        Load and validate the document.

        Returns:
            None when the file does not exist, [] when it is empty,
            otherwise the parsed list of records.

        Raises:
            StoreLoadError: the file exists but cannot be read, is not valid
                            JSON, or is not an array of records with ids.
        """
        try:
            async with aiofiles.open(self.path, "r", encoding="utf-8") as f:
                text = await f.read()
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as e:
            raise StoreLoadError(
                message=f"Error reading database file {self.path}: {e}",
                path=str(self.path),
                context={"error": type(e).__name__},
            ) from e

        if not text.strip():
            return []

        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise StoreLoadError(
                message=f"Error parsing database file {self.path}: {e}",
                path=str(self.path),
                context={"line": e.lineno, "column": e.colno},
            ) from e

        return self._validate_records(data)

    def _validate_records(self, data: Any) -> List[Record]:
        if not isinstance(data, list):
            raise StoreLoadError(
                message=f"Database file {self.path} must contain a JSON array of pipes",
                path=str(self.path),
                context={"found": type(data).__name__},
            )

        seen_ids = set()
        for index, record in enumerate(data):
            if not isinstance(record, dict):
                raise StoreLoadError(
                    message=f"Entry {index} in {self.path} is not a JSON object",
                    path=str(self.path),
                    context={"index": index},
                )
            record_id = record.get("id")
            # bool is a subclass of int; `true` is not a valid id
            if isinstance(record_id, bool) or not isinstance(record_id, int) or record_id < 1:
                raise StoreLoadError(
                    message=f"Entry {index} in {self.path} has no positive integer id",
                    path=str(self.path),
                    context={"index": index, "id": record_id},
                )
            if record_id in seen_ids:
                raise StoreLoadError(
                    message=f"Duplicate pipe id {record_id} in {self.path}",
                    path=str(self.path),
                    context={"index": index, "id": record_id},
                )
            seen_ids.add(record_id)

        return data

    async def write(self, records: List[Record]) -> None:
        """
        Replace the document with a snapshot of `records`.

        The snapshot is serialized before the first suspension point, so it
        reflects the collection at the moment write() was awaited.

        Raises:
            PersistenceError: the temp file could not be written or renamed.
        """
        payload = json.dumps(records, indent=2)
        tmp_path = self.path.with_name(f".{self.path.name}.{uuid.uuid4().hex}.tmp")

        try:
            async with aiofiles.open(tmp_path, "w", encoding="utf-8") as f:
                await f.write(payload)
            await aiofiles.os.replace(tmp_path, self.path)
        except OSError as e:
            await self._discard(tmp_path)
            raise PersistenceError(
                message=f"Error writing to database file {self.path}: {e}",
                context={"path": str(self.path), "os_error": str(e)},
            ) from e

        logger.debug("Wrote %d pipes to %s", len(records), self.path)

    async def _discard(self, tmp_path: Path) -> None:
        try:
            await aiofiles.os.remove(tmp_path)
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning("Failed to remove temp file %s: %s", tmp_path, str(e))


# ── FastAPI Dependency ────────────────────────────────────────────────────

def get_pipe_store(request: Request):
    """
    FastAPI dependency returning the PipeStore created during application startup.

    Usage in routes:
        @router.get("/pipes")
        async def list_pipes(store: PipeStore = Depends(get_pipe_store)):
            ...
    """
    return request.app.state.pipe_store
