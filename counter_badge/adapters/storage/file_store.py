"""Local JSON file counter store.

Holds the counter in a small document, ``{"count": <int>}``. A missing file
reads as 0; anything that cannot be parsed raises ``CorruptStateError``.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

from counter_badge.adapters.storage.base import AbstractCounterStore, validate_count
from counter_badge.core.errors import BackendUnavailableError, CorruptStateError

logger = logging.getLogger(__name__)


def _parse_document(raw: str, path: Path) -> int:
    """Extract the counter from the raw file content.

    Args:
        raw: File content.
        path: File path, used for error context only.

    Returns:
        The stored count (0 when the document has no ``count`` field).

    Raises:
        CorruptStateError: If the content is not a valid counter document.
    """
    try:
        document: Any = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise CorruptStateError(
            code="storage_corrupt_state",
            message=f"Counter file is not valid JSON: {exc.msg}",
            details={"backend": "file", "path": str(path)},
        ) from exc

    if not isinstance(document, dict):
        raise CorruptStateError(
            code="storage_corrupt_state",
            message="Counter file must contain a JSON object",
            details={"backend": "file", "path": str(path)},
        )

    value = document.get("count")
    if value is None:
        return 0
    if isinstance(value, str) and value.strip().isdecimal():
        return int(value.strip())
    if isinstance(value, int) and not isinstance(value, bool) and value >= 0:
        return value

    raise CorruptStateError(
        code="storage_corrupt_state",
        message="Counter file 'count' must be a non-negative integer",
        details={"backend": "file", "path": str(path)},
    )


class JsonFileCounterStore(AbstractCounterStore):
    """Counter persisted in a JSON file on local disk.

    The path is resolved against the working directory on every call, so a
    relative path follows the process cwd like the rest of the filesystem.
    File I/O runs in the default executor to keep the event loop free.
    """

    name = "file"

    def __init__(self, path: str | os.PathLike[str] = "counter.json") -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def _resolved_path(self) -> Path:
        return self._path if self._path.is_absolute() else Path.cwd() / self._path

    def _read_sync(self) -> int:
        path = self._resolved_path()
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return 0
        except UnicodeDecodeError as exc:
            logger.error("storage.file.corrupt", extra={"path": str(path)})
            raise CorruptStateError(
                code="storage_corrupt_state",
                message="Counter file is not valid UTF-8 text",
                details={"backend": self.name, "path": str(path)},
            ) from exc
        except OSError as exc:
            logger.error(
                "storage.file.read_failed",
                extra={"path": str(path), "error_type": type(exc).__name__},
            )
            raise BackendUnavailableError(
                code="storage_backend_unavailable",
                message=f"Could not read counter file: {exc.strerror or exc}",
                details={"backend": self.name, "operation": "get", "path": str(path)},
            ) from exc

        try:
            return _parse_document(raw, path)
        except CorruptStateError:
            logger.error("storage.file.corrupt", extra={"path": str(path)})
            raise

    def _write_sync(self, value: int) -> None:
        path = self._resolved_path()
        payload = json.dumps({"count": value}, indent=2)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=path.parent, prefix=f".{path.name}.", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as fh:
                    fh.write(payload)
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as exc:
            logger.error(
                "storage.file.write_failed",
                extra={"path": str(path), "error_type": type(exc).__name__},
            )
            raise BackendUnavailableError(
                code="storage_backend_unavailable",
                message=f"Could not write counter file: {exc.strerror or exc}",
                details={"backend": self.name, "operation": "set", "path": str(path)},
            ) from exc

    async def get_count(self) -> int:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._read_sync)

    async def set_count(self, value: int) -> bool:
        validate_count(value)
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, self._write_sync, value)
        logger.debug("storage.file.written", extra={"count": value})
        return True
