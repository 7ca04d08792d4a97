"""JSON file cache of task ids the upstream API cannot enumerate.

The whole document is read for every operation and written back whole.
There is no lock: two overlapping read-modify-write cycles may drop one
update, and the later save wins.
"""

from __future__ import annotations

import csv
import io
import json
import logging
import os
import tempfile
from collections.abc import Callable, Mapping
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any

from .errors import CacheIOError
from .models import CacheRecord, ImportSummary

logger = logging.getLogger(__name__)

DEFAULT_TTL = timedelta(hours=24)
CSV_REQUIRED_COLUMNS = ("task_id", "project_id", "title")


def _utc_now() -> datetime:
    return datetime.now(tz=UTC)


def empty_table() -> dict[str, Any]:
    return {"tasks": {}}


class TaskCacheStore:
    """Owns the cache file. Nothing else opens it."""

    def __init__(
        self,
        path: Path,
        *,
        ttl: timedelta = DEFAULT_TTL,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self.path = Path(path)
        self.ttl = ttl
        self._clock = clock

    def initialize(self) -> None:
        """Write an empty document when the file does not exist yet."""
        if self.path.exists():
            return
        if self.save(empty_table()):
            logger.info("task_cache event=initialized path=%s", self.path)

    def load(self) -> dict[str, Any]:
        """Return the cache document, or an empty one when missing or unreadable."""
        try:
            document = self._read()
        except CacheIOError as exc:
            logger.warning("task_cache event=load_failed path=%s error=%s", self.path, exc)
            return empty_table()
        if document is None:
            return empty_table()
        if not isinstance(document, dict):
            logger.warning("task_cache event=load_failed path=%s error=not an object", self.path)
            return empty_table()
        if not isinstance(document.get("tasks"), dict):
            document["tasks"] = {}
        return document

    def save(self, table: Mapping[str, Any]) -> bool:
        """Overwrite the document. Failures are logged and reported as ``False``."""
        try:
            self._write(table)
        except CacheIOError as exc:
            logger.warning("task_cache event=save_failed path=%s error=%s", self.path, exc)
            return False
        return True

    def put(self, task_id: str, project_id: str, title: str) -> CacheRecord:
        """Insert or refresh one record with ``cached_at`` set to now."""
        table = self.load()
        record = self._merge(table, task_id, project_id, title)
        self.save(table)
        return record

    def get(self, task_id: str) -> dict[str, Any] | None:
        record = self.load()["tasks"].get(task_id)
        return dict(record) if isinstance(record, dict) else None

    def is_stale(self, record: Mapping[str, Any]) -> bool:
        cached_at = _parse_timestamp(record.get("cached_at"))
        if cached_at is None:
            return True
        return self._clock() - cached_at > self.ttl

    def list_filtered(
        self,
        *,
        project_id: str | None = None,
        include_stale: bool = True,
    ) -> list[dict[str, Any]]:
        """List cached tasks with an ``is_stale`` flag, then filter by project and staleness."""
        views: list[dict[str, Any]] = []
        for task_id, record in self.load()["tasks"].items():
            if not isinstance(record, dict):
                continue
            views.append({"id": task_id, **record, "is_stale": self.is_stale(record)})

        if project_id:
            views = [view for view in views if view.get("project_id") == project_id]
        if not include_stale:
            views = [view for view in views if not view["is_stale"]]
        return views

    def import_csv(self, csv_data: str) -> ImportSummary:
        """Register every complete row of a ``task_id,project_id,title`` CSV block.

        Column order comes from the header. Rows missing any of the three
        values are skipped.
        """
        # Drop a leading UTF-8 byte order mark.
        lines = [line for line in csv_data.lstrip("\ufeff").splitlines() if line.strip()]
        if not lines:
            raise ValueError("CSV data is empty")

        rows = csv.reader(io.StringIO("\n".join(lines)))
        header = [column.strip().lower() for column in next(rows)]
        missing = [column for column in CSV_REQUIRED_COLUMNS if column not in header]
        if missing:
            raise ValueError(f"CSV must have columns: {', '.join(CSV_REQUIRED_COLUMNS)}")
        positions = {column: header.index(column) for column in CSV_REQUIRED_COLUMNS}

        table = self.load()
        imported = 0
        skipped = 0
        for row in rows:
            values = {
                column: row[index].strip() if index < len(row) else ""
                for column, index in positions.items()
            }
            if not all(values.values()):
                skipped += 1
                continue
            self._merge(table, values["task_id"], values["project_id"], values["title"])
            imported += 1
        if imported:
            self.save(table)

        logger.info(
            "task_cache event=csv_import imported=%s skipped=%s path=%s",
            imported,
            skipped,
            self.path,
        )
        return ImportSummary(imported=imported, skipped=skipped)

    def _merge(
        self, table: dict[str, Any], task_id: str, project_id: str, title: str
    ) -> CacheRecord:
        """Write one fresh record into ``table``, keeping keys it does not own."""
        record = CacheRecord(
            project_id=project_id,
            title=title,
            cached_at=self._clock().isoformat(),
        )
        existing = table["tasks"].get(task_id)
        merged = dict(existing) if isinstance(existing, dict) else {}
        merged.update(record.model_dump())
        table["tasks"][task_id] = merged
        return record

    def _read(self) -> Any:
        if not self.path.exists():
            return None
        try:
            return json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            raise CacheIOError(str(exc)) from exc

    def _write(self, table: Mapping[str, Any]) -> None:
        # Temp file in the same directory, then an atomic rename.
        temp_path: str | None = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, temp_path = tempfile.mkstemp(
                dir=str(self.path.parent), prefix=".ticktick-cache-", suffix=".tmp"
            )
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(table, handle, indent=2)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(temp_path, self.path)
        except (OSError, TypeError, ValueError) as exc:
            if temp_path is not None and os.path.exists(temp_path):
                os.unlink(temp_path)
            raise CacheIOError(str(exc)) from exc


def _parse_timestamp(raw: Any) -> datetime | None:
    if not isinstance(raw, str) or not raw:
        return None
    try:
        parsed = datetime.fromisoformat(raw)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed
