"""File-backed record store for typed_buckets records."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Iterator, TypeVar

from typed_buckets import codec
from typed_buckets.record import Record

logger = logging.getLogger(__name__)

R = TypeVar("R", bound=Record)


class RecordStore:
    """Stores rows of record types as JSON files in a directory.

    Each record type gets ``<TypeName>.json`` holding
    ``{"next_id": int, "rows": {id: row}}``. Container columns are stored as
    the raw strings the records hold, so an untouched bucket is written back
    exactly as it was loaded.
    """

    METADATA_FILE = "_metadata.json"

    def __init__(self, data_dir: Path | str) -> None:
        """Initialize the store.

        Args:
            data_dir: Directory to store table files.
        """
        if isinstance(data_dir, str):
            data_dir = Path(data_dir)
        self.data_dir = data_dir
        self._tables: dict[str, dict[str, Any]] = {}
        self._types: dict[str, type[Record]] = {}

        self.data_dir.mkdir(parents=True, exist_ok=True)

    def _table_path(self, record_type: type[Record]) -> Path:
        return self.data_dir / f"{record_type.__name__}.json"

    def _table(self, record_type: type[Record]) -> dict[str, Any]:
        """Return the in-memory table for a type, reading it from disk once."""
        name = record_type.__name__
        table = self._tables.get(name)
        if table is None:
            path = self._table_path(record_type)
            if path.exists():
                with open(path) as f:
                    table = json.load(f)
            else:
                table = {"next_id": 1, "rows": {}}
            self._tables[name] = table
        if name not in self._types:
            self._types[name] = record_type
            self._save_metadata()
        return table

    def _write_table(self, record_type: type[Record]) -> None:
        table = self._tables[record_type.__name__]
        with open(self._table_path(record_type), "w") as f:
            json.dump(table, f, indent=2)

    def _save_metadata(self) -> None:
        """Describe the bucket layout of every known type on disk."""
        metadata = {
            "container_format": codec.FORMAT_NAME,
            "types": {
                name: self._serialize_type(record_type)
                for name, record_type in sorted(self._types.items())
            },
        }
        with open(self.data_dir / self.METADATA_FILE, "w") as f:
            json.dump(metadata, f, indent=2)

    def _serialize_type(self, record_type: type[Record]) -> dict[str, Any]:
        registry = record_type.bucket_registry()
        return {
            "columns": list(record_type.columns),
            "buckets": {
                spec.container_column: [
                    {"name": a.name, "type": a.type_name} for a in spec.attributes
                ]
                for spec in registry.buckets()
            },
        }

    def save(self, record: Record) -> int:
        """Persist a record, assigning it an id on first save.

        The record's ``before_persist`` hook runs first, so touched buckets
        are encoded into their container columns before the row is written.

        Returns:
            The record's id.
        """
        record_type = type(record)
        table = self._table(record_type)

        record.before_persist()
        if record.id is None:
            record.id = table["next_id"]
            table["next_id"] += 1
        else:
            table["next_id"] = max(table["next_id"], record.id + 1)
        table["rows"][str(record.id)] = record.to_row()
        self._write_table(record_type)

        logger.info("Saved %s %d", record_type.__name__, record.id)
        return record.id

    def _row(self, record_type: type[Record], id: int) -> dict[str, Any]:
        row = self._table(record_type)["rows"].get(str(id))
        if row is None:
            raise KeyError(f"{record_type.__name__} {id} not found")
        return row

    def load(self, record_type: type[R], id: int) -> R:
        """Load a fresh instance by id.

        Raises:
            KeyError: If no row has the id.
        """
        return record_type.from_row(self._row(record_type, id), id=id)  # type: ignore[return-value]

    def reload(self, record: Record) -> None:
        """Refresh a saved record's columns from the store and drop its working copies."""
        if record.id is None:
            raise ValueError(f"Cannot reload an unsaved {type(record).__name__}")
        row = self._row(type(record), record.id)
        for column in record.columns:
            setattr(record, column, row.get(column))
        record.reset_working_copies()

    def delete(self, record_type: type[Record], id: int) -> None:
        """Delete a row by id.

        Raises:
            KeyError: If no row has the id.
        """
        self._row(record_type, id)
        del self._tables[record_type.__name__]["rows"][str(id)]
        self._write_table(record_type)
        logger.info("Deleted %s %d", record_type.__name__, id)

    def all(self, record_type: type[R]) -> Iterator[R]:
        """Iterate over all stored instances of a type in id order."""
        rows = self._table(record_type)["rows"]
        for key in sorted(rows, key=int):
            yield record_type.from_row(rows[key], id=int(key))  # type: ignore[misc]

    def count(self, record_type: type[Record]) -> int:
        """Return the number of stored rows for a type."""
        return len(self._table(record_type)["rows"])

    def close(self) -> None:
        """Release cached tables; rows are already on disk."""
        self._tables.clear()

    def __enter__(self) -> RecordStore:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()
