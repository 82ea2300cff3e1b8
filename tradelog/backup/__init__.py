"""Backup/restore codec and spreadsheet export."""

from tradelog.backup.codec import RestoredState, deserialize, dumps, serialize
from tradelog.backup.export import SheetExporter
from tradelog.backup.schema import SnapshotValidation, validate_snapshot

__all__ = [
    "RestoredState",
    "SheetExporter",
    "SnapshotValidation",
    "deserialize",
    "dumps",
    "serialize",
    "validate_snapshot",
]
