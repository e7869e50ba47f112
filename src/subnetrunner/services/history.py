"""Persisted history of networks started on this host."""

import json
import os
import tempfile
from typing import List, Optional

from subnetrunner.errors import ConfigurationError
from subnetrunner.errors_catalog import actionable_error
from subnetrunner.models import PortShiftRecord


class RunHistory:
    """Append-only list of port shift records backed by a JSON array file.

    Loaded once at startup and written back once after a successful
    bootstrap. Two runs started at the same moment may still race on the
    final write; nothing here locks the file.
    """

    def __init__(self, path: Optional[str], records: Optional[List[PortShiftRecord]] = None):
        self.path = path
        self.records: List[PortShiftRecord] = list(records or [])

    @classmethod
    def disabled(cls) -> "RunHistory":
        return cls(path=None)

    @classmethod
    def load(cls, path: Optional[str]) -> "RunHistory":
        if not path or not os.path.exists(path):
            return cls(path=path)

        try:
            with open(path, "r", encoding="utf-8") as file_obj:
                data = json.load(file_obj)
        except (OSError, json.JSONDecodeError) as exc:
            raise ConfigurationError(
                actionable_error("history_unreadable", path=path, error=exc)
            ) from exc

        if data is None:
            return cls(path=path)
        if not isinstance(data, list):
            raise ConfigurationError(
                actionable_error("history_unreadable", path=path, error="expected a JSON array")
            )

        try:
            records = [PortShiftRecord.from_json(item) for item in data]
        except (AttributeError, KeyError, TypeError, ValueError) as exc:
            raise ConfigurationError(
                actionable_error("history_unreadable", path=path, error=f"malformed record: {exc}")
            ) from exc

        return cls(path=path, records=records)

    @property
    def enabled(self) -> bool:
        return bool(self.path)

    def __len__(self) -> int:
        return len(self.records)

    def append(self, record: PortShiftRecord):
        self.records.append(record)

    def save(self):
        if not self.path:
            return

        directory = os.path.dirname(self.path) or "."
        os.makedirs(directory, exist_ok=True)

        fd, temp_path = tempfile.mkstemp(prefix="run-history-", suffix=".json", dir=directory)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as file_obj:
                json.dump([record.to_json() for record in self.records], file_obj, indent=2)
                file_obj.write("\n")
            os.replace(temp_path, self.path)
        except OSError as exc:
            raise ConfigurationError(f"Could not write run history '{self.path}': {exc}") from exc
        finally:
            if os.path.exists(temp_path):
                try:
                    os.remove(temp_path)
                except OSError:
                    pass
