"""Durable storage for the serialized store state."""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

from kaio.errors import StorageUnavailable


class StorageAdapter(ABC):
    """A single named blob holding the whole store state."""

    @abstractmethod
    def read(self) -> Optional[str]:
        """Return the stored blob, or None when nothing was saved yet."""
        pass

    @abstractmethod
    def write(self, blob: str) -> None:
        pass

    @abstractmethod
    def clear(self) -> None:
        pass


class MemoryStorage(StorageAdapter):
    """Keeps the blob in process memory."""

    def __init__(self, blob: Optional[str] = None):
        self.blob = blob

    def read(self) -> Optional[str]:
        return self.blob

    def write(self, blob: str) -> None:
        self.blob = blob

    def clear(self) -> None:
        self.blob = None


class JsonFileStorage(StorageAdapter):
    """Stores the blob as a JSON file on disk."""

    def __init__(self, path):
        self.path = Path(path)

    def read(self) -> Optional[str]:
        if not self.path.exists():
            return None
        try:
            return self.path.read_text(encoding="utf-8")
        except OSError as e:
            raise StorageUnavailable(f"cannot read {self.path}: {e}") from e

    def write(self, blob: str) -> None:
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(blob, encoding="utf-8")
            tmp_path.replace(self.path)
        except OSError as e:
            raise StorageUnavailable(f"cannot write {self.path}: {e}") from e

    def clear(self) -> None:
        try:
            self.path.unlink(missing_ok=True)
        except OSError as e:
            raise StorageUnavailable(f"cannot remove {self.path}: {e}") from e
