"""
Save Storage - StickRPG

Key-value durable storage for the single save slot. The engine hands
over a JSON-ready dict and gets one back; it does not know whether the
blob lives in a file or in memory.
"""

from abc import ABC, abstractmethod
from typing import Optional, Dict, Any
from pathlib import Path
import json
import logging
import os

logger = logging.getLogger(__name__)


# =============================================================================
# CONFIGURATION
# =============================================================================

STORAGE_CONFIG = {
    'save_dir': Path(os.environ.get('STICKRPG_SAVE_DIR', 'data/savegames')),
    'storage_key': 'stickrpg:save',
    'indent': 2,
}


# =============================================================================
# EXCEPTIONS
# =============================================================================

class StorageError(Exception):
    """Base exception for save storage errors."""
    pass


class CorruptSaveError(StorageError):
    """Stored blob exists but is not a JSON object."""
    pass


# =============================================================================
# ABSTRACT BASE CLASS
# =============================================================================

class SaveStorage(ABC):
    """Abstract interface for save slot storage."""

    @abstractmethod
    def read(self, key: str) -> Optional[Dict[str, Any]]:
        """
        Read a stored blob.

        Returns:
            The decoded JSON object, or None when nothing is stored

        Raises:
            CorruptSaveError: Stored data cannot be decoded
        """
        pass

    @abstractmethod
    def write(self, key: str, data: Dict[str, Any]) -> None:
        """Replace whatever is stored under key."""
        pass

    @abstractmethod
    def delete(self, key: str) -> bool:
        """Remove a stored blob. Returns True if something was removed."""
        pass

    def exists(self, key: str) -> bool:
        try:
            return self.read(key) is not None
        except CorruptSaveError:
            return True


def _reject_constant(name: str):
    raise ValueError(f"Non-finite number {name} in save data")


def _decode(key: str, raw: str) -> Dict[str, Any]:
    try:
        data = json.loads(raw, parse_constant=_reject_constant)
    except (ValueError, RecursionError) as e:
        raise CorruptSaveError(f"Malformed save data under '{key}': {e}") from e
    if not isinstance(data, dict):
        raise CorruptSaveError(f"Save data under '{key}' is not an object")
    return data


# =============================================================================
# FILE STORAGE
# =============================================================================

class FileSaveStorage(SaveStorage):
    """
    One JSON file per key inside a save directory.

    Writes go to a temporary sibling first and are moved into place, so a
    crash mid-write leaves the previous save intact.
    """

    def __init__(self, save_dir: Optional[Path] = None, indent: Optional[int] = None):
        self.save_dir = Path(save_dir or STORAGE_CONFIG['save_dir'])
        self.indent = indent if indent is not None else STORAGE_CONFIG['indent']

    def ensure_save_dir(self):
        """Ensure save directory exists."""
        self.save_dir.mkdir(parents=True, exist_ok=True)

    def path_for(self, key: str) -> Path:
        safe = ''.join(ch if ch.isalnum() or ch in '-_' else '_' for ch in key)
        return self.save_dir / f"{safe}.json"

    def read(self, key: str) -> Optional[Dict[str, Any]]:
        path = self.path_for(key)
        if not path.exists():
            return None

        try:
            with open(path, 'r', encoding='utf-8') as f:
                raw = f.read()
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"Could not read save file {path}: {e}")
            raise CorruptSaveError(f"Unreadable save file {path}") from e

        logger.debug(f"Read save '{key}' from {path}")
        return _decode(key, raw)

    def write(self, key: str, data: Dict[str, Any]) -> None:
        self.ensure_save_dir()
        path = self.path_for(key)
        tmp_path = path.with_suffix('.json.tmp')

        try:
            with open(tmp_path, 'w', encoding='utf-8') as f:
                json.dump(data, f, indent=self.indent, allow_nan=False)
            os.replace(tmp_path, path)
        except Exception:
            tmp_path.unlink(missing_ok=True)
            raise
        logger.debug(f"Wrote save '{key}' to {path}")

    def delete(self, key: str) -> bool:
        path = self.path_for(key)
        if path.exists():
            path.unlink()
            return True
        return False


# =============================================================================
# MEMORY STORAGE
# =============================================================================

class MemorySaveStorage(SaveStorage):
    """
    In-process storage holding serialized JSON strings.

    Blobs are kept as text so a save/load cycle goes through the same
    encode/decode path as the file storage.
    """

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._blobs: Dict[str, str] = dict(initial or {})

    def read(self, key: str) -> Optional[Dict[str, Any]]:
        raw = self._blobs.get(key)
        if raw is None:
            return None
        return _decode(key, raw)

    def write(self, key: str, data: Dict[str, Any]) -> None:
        self._blobs[key] = json.dumps(data, allow_nan=False)

    def write_raw(self, key: str, raw: str) -> None:
        """Store raw text as-is (no encoding)."""
        self._blobs[key] = raw

    def delete(self, key: str) -> bool:
        return self._blobs.pop(key, None) is not None
