# ==============================================================================
# BASE REPOSITORY - key-value JSON store and shared file access
# ==============================================================================
# Every storage key ("categories", "inventory", "sales", ...) is one JSON
# file holding a whole serialized array or object. Mutations rewrite the
# whole blob; there is no per-record transaction.
# ==============================================================================

import json
import logging
import os
import threading
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional


logger = logging.getLogger(__name__)


class JSONStorage:
    """
    Key-value store backed by a directory: key -> <base_path>/<key>.json.

    get/set work on the raw serialized text, get_json/set_json on data.
    Writes go to a temp file first and are swapped in with os.replace.
    """

    _file_lock = threading.RLock()

    def __init__(self, base_path: str):
        """
        Args:
            base_path: Directory holding the JSON files (created if missing)
        """
        self.base_path = base_path
        os.makedirs(self.base_path, exist_ok=True)

    def path_for(self, key: str) -> str:
        return os.path.join(self.base_path, f'{key}.json')

    def exists(self, key: str) -> bool:
        return os.path.exists(self.path_for(key))

    def get(self, key: str) -> Optional[str]:
        """
        Returns the raw blob stored under key, or None if there is none.

        Raises:
            OSError: If the file exists but cannot be read
        """
        path = self.path_for(key)
        with self._file_lock:
            try:
                with open(path, 'r', encoding='utf-8') as f:
                    return f.read()
            except FileNotFoundError:
                return None

    def set(self, key: str, value: str) -> None:
        """
        Stores a raw blob under key.

        Raises:
            OSError: If the file cannot be written
        """
        path = self.path_for(key)
        with self._file_lock:
            temp_path = path + '.tmp'
            try:
                with open(temp_path, 'w', encoding='utf-8') as f:
                    f.write(value)
                os.replace(temp_path, path)
            except Exception:
                if os.path.exists(temp_path):
                    os.remove(temp_path)
                raise

    def get_json(self, key: str, default: Any = None) -> Any:
        """
        Reads and parses the blob under key.

        A missing key, an unreadable file or invalid JSON all give back
        default. The failure is logged, never retried.
        """
        try:
            raw = self.get(key)
        except OSError as exc:
            logger.warning("Could not read storage key '%s': %s", key, exc)
            return default
        if raw is None:
            return default
        try:
            return json.loads(raw)
        except json.JSONDecodeError as exc:
            logger.warning("Corrupt JSON under storage key '%s', using empty data: %s", key, exc)
            return default

    def set_json(self, key: str, data: Any) -> None:
        self.set(key, json.dumps(data, indent=2, ensure_ascii=False))


class BaseRepository(ABC):
    """
    Abstract base for all repositories. One repository owns one storage key.
    """

    key: str = ''

    def __init__(self, storage: JSONStorage, key: Optional[str] = None):
        """
        Args:
            storage: Shared key-value store
            key: Storage key, defaults to the class attribute
        """
        self.storage = storage
        if key:
            self.key = key
        self._ensure_key_exists()

    def _ensure_key_exists(self) -> None:
        """Writes the empty blob when the key has never been stored."""
        if not self.storage.exists(self.key):
            self._write_raw(self._empty_data())

    @abstractmethod
    def _empty_data(self) -> Any:
        """
        Returns:
            Empty structure for this repository (list or dict)
        """

    def _read_raw(self) -> Any:
        """
        Reads the blob; storage failures fall back to the empty structure.
        """
        data = self.storage.get_json(self.key, None)
        if data is None:
            return self._empty_data()
        return data

    def _write_raw(self, data: Any) -> None:
        self.storage.set_json(self.key, data)

    def reload(self) -> None:
        """Nothing is cached, every read goes to storage."""


class ObjectRepository(BaseRepository):
    """
    Repository for a single object blob (e.g. current_user).
    """

    def _empty_data(self) -> Dict:
        return {}

    def get(self) -> Dict[str, Any]:
        data = self._read_raw()
        return data if isinstance(data, dict) else {}

    def save(self, data: Dict[str, Any]) -> None:
        self._write_raw(data)

    def clear(self) -> None:
        self._write_raw({})


class ListRepository(BaseRepository):
    """
    Repository for data stored as an array.

    Example: sales.json -> [{...}, {...}]
    """

    def _empty_data(self) -> List:
        return []

    def get_all(self) -> List[Dict[str, Any]]:
        """
        Returns:
            Every record; a blob of the wrong shape reads as empty
        """
        data = self._read_raw()
        if not isinstance(data, list):
            logger.warning("Storage key '%s' does not hold a list, using empty data", self.key)
            return []
        return [r for r in data if isinstance(r, dict)]

    def save_all(self, data: List[Dict[str, Any]]) -> None:
        self._write_raw(data)

    def append(self, record: Dict[str, Any]) -> None:
        data = self.get_all()
        data.append(record)
        self._write_raw(data)

    def get_by_id(self, record_id: str) -> Optional[Dict[str, Any]]:
        return self.find_by('id', record_id)

    def find_by(self, field: str, value: Any) -> Optional[Dict[str, Any]]:
        """
        Args:
            field: Field name
            value: Value to match

        Returns:
            First matching record or None
        """
        for record in self.get_all():
            if record.get(field) == value:
                return record
        return None

    def find_all_by(self, field: str, value: Any) -> List[Dict[str, Any]]:
        return [r for r in self.get_all() if r.get(field) == value]

    def filter(self, predicate: Callable[[Dict[str, Any]], bool]) -> List[Dict[str, Any]]:
        return [r for r in self.get_all() if predicate(r)]

    def update_where(self, field: str, value: Any, updates: Dict[str, Any]) -> bool:
        """
        Merges updates into every record whose field equals value.

        Returns:
            True if at least one record changed
        """
        data = self.get_all()
        updated = False
        for record in data:
            if record.get(field) == value:
                record.update(updates)
                updated = True
        if updated:
            self._write_raw(data)
        return updated

    def remove_where(self, field: str, value: Any) -> int:
        """
        Returns:
            Number of records removed
        """
        data = self.get_all()
        kept = [r for r in data if r.get(field) != value]
        removed = len(data) - len(kept)
        if removed:
            self._write_raw(kept)
        return removed
