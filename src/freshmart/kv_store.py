"""Persisted key-value storage for freshmart.

Every collection the core owns (orders, notification ledgers, products,
addresses) and every session flag lives under one key as a JSON string and is
read and written wholesale. Read-modify-write cycles on a key go through
``store.lock(key)`` so concurrent callers are applied one after the other.
"""

import fcntl
import json
import logging
import os
import re
import tempfile
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Callable, Iterator, Protocol, TypeVar

from .errors import StorageReadError, StorageWriteError

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Can be overridden via FRESHMART_DATA_DIR environment variable
_default_data_dir = Path(__file__).parent.parent.parent / "data"
DATA_DIR = Path(os.environ.get("FRESHMART_DATA_DIR", _default_data_dir))

ORDERS_KEY = "orders"
PRODUCTS_KEY = "products"
ADDRESSES_KEY = "addresses"
VENDORS_KEY = "vendors"

_KEY_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")


class KeyValueStore(Protocol):
    """What the core needs from its storage collaborator."""

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def remove(self, key: str) -> None: ...

    def lock(self, key: str) -> Any: ...


class _KeyLocks:
    """One re-entrant lock per key, created on first use."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[str, threading.RLock] = {}

    def get(self, key: str) -> threading.RLock:
        with self._guard:
            if key not in self._locks:
                self._locks[key] = threading.RLock()
            return self._locks[key]


class MemoryStore:
    """Dict-backed store, for tests and embedding."""

    def __init__(self, initial: dict[str, str] | None = None):
        self._data: dict[str, str] = dict(initial or {})
        self._locks = _KeyLocks()

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        return sorted(self._data)

    @contextmanager
    def lock(self, key: str) -> Iterator[None]:
        with self._locks.get(key):
            yield


class JsonFileStore:
    """Manages one JSON file per key inside a data directory."""

    def __init__(self, data_dir: Path | None = None):
        """
        Initialize JsonFileStore.

        Args:
            data_dir: Override data directory (for testing).
        """
        self.data_dir = Path(data_dir) if data_dir else DATA_DIR
        self._locks = _KeyLocks()
        self._held = threading.local()

    def _path(self, key: str) -> Path:
        if not _KEY_PATTERN.match(key):
            raise ValueError(f"Invalid storage key: {key!r}")
        return self.data_dir / f"{key}.json"

    def _ensure_dir(self) -> None:
        """Ensure data directory exists."""
        self.data_dir.mkdir(parents=True, exist_ok=True)

    def get(self, key: str) -> str | None:
        path = self._path(key)
        if not path.exists():
            return None
        with open(path, "r", encoding="utf-8") as f:
            return f.read()

    def set(self, key: str, value: str) -> None:
        """Write a key atomically (temp file, then rename)."""
        self._ensure_dir()
        fd, temp_path = tempfile.mkstemp(dir=self.data_dir, prefix=f".{key}_", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(value)
                f.write("\n")
            os.replace(temp_path, self._path(key))
        except Exception:
            try:
                os.unlink(temp_path)
            except OSError:
                pass
            raise

    def remove(self, key: str) -> None:
        path = self._path(key)
        if path.exists():
            path.unlink()

    def keys(self) -> list[str]:
        if not self.data_dir.exists():
            return []
        return sorted(p.stem for p in self.data_dir.glob("*.json"))

    @contextmanager
    def lock(self, key: str) -> Iterator[None]:
        """Serialize read-modify-write on one key, across threads and processes."""
        self._path(key)
        held = self._held.__dict__.setdefault("keys", set())
        with self._locks.get(key):
            if key in held:
                # flock isn't re-entrant across file descriptors
                yield
                return
            self._ensure_dir()
            lock_path = self.data_dir / f".{key}.lock"
            with open(lock_path, "w") as lock_file:
                fcntl.flock(lock_file.fileno(), fcntl.LOCK_EX)
                held.add(key)
                try:
                    yield
                finally:
                    held.discard(key)
                    fcntl.flock(lock_file.fileno(), fcntl.LOCK_UN)


def load_json(store: KeyValueStore, key: str, default: Any = None) -> Any:
    """
    Read and decode one key.

    A missing key yields ``default``.

    Raises:
        StorageReadError: If the store fails or the value isn't valid JSON.
    """
    try:
        raw = store.get(key)
    except OSError as e:
        logger.exception("Error reading %s", key)
        raise StorageReadError(key, str(e)) from e
    except UnicodeDecodeError as e:
        logger.error("Value under %s is not valid UTF-8: %s", key, e)
        raise StorageReadError(key, "invalid UTF-8") from e

    if raw is None or raw.strip() == "":
        return default

    try:
        return json.loads(raw)
    except json.JSONDecodeError as e:
        logger.error("Corrupted value under %s: %s", key, e)
        raise StorageReadError(key, f"invalid JSON ({e.msg})") from e


def load_list(store: KeyValueStore, key: str) -> list[Any]:
    """Read a collection key; absent means empty."""
    data = load_json(store, key, default=[])
    if not isinstance(data, list):
        raise StorageReadError(key, f"expected a JSON array, got {type(data).__name__}")
    return data


def decode_records(key: str, records: list[Any], from_dict: Callable[[Any], T]) -> list[T]:
    """
    Build model objects from the records stored under one key.

    Raises:
        StorageReadError: If a record is missing fields or holds values the
            model rejects.
    """
    try:
        return [from_dict(record) for record in records]
    except (AttributeError, KeyError, TypeError, ValueError) as e:
        logger.error("Malformed record under %s: %r", key, e)
        raise StorageReadError(key, f"malformed record ({e})") from e


def save_json(store: KeyValueStore, key: str, value: Any) -> None:
    """
    Encode and write one key as a whole.

    Raises:
        StorageWriteError: If the store fails.
    """
    payload = json.dumps(value, indent=2, ensure_ascii=False)
    try:
        store.set(key, payload)
    except OSError as e:
        logger.exception("Error saving %s", key)
        raise StorageWriteError(key, str(e)) from e


def remove_key(store: KeyValueStore, key: str) -> None:
    try:
        store.remove(key)
    except OSError as e:
        logger.exception("Error removing %s", key)
        raise StorageWriteError(key, str(e)) from e
