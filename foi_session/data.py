import logging
from typing import Any, Optional
from datetime import datetime, timezone
from collections.abc import Iterator, MutableMapping
import jsonpickle
from pydantic import BaseModel as PydanticBaseModel
from .conf import LOGGER_NAME

logger = logging.getLogger(LOGGER_NAME)


class ScratchSession(MutableMapping[str, Any]):
    """Session-scoped transient storage.

    Holds two kinds of state, both wiped by a panic clear:

    * transient values: serializable data kept jsonpickle-encoded, the
      way a browser keeps ``sessionStorage`` strings.
    * scratch objects: in-memory working objects (canvases, previews,
      temporary buffers) that are never encoded. On ``clear()`` each one
      gets a best-effort ``remove()`` or ``close()`` call.
    """

    def __init__(self, data: Optional[dict[str, Any]] = None) -> None:
        self._data: dict[str, str] = {}
        self._objects: dict[str, Any] = {}
        self._created = datetime.now(timezone.utc)
        if data:
            for key, value in data.items():
                self[key] = value

    def __repr__(self) -> str:
        return (
            f'<FOI-Scratch [created:{self._created.isoformat()}] '
            f'values={list(self._data.keys())}, objects={list(self._objects.keys())}>'
        )

    # --- Serialization helpers ---

    def _is_serializable(self, value: Any) -> bool:
        """Check if a value can be reliably encoded and restored with jsonpickle.

        Anything else is treated as a scratch object.
        """
        if value is None or isinstance(value, (bool, int, float, str, bytes)):
            return True
        if isinstance(value, dict):
            return all(self._is_serializable(v) for v in value.values())
        if isinstance(value, (list, tuple, set, frozenset)):
            return all(self._is_serializable(v) for v in value)
        if isinstance(value, (PydanticBaseModel, datetime)):
            return True
        return False

    def encode(self, obj: Any) -> str:
        """encode

            Encode an object using jsonpickle.
        Raises:
            RuntimeError: Error converting data to json.
        """
        try:
            return jsonpickle.encode(obj)
        except Exception as err:
            raise RuntimeError(err) from err

    def decode(self, value: str) -> Any:
        try:
            return jsonpickle.decode(value)
        except Exception as err:
            raise RuntimeError(err) from err

    # --- Properties ---

    @property
    def created(self) -> datetime:
        return self._created

    @property
    def empty(self) -> bool:
        return not self._data and not self._objects

    def session_values(self) -> dict[str, str]:
        """Return the encoded transient values."""
        return self._data

    def scratch_objects(self) -> dict[str, Any]:
        return self._objects

    def clear(self) -> int:
        """Wipe every transient value and scratch object.

        Returns:
            Number of items removed.
        """
        removed = len(self._data) + len(self._objects)
        objects, self._objects = self._objects, {}
        self._data = {}
        for key, obj in objects.items():
            self._dispose(key, obj)
        return removed

    def _dispose(self, key: str, obj: Any) -> None:
        for name in ('remove', 'close'):
            release = getattr(obj, name, None)
            if callable(release):
                try:
                    release()
                except Exception as err:
                    logger.warning(
                        "Failed to release scratch object %s: %s", key, err,
                    )
                return

    # --- Magic Methods ---

    def __len__(self) -> int:
        return len(self._data) + len(self._objects)

    def __iter__(self) -> Iterator[str]:
        yield from self._data
        yield from (k for k in self._objects if k not in self._data)

    def __contains__(self, key: object) -> bool:
        return key in self._data or key in self._objects

    def __getitem__(self, key: str) -> Any:
        if key in self._objects:
            return self._objects[key]
        if key in self._data:
            return self.decode(self._data[key])
        raise KeyError(key)

    def __setitem__(self, key: str, value: Any) -> None:
        if self._is_serializable(value):
            self._objects.pop(key, None)
            self._data[key] = self.encode(value)
        else:
            self._data.pop(key, None)
            self._objects[key] = value

    def __delitem__(self, key: str) -> None:
        deleted = False
        if key in self._objects:
            self._dispose(key, self._objects.pop(key))
            deleted = True
        if key in self._data:
            del self._data[key]
            deleted = True
        if not deleted:
            raise KeyError(key)
