import time
from enum import Enum
from typing import Optional, Any
from collections.abc import Iterator, Mapping, MutableMapping
from .conf import DEFAULT_NAMESPACE
from .namespace import NamespacedAccessor


class SessionStatus(str, Enum):
    """How a session payload was obtained from the backend."""
    NEW = 'new'  # no stored record
    LOADED = 'loaded'
    UNREADABLE = 'unreadable'  # record discarded: decrypt or decode failure


class SessionData(MutableMapping[str, Any]):
    """Session dict-like object.

    Explicit handle on the decrypted payload of one session. The payload
    dict is the live tree: accessors returned by ``namespace()`` are bound
    into it by reference, and it is the object written back on save.
    """

    def __init__(
        self,
        session_id: str,
        data: Optional[Mapping[str, Any]] = None,
        status: SessionStatus = SessionStatus.NEW,
        namespace: str = DEFAULT_NAMESPACE
    ) -> None:
        self._id_ = session_id
        self._data: dict = data if isinstance(data, dict) else dict(data or {})
        self._status = status
        self._namespace = namespace
        self._created = int(time.time())

    def __repr__(self) -> str:
        return (
            f'<Session [{self._status.value}, created:{self._created}] '
            f'keys={list(self._data.keys())}>'
        )

    # --- Properties ---

    @property
    def session_id(self) -> str:
        return self._id_

    @property
    def status(self) -> SessionStatus:
        return self._status

    @property
    def new(self) -> bool:
        return self._status is not SessionStatus.LOADED

    @property
    def unreadable(self) -> bool:
        return self._status is SessionStatus.UNREADABLE

    @property
    def created(self) -> int:
        return self._created

    @property
    def empty(self) -> bool:
        # emptied namespace containers do not count as data
        return all(
            isinstance(v, MutableMapping) and not v for v in self._data.values()
        )

    def session_data(self) -> dict:
        """Return the payload (for persistence)."""
        return self._data

    def namespace(self, name: Optional[str] = None) -> NamespacedAccessor:
        """Return an accessor bound to a namespace of this payload."""
        return NamespacedAccessor(self._data, name or self._namespace)

    def invalidate(self) -> None:
        """Clear the payload in place; bound accessors see it empty.

        Namespace containers are kept (emptied) so accessors bound to them
        stay attached to the payload and later writes are persisted.
        """
        for key in list(self._data):
            value = self._data[key]
            if isinstance(value, MutableMapping):
                value.clear()
            else:
                del self._data[key]

    # --- Magic Methods ---

    def __len__(self) -> int:
        return len(self._data)

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __getitem__(self, key: str) -> Any:
        return self._data[key]

    def __setitem__(self, key: str, value: Any) -> None:
        self._data[key] = value

    def __delitem__(self, key: str) -> None:
        del self._data[key]
