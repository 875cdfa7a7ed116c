"""
NamespacedAccessor — dotted-path view over a subtree of a session payload.

The accessor owns no data: it keeps a reference to a caller-owned mapping
(usually ``payload[namespace]``) and every operation mutates that mapping
in place, so accessors bound to the same namespace see each other's writes.

Paths are ``"a.b.c"`` strings (or tuples of segments); a non-negative
integer segment indexes into a list. Reads never raise on a broken path,
writes overwrite whatever is in the way.
"""
import logging
from typing import Any, Optional, Union
from contextlib import contextmanager
from collections.abc import Iterator, Mapping, MutableMapping

from .conf import DEFAULT_NAMESPACE

logger = logging.getLogger("navigator.session")

Path = Union[str, tuple[str, ...]]

_MISSING = object()


def split_path(path: Path) -> list[str]:
    if isinstance(path, str):
        return path.split(".")
    if isinstance(path, tuple):
        return [str(segment) for segment in path]
    return [str(path)]


def _index(segment: str) -> Optional[int]:
    return int(segment) if segment.isdecimal() else None


def _child(node: Any, segment: str) -> Any:
    """Return node[segment], or _MISSING when it cannot be reached."""
    if isinstance(node, Mapping):
        return node.get(segment, _MISSING)
    if isinstance(node, list):
        idx = _index(segment)
        if idx is not None and idx < len(node):
            return node[idx]
    return _MISSING


def _writable(node: Any, segment: str) -> bool:
    if isinstance(node, MutableMapping):
        return True
    if isinstance(node, list):
        idx = _index(segment)
        return idx is not None and idx <= len(node)
    return False


def _assign(node: Any, segment: str, value: Any) -> None:
    # node is always writable for segment here
    if isinstance(node, MutableMapping):
        node[segment] = value
        return
    idx = _index(segment)
    if idx == len(node):
        node.append(value)
    else:
        node[idx] = value


def resolve(root: Mapping, segments: list[str]) -> Any:
    node = root
    for segment in segments:
        node = _child(node, segment)
        if node is _MISSING:
            break
    return node


def _parent_for_write(root: MutableMapping, segments: list[str]) -> Any:
    """Walk to the parent of the last segment, creating mappings on the way."""
    node = root
    for segment, following in zip(segments, segments[1:]):
        child = _child(node, segment)
        if not _writable(child, following):
            child = {}
            _assign(node, segment, child)
        node = child
    return node


class NamespacedAccessor(MutableMapping[str, Any]):
    """Nested key-value view bound by reference to a session namespace.

    Args:
        payload: the session payload, created empty when None.
        namespace: top-level key of the subtree to bind; ``None`` binds
            the accessor to the payload itself.
    """

    def __init__(
        self,
        payload: Optional[MutableMapping] = None,
        namespace: Optional[str] = DEFAULT_NAMESPACE
    ) -> None:
        self._payload: MutableMapping = payload if payload is not None else {}
        self._data: MutableMapping = self._payload
        self._namespace: Optional[str] = None
        if namespace is not None:
            self.set_namespace(namespace)

    def __repr__(self) -> str:
        return f'<NamespacedAccessor [namespace:{self._namespace}] data={self._data!r}>'

    # --- Binding ---

    @property
    def namespace(self) -> Optional[str]:
        return self._namespace

    @property
    def payload(self) -> MutableMapping:
        return self._payload

    def bind(self, ref: MutableMapping, label: Optional[str] = None) -> None:
        """Rebind the accessor to another mapping, by reference."""
        if not isinstance(ref, MutableMapping):
            raise TypeError(
                f"Cannot bind accessor to {type(ref).__name__}, a mapping is required"
            )
        self._data = ref
        self._namespace = label

    def _namespace_ref(self, namespace: str) -> MutableMapping:
        node = self._payload.get(namespace)
        if not isinstance(node, MutableMapping):
            node = {}
            self._payload[namespace] = node
            logger.debug("Session namespace created: %s", namespace)
        return node

    def set_namespace(self, namespace: str) -> None:
        self.bind(self._namespace_ref(namespace), namespace)

    @contextmanager
    def use(self, namespace: str) -> Iterator["NamespacedAccessor"]:
        """Temporarily bind to another namespace.

        The previous binding is restored on exit, also when the body raises.
        Not safe for concurrent use of the same accessor instance.
        """
        previous = (self._data, self._namespace)
        self.bind(self._namespace_ref(namespace), namespace)
        try:
            yield self
        finally:
            self._data, self._namespace = previous

    def alias(self, namespace: str, target: str) -> None:
        """Make ``namespace`` share the subtree of ``target``."""
        ref = self._namespace_ref(target)
        self._payload[namespace] = ref
        if self._namespace == namespace:
            self._data = ref

    # --- Dotted-path operations ---

    def get(self, path: Optional[Path] = None, default: Any = None) -> Any:
        """Return the value at path, or the whole bound subtree if path is None.

        Missing or non-traversable paths return ``default``.
        """
        if path is None:
            return self._data
        value = resolve(self._data, split_path(path))
        return default if value is _MISSING else value

    def set(self, path: Path, value: Any) -> None:
        """Set the value at path, creating intermediate mappings."""
        segments = split_path(path)
        parent = _parent_for_write(self._data, segments)
        _assign(parent, segments[-1], value)

    def merge(self, values: Mapping[str, Any]) -> None:
        """Shallow-merge values into the top level of the bound subtree."""
        self._data.update(values)

    def add(self, path: Path, value: Any) -> None:
        """Append to the list at path; set the value if it is not a list."""
        node = resolve(self._data, split_path(path))
        if isinstance(node, list):
            node.append(value)
        else:
            self.set(path, value)

    def has(self, path: Path) -> bool:
        return resolve(self._data, split_path(path)) is not _MISSING

    def delete(self, path: Union[Path, list[Path]]) -> None:
        """Delete one path or a list of paths; missing paths are ignored."""
        if isinstance(path, list):
            for p in path:
                self.delete(p)
            return
        segments = split_path(path)
        parent = resolve(self._data, segments[:-1])
        leaf = segments[-1]
        if isinstance(parent, MutableMapping):
            parent.pop(leaf, None)
        elif isinstance(parent, list):
            idx = _index(leaf)
            if idx is not None and idx < len(parent):
                del parent[idx]

    def clear(self, path: Optional[Path] = None, reset: bool = False) -> None:
        """Empty the bound subtree, or remove the subtree at path.

        With ``reset`` the subtree at path is replaced by an empty mapping
        instead of being removed.
        """
        if path is None:
            self._data.clear()
        elif reset:
            self.set(path, {})
        else:
            self.delete(path)

    # --- Namespace-scoped variants ---

    def set_to(self, namespace: str, path: Path, value: Any) -> None:
        with self.use(namespace):
            self.set(path, value)

    def merge_into(self, namespace: str, values: Mapping[str, Any]) -> None:
        with self.use(namespace):
            self.merge(values)

    def get_from(self, namespace: str, path: Optional[Path] = None, default: Any = None) -> Any:
        with self.use(namespace):
            return self.get(path, default)

    def has_in(self, namespace: str, path: Path) -> bool:
        with self.use(namespace):
            return self.has(path)

    def delete_from(self, namespace: str, path: Union[Path, list[Path]]) -> None:
        with self.use(namespace):
            self.delete(path)

    def clear_from(self, namespace: str, path: Optional[Path] = None, reset: bool = False) -> None:
        with self.use(namespace):
            self.clear(path, reset=reset)

    # --- Magic Methods ---

    def __getitem__(self, path: Path) -> Any:
        value = resolve(self._data, split_path(path))
        if value is _MISSING:
            raise KeyError(path)
        return value

    def __setitem__(self, path: Path, value: Any) -> None:
        self.set(path, value)

    def __delitem__(self, path: Path) -> None:
        if not self.has(path):
            raise KeyError(path)
        self.delete(path)

    def __contains__(self, path: object) -> bool:
        return self.has(path)  # type: ignore[arg-type]

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)
