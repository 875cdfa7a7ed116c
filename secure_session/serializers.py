"""
Payload serializers — converting a session payload tree to bytes and back.

- ``json``: orjson, ``bytes`` values wrapped as base64 for a safe round-trip.
- ``pickle``: jsonpickle, keeps datetimes and data models (datamodel/pydantic).
"""
import base64
import binascii
from typing import Any

import orjson
import jsonpickle
from jsonpickle.unpickler import loadclass
from datamodel import BaseModel
from pydantic import BaseModel as PydanticBaseModel

from .exceptions import ConfigurationError, SerializationError

_BYTES_WRAPPER_KEY = "__session_bytes_b64__"
_ESCAPED_KEY = "__session_escaped__"
_RESERVED_KEYS = frozenset({_BYTES_WRAPPER_KEY, _ESCAPED_KEY})


class ModelHandler(jsonpickle.handlers.BaseHandler):
    """ModelHandler.
    Flattens Data Models (datamodel and pydantic) through their __dict__.
    """
    def flatten(self, obj, data):
        data['__dict__'] = self.context.flatten(obj.__dict__, reset=False)
        return data

    def restore(self, obj):
        module_and_type = obj['py/object']
        mdl = loadclass(module_and_type)
        cls = mdl.__new__(mdl) if hasattr(mdl, '__new__') else object.__new__(mdl)
        cls.__dict__ = self.context.restore(obj['__dict__'], reset=False)
        return cls


jsonpickle.handlers.registry.register(BaseModel, ModelHandler, base=True)
jsonpickle.handlers.registry.register(PydanticBaseModel, ModelHandler, base=True)


def _wrap_bytes(value: Any) -> Any:
    if isinstance(value, bytes):
        return {_BYTES_WRAPPER_KEY: base64.b64encode(value).decode("ascii")}
    if isinstance(value, dict):
        wrapped = {k: _wrap_bytes(v) for k, v in value.items()}
        if _RESERVED_KEYS.intersection(value):
            # user data holding a marker key is escaped, not interpreted
            return {_ESCAPED_KEY: wrapped}
        return wrapped
    if isinstance(value, (list, tuple)):
        return [_wrap_bytes(v) for v in value]
    return value


def _unwrap_bytes(value: Any) -> Any:
    if isinstance(value, dict):
        if len(value) == 1 and _BYTES_WRAPPER_KEY in value:
            encoded = value[_BYTES_WRAPPER_KEY]
            try:
                return base64.b64decode(encoded, validate=True)
            except (binascii.Error, ValueError, TypeError) as err:
                raise SerializationError("Invalid bytes value in session payload") from err
        if len(value) == 1 and isinstance(value.get(_ESCAPED_KEY), dict):
            return {k: _unwrap_bytes(v) for k, v in value[_ESCAPED_KEY].items()}
        return {k: _unwrap_bytes(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_unwrap_bytes(v) for v in value]
    return value


class BaseSerializer:
    """Converts a payload mapping to bytes and back."""
    name: str = ''

    def dumps(self, payload: dict) -> bytes:
        raise NotImplementedError

    def loads(self, data: bytes) -> dict:
        raise NotImplementedError

    def _check(self, payload: Any) -> dict:
        if not isinstance(payload, dict):
            raise SerializationError(
                f"Session payload must be a mapping, got {type(payload).__name__}"
            )
        return payload


class JSONSerializer(BaseSerializer):
    name = 'json'

    def dumps(self, payload: dict) -> bytes:
        try:
            return orjson.dumps(_wrap_bytes(payload))
        except TypeError as err:
            raise SerializationError(f"Cannot serialize session payload: {err}") from err

    def loads(self, data: bytes) -> dict:
        try:
            parsed = orjson.loads(data)
        except orjson.JSONDecodeError as err:
            raise SerializationError("Cannot decode session payload") from err
        return self._check(_unwrap_bytes(parsed))


class PickleSerializer(BaseSerializer):
    name = 'pickle'

    def dumps(self, payload: dict) -> bytes:
        try:
            return jsonpickle.encode(payload).encode("utf-8")
        except Exception as err:
            raise SerializationError(f"Cannot serialize session payload: {err}") from err

    def loads(self, data: bytes) -> dict:
        try:
            parsed = jsonpickle.decode(data.decode("utf-8"))
        except Exception as err:
            raise SerializationError("Cannot decode session payload") from err
        return self._check(parsed)


SERIALIZERS = {
    JSONSerializer.name: JSONSerializer,
    PickleSerializer.name: PickleSerializer,
}


def get_serializer(name: str) -> BaseSerializer:
    try:
        return SERIALIZERS[name.lower()]()
    except KeyError:
        raise ConfigurationError(f"Unsupported serializer: {name}") from None
