"""Secure Session exceptions.

Messages never carry key material, only operation names and sizes.
"""


class SessionError(Exception):
    """Base class for all session errors."""


class ConfigurationError(SessionError):
    """A required capability is missing or the settings are invalid."""


class DecryptionError(SessionError):
    """A stored blob is malformed, tampered or was sealed with another key."""


class SerializationError(SessionError):
    """A payload could not be converted to or from bytes."""


class BackendError(SessionError):
    """The session backend could not read or write a record."""


class InvalidSessionIdError(SessionError, ValueError):
    """A session id cannot be used safely by a backend."""
