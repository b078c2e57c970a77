"""Exceptions raised by the pharmafield library.

Pages catch PharmaFieldError around button handlers and show it with st.error.
"""


class PharmaFieldError(Exception):
    pass


class ConfigError(PharmaFieldError):
    pass


class StorageError(PharmaFieldError):
    """A persisted array could not be written."""


class SchemaVersionError(StorageError):
    """A stored envelope was written by a newer version of the app."""


class RecordNotFoundError(PharmaFieldError):
    pass


class InvalidStatusError(PharmaFieldError):
    pass


class ValidationError(PharmaFieldError):
    pass
