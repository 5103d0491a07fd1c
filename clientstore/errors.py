"""Errors raised by client stores.

The underlying database or decoder exception is always chained as
__cause__, so callers that need the driver's own error can reach it.
"""

from __future__ import annotations


class ClientStoreError(Exception):
    pass


class ConfigurationError(ClientStoreError):
    """The store could not be built: engine, connection or table creation failed."""


class NotFoundError(ClientStoreError):
    pass


class ClientNotFoundError(NotFoundError):
    def __init__(self, client_id: str) -> None:
        super().__init__(f"client not found: {client_id!r}")
        self.client_id = client_id


class SerializationError(ClientStoreError):
    """A client could not be encoded to, or decoded from, its stored JSON."""


class StorageError(ClientStoreError):
    pass


class ClientAlreadyExistsError(StorageError):
    def __init__(self, client_id: str) -> None:
        super().__init__(f"client already exists: {client_id!r}")
        self.client_id = client_id


class DeadlineExceededError(StorageError):
    pass
