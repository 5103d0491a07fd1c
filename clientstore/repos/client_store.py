from __future__ import annotations

import logging
from typing import Protocol

from clientstore.errors import (
    ClientAlreadyExistsError,
    ClientNotFoundError,
    SerializationError,
)
from clientstore.models.oauth_client import ClientInfo, OAuthClient, parse_user_id

logger = logging.getLogger(__name__)


class ClientStore(Protocol):
    """Client lookup/creation as called by an OAuth2 authorization server."""

    async def get_by_id(
        self, client_id: str, *, timeout: float | None = None
    ) -> OAuthClient | None: ...

    async def create(
        self, client: ClientInfo, *, timeout: float | None = None
    ) -> None: ...


def encode_client(client: ClientInfo) -> str:
    try:
        return client.to_json()
    except (TypeError, ValueError) as exc:
        raise SerializationError(
            f"cannot encode client {client.client_id!r}: {exc}"
        ) from exc


def decode_client(client_id: str, data: str) -> OAuthClient:
    try:
        return OAuthClient.from_json(data)
    except ValueError as exc:
        raise SerializationError(
            f"cannot decode stored client {client_id!r}: {exc}"
        ) from exc


def owner_id(client: ClientInfo) -> int:
    """Integer owner for the user_id column; 0 when the string doesn't parse.

    An empty user_id means "no owner" and is recorded as 0 silently.
    """
    value = parse_user_id(client.user_id)
    if value is None:
        if not client.user_id:
            return 0
        logger.warning(
            "Unparseable user_id, recording owner as 0",
            extra={"client_id": client.client_id},
        )
        return 0
    return value


class InMemoryClientStore:
    """Dict-backed store with the same contract as SqlClientStore.

    Clients are kept as encoded JSON, so lookups return fresh decoded
    objects exactly as the relational store does.
    """

    def __init__(self) -> None:
        self._data_by_client_id: dict[str, str] = {}
        self._owner_by_client_id: dict[str, int] = {}

    async def get_by_id(
        self, client_id: str, *, timeout: float | None = None
    ) -> OAuthClient | None:
        if not client_id:
            return None
        data = self._data_by_client_id.get(client_id)
        if data is None:
            raise ClientNotFoundError(client_id)
        return decode_client(client_id, data)

    async def create(
        self, client: ClientInfo, *, timeout: float | None = None
    ) -> None:
        data = encode_client(client)
        if client.client_id in self._data_by_client_id:
            raise ClientAlreadyExistsError(client.client_id)
        self._data_by_client_id[client.client_id] = data
        self._owner_by_client_id[client.client_id] = owner_id(client)

    def owner_of(self, client_id: str) -> int | None:
        return self._owner_by_client_id.get(client_id)
