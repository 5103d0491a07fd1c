"""Demo: register a client and look it up through SqlClientStore.

Run with:
    python scripts/demo_client_store.py

Uses DATABASE_URL when set, otherwise a throwaway SQLite file.
"""

from __future__ import annotations

import asyncio
import dataclasses
import tempfile
from pathlib import Path

from clientstore.core.config import load_settings
from clientstore.core.logging import setup_logging
from clientstore.errors import ClientAlreadyExistsError, ClientNotFoundError
from clientstore.models.oauth_client import OAuthClient
from clientstore.repos.sql_client_store import SqlClientStore

DEMO_CLIENT = OAuthClient(
    client_id="demo-client",
    secret="demo-secret",
    domain="http://localhost/callback",
    is_public=False,
    user_id="42",
    metadata={"name": "Demo CLI"},
)


async def run(database_url: str) -> None:
    settings = dataclasses.replace(load_settings(), database_url=database_url)
    setup_logging(settings.log_level, json_format=settings.log_json)

    async with await SqlClientStore.from_settings(settings) as store:
        # ── Step 1: create ──────────────────────────────────────────
        await store.create(DEMO_CLIENT)
        print(f"1. create {DEMO_CLIENT.client_id!r:16} → ok  (table {store.table.name})")

        # ── Step 2: create again ────────────────────────────────────
        try:
            await store.create(DEMO_CLIENT)
        except ClientAlreadyExistsError:
            print(f"2. create {DEMO_CLIENT.client_id!r:16} → rejected (duplicate)")

        # ── Step 3: look up ─────────────────────────────────────────
        found = await store.get_by_id(DEMO_CLIENT.client_id)
        print(f"3. get    {DEMO_CLIENT.client_id!r:16} → domain={found.domain} public={found.is_public}")

        # ── Step 4: unknown and empty ids ───────────────────────────
        try:
            await store.get_by_id("missing")
        except ClientNotFoundError as exc:
            print(f"4. get    {'missing'!r:16} → {exc}")
        print(f"5. get    {'':16} → {await store.get_by_id('')}")


def main() -> None:
    settings = load_settings()
    if settings.database_url:
        asyncio.run(run(settings.database_url))
        return
    with tempfile.TemporaryDirectory() as tmp:
        asyncio.run(run(f"sqlite+aiosqlite:///{Path(tmp) / 'clients.db'}"))


if __name__ == "__main__":
    main()
