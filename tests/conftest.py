from __future__ import annotations

import sys
from pathlib import Path
from typing import Any

import pytest
from prometheus_client import REGISTRY

from clientstore.models.oauth_client import OAuthClient

# Ensure repo root is on sys.path so `import clientstore` works under pytest.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


@pytest.fixture
def sqlite_url(tmp_path: Path) -> str:
    """Async SQLite database in a per-test file (file DBs get a real queue pool)."""
    return f"sqlite+aiosqlite:///{tmp_path / 'clients.db'}"


def make_client(**overrides: Any) -> OAuthClient:
    fields: dict[str, Any] = {
        "client_id": "abc",
        "secret": "s3cr3t",
        "domain": "https://example.com",
        "is_public": False,
        "user_id": "42",
    }
    fields.update(overrides)
    return OAuthClient(**fields)


def get_sample(name: str, labels: dict[str, str] | None = None) -> float:
    """Read a metric sample's current value from the global registry.

    Counters can't be reset between tests, so assert on deltas.
    """
    value = REGISTRY.get_sample_value(name, labels=labels or {})
    return value if value is not None else 0.0
