"""
Shared pytest fixtures for NSP mirror tests.

This module provides reusable fixtures that simplify test setup
and reduce code duplication across test modules:
- a temporary DuckDB database
- fake HTTP responses and transports serving canned advisory pages
- sample advisory payloads
"""
import sys
import tempfile
from pathlib import Path

import pytest

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from storage import Database


class FakeResponse:
    """Stand-in for requests.Response."""

    def __init__(self, status_code=200, payload=None):
        self.status_code = status_code
        self._payload = payload

    def json(self):
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload


class FakeTransport:
    """
    Serves queued responses in order and records every request.

    Items in ``responses`` are FakeResponse objects or exceptions to raise.
    """

    def __init__(self, responses):
        self.responses = list(responses)
        self.requests = []
        self.closed = False

    def get(self, url, params=None, headers=None, cancellation=None):
        self.requests.append({"url": url, "params": params, "headers": headers})
        if cancellation is not None:
            cancellation.raise_if_cancelled()
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    def close(self):
        self.closed = True

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


class FakeTransportFactory:
    """Returns a prepared FakeTransport and remembers the proxy it was given."""

    def __init__(self, transport):
        self.transport = transport
        self.proxy_infos = []

    def build(self, proxy_info):
        self.proxy_infos.append(proxy_info)
        return self.transport


def make_advisory(advisory_id, **overrides):
    """Raw advisory JSON as served by the feed."""
    advisory = {
        "id": advisory_id,
        "title": f"Advisory {advisory_id}",
        "module_name": "example-module",
        "overview": "Example overview",
        "created_at": "2017-01-10T18:35:11.000Z",
        "publish_date": "2017-01-12T00:00:00.000Z",
        "updated_at": "2017-02-01T10:00:00.000+02:00",
        "cvss_vector": "CVSS:3.0/AV:N/AC:L/PR:N/UI:N/S:U/C:H/I:H/A:H",
        "author": "Jane Researcher",
        "recommendation": "Upgrade to 1.2.3 or later",
        "references": "https://example.com/advisory",
        "vulnerable_versions": "<1.2.3",
        "patched_versions": ">=1.2.3",
    }
    advisory.update(overrides)
    return advisory


def make_page(offset, count, total, start_id=None):
    """Advisory list response with ``count`` advisories starting at ``offset``."""
    first = offset + 1 if start_id is None else start_id
    return {
        "results": [make_advisory(first + i) for i in range(count)],
        "offset": offset,
        "count": count,
        "total": total,
    }


@pytest.fixture
def temp_db():
    """
    Create a temporary database for testing.

    Yields:
        Database instance with schema initialized

    Cleanup:
        Automatically closes connection and removes file after test
    """
    with tempfile.NamedTemporaryFile(suffix=".duckdb", delete=True) as f:
        db_path = f.name

    db = Database(db_path)
    db.initialize_schema()
    yield db
    db.close()

    # Cleanup
    Path(db_path).unlink(missing_ok=True)
    Path(db_path + ".wal").unlink(missing_ok=True)


@pytest.fixture
def paged_responses():
    """Three pages totalling 120 advisories."""
    return [
        FakeResponse(payload=make_page(0, 50, 120)),
        FakeResponse(payload=make_page(50, 50, 120)),
        FakeResponse(payload=make_page(100, 20, 120)),
    ]
