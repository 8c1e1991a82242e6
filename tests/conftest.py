"""Shared fixtures for the dau test suite.

Scanner and watcher tests control modification times explicitly with
os.utime rather than sleeping, so eligibility never depends on the clock.
"""
import json
import os
from pathlib import Path
from unittest.mock import Mock

import pytest

from dau.config import RetryPolicy, WatchConfig


@pytest.fixture
def make_file(tmp_path: Path):
    """Create a file under tmp_path with the given mtime."""
    def _make(name: str, mtime: float, content: bytes = b"\x89PNG fake") -> Path:
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)
        os.utime(path, (mtime, mtime))
        return path
    return _make


@pytest.fixture
def config(tmp_path: Path) -> WatchConfig:
    return WatchConfig(
        webhook_url="https://example.com/api/webhooks/1/abc",
        root=tmp_path,
        interval=1,
    )


@pytest.fixture
def retrying_config(tmp_path: Path) -> WatchConfig:
    return WatchConfig(
        webhook_url="https://example.com/api/webhooks/1/abc",
        root=tmp_path,
        interval=1,
        retry=RetryPolicy(max_attempts=3, backoff_seconds=0.5),
    )


def _fake_response(status_code: int = 200, payload: object = None, body: bytes | None = None) -> Mock:
    if body is None:
        body = json.dumps(payload if payload is not None else {}).encode("utf-8")
    return Mock(status_code=status_code, content=body)


@pytest.fixture
def ok_payload() -> dict:
    return {
        "id": "123",
        "attachments": [
            {
                "url": "http://x/a.png",
                "proxy_url": "http://proxy/a.png",
                "size": 2048,
                "width": 10,
                "height": 20,
                "filename": "a.png",
            }
        ],
    }


@pytest.fixture
def fake_response():
    """Factory for Mock objects shaped like a requests.Response."""
    return _fake_response
