# tests/test_config.py
from pathlib import Path

import pytest

from dau.config import ConfigError, RetryPolicy, build_config


def test_build_config_defaults(tmp_path: Path):
    config = build_config("https://example.com/hook", root=tmp_path)

    assert config.webhook_url == "https://example.com/hook"
    assert config.root == tmp_path
    assert config.interval == 10
    assert config.username is None
    assert config.upload_timeout == 30.0
    assert config.retry.max_attempts == 1


def test_build_config_is_immutable(tmp_path: Path):
    config = build_config("https://example.com/hook", root=tmp_path)

    with pytest.raises(AttributeError):
        config.interval = 5


@pytest.mark.parametrize("url", [None, "", "   "])
def test_build_config_requires_webhook(tmp_path: Path, url):
    with pytest.raises(ConfigError, match="--webhook"):
        build_config(url, root=tmp_path)


def test_build_config_rejects_non_http_webhook(tmp_path: Path):
    with pytest.raises(ConfigError):
        build_config("ftp://example.com/hook", root=tmp_path)


def test_build_config_missing_directory(tmp_path: Path):
    with pytest.raises(ConfigError, match="not found"):
        build_config("https://example.com/hook", root=tmp_path / "nope")


def test_build_config_file_is_not_directory(tmp_path: Path):
    f = tmp_path / "file.png"
    f.write_bytes(b"x")

    with pytest.raises(ConfigError, match="not a directory"):
        build_config("https://example.com/hook", root=f)


def test_build_config_interval_must_be_positive(tmp_path: Path):
    with pytest.raises(ConfigError):
        build_config("https://example.com/hook", root=tmp_path, interval=0)


def test_build_config_blank_username_is_none(tmp_path: Path):
    config = build_config("https://example.com/hook", root=tmp_path, username="  ")
    assert config.username is None


def test_build_config_retries(tmp_path: Path):
    config = build_config("https://example.com/hook", root=tmp_path, retries=2)
    assert config.retry.max_attempts == 3

    with pytest.raises(ConfigError):
        build_config("https://example.com/hook", root=tmp_path, retries=-1)


def test_retry_policy_backoff_doubles():
    policy = RetryPolicy(max_attempts=4, backoff_seconds=0.5)
    assert [policy.delay(i) for i in range(3)] == [0.5, 1.0, 2.0]
