from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from urllib.parse import urlparse


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int = 1
    backoff_seconds: float = 0.5

    def delay(self, attempt: int) -> float:
        """Backoff before the next try, doubling from backoff_seconds (attempt is 0-based)."""
        return self.backoff_seconds * (2 ** attempt)


@dataclass(frozen=True)
class WatchConfig:
    webhook_url: str
    root: Path
    interval: int = 10
    username: str | None = None
    upload_timeout: float = 30.0
    retry: RetryPolicy = field(default_factory=RetryPolicy)


class ConfigError(ValueError):
    pass


def _check_webhook(url: str | None) -> str:
    if not isinstance(url, str) or not url.strip():
        raise ConfigError("You must specify a --webhook URL.")
    url = url.strip()
    parsed = urlparse(url)
    if parsed.scheme not in {"http", "https"} or not parsed.netloc:
        raise ConfigError(f"Webhook URL must be an http(s) URL, got '{url}'.")
    return url


def _check_root(path: Path) -> Path:
    if not path.exists():
        raise ConfigError(f"Directory not found: {path}")
    if not path.is_dir():
        raise ConfigError(f"{path} is not a directory")
    return path


def build_config(
    webhook_url: str | None,
    root: Path | str = ".",
    interval: int = 10,
    username: str | None = None,
    retries: int = 0,
    upload_timeout: float = 30.0,
) -> WatchConfig:
    """
    Validate raw option values and build an immutable WatchConfig.

    Raises:
        ConfigError: if any value is missing or out of range
    """
    url = _check_webhook(webhook_url)
    root_path = _check_root(Path(root))

    if interval < 1:
        raise ConfigError(f"Watch interval must be at least 1 second, got {interval}.")
    if retries < 0:
        raise ConfigError(f"Retries must not be negative, got {retries}.")
    if upload_timeout <= 0:
        raise ConfigError("Upload timeout must be positive.")

    if username is not None:
        username = username.strip() or None

    return WatchConfig(
        webhook_url=url,
        root=root_path,
        interval=interval,
        username=username,
        upload_timeout=upload_timeout,
        retry=RetryPolicy(max_attempts=retries + 1),
    )
