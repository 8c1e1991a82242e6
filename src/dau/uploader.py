"""Upload image files to a webhook as multipart form posts."""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable

import requests
from pydantic import BaseModel, Field, ValidationError
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .config import WatchConfig

log = logging.getLogger(__name__)

RETRYABLE_STATUS = {429, 500, 502, 503, 504}


class Attachment(BaseModel):
    url: str
    proxy_url: str | None = None
    size: int = 0
    width: int | None = None
    height: int | None = None
    filename: str | None = None


class WebhookMessage(BaseModel):
    """Message object echoed back by the webhook after a successful post."""
    id: int  # transmitted as a string
    attachments: list[Attachment] = Field(default_factory=list)


@dataclass(frozen=True)
class UploadResult:
    message_id: int
    url: str
    width: int
    height: int
    size: int
    elapsed: float

    @property
    def rate(self) -> float:
        return transfer_rate(self.size, self.elapsed)


class UploadError(RuntimeError):
    def __init__(self, message: str, retryable: bool = False):
        super().__init__(message)
        self.retryable = retryable


class DeliveryOutcome(str, Enum):
    DELIVERED = "delivered"
    SKIPPED = "skipped"  # permanent, retrying will not help
    FAILED = "failed"    # transient, attempts exhausted


@dataclass
class DeliveryReport:
    path: Path
    outcome: DeliveryOutcome
    attempts: int
    result: UploadResult | None = None
    error: str | None = None


def transfer_rate(size: int, elapsed: float) -> float:
    """Transfer rate in KiB/s."""
    if elapsed <= 0:
        return 0.0
    return size / elapsed / 1024.0


def make_session() -> requests.Session:
    """Create session with connection pooling (no auto-retry - we handle that at app level)."""
    s = requests.Session()
    retry = Retry(total=0, backoff_factor=0)
    s.mount("http://", HTTPAdapter(max_retries=retry))
    s.mount("https://", HTTPAdapter(max_retries=retry))
    return s


def _parse_response(body: bytes) -> WebhookMessage:
    try:
        return WebhookMessage.model_validate_json(body)
    except ValidationError as e:
        log.debug(f"Response was: {body[:500]!r}")
        raise UploadError(f"could not parse JSON: {e.error_count()} validation error(s)") from e


def upload(
    config: WatchConfig,
    path: Path,
    session: requests.Session | None = None,
) -> UploadResult:
    """
    Upload a single file to the configured webhook.

    Args:
        config: watch configuration (webhook URL, username, timeout)
        path: file to upload
        session: optional requests session to reuse

    Returns:
        UploadResult describing the first attachment

    Raises:
        UploadError: on unreadable file, transport error, non-200 status,
            malformed response or empty attachment list
    """
    path = Path(path)
    log.info(f"Uploading {path}")

    data = {}
    if config.username:
        data["username"] = config.username

    poster = session.post if session is not None else requests.post

    try:
        with path.open("rb") as fh:
            start = time.monotonic()
            resp = poster(
                config.webhook_url,
                files={"file": (path.name, fh)},
                data=data,
                timeout=config.upload_timeout,
            )
            elapsed = time.monotonic() - start
    except requests.Timeout as e:
        raise UploadError(f"upload timed out after {config.upload_timeout}s", retryable=True) from e
    except requests.RequestException as e:
        raise UploadError(f"error performing request: {e}", retryable=True) from e
    except OSError as e:
        # RequestException is an OSError too, so this must come last
        raise UploadError(f"could not read {path}: {e}") from e

    if resp.status_code != 200:
        raise UploadError(
            f"bad response from server: {resp.status_code}",
            retryable=resp.status_code in RETRYABLE_STATUS,
        )

    message = _parse_response(resp.content)
    if not message.attachments:
        raise UploadError("bad response - no attachments?")

    a = message.attachments[0]
    result = UploadResult(
        message_id=message.id,
        url=a.url,
        width=a.width or 0,
        height=a.height or 0,
        size=a.size,
        elapsed=elapsed,
    )

    log.info(f"Uploaded to {result.url} {result.width}x{result.height}")
    log.info(
        f"id: {result.message_id}, {result.size} bytes transferred in "
        f"{result.elapsed:.2f} seconds ({result.rate:.2f} KiB/s)"
    )
    return result


def deliver(
    config: WatchConfig,
    path: Path,
    session: requests.Session | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> DeliveryReport:
    """
    Upload a file, applying the retry policy to transient failures.

    Does NOT raise for per-file problems; the outcome says what happened.
    """
    policy = config.retry
    path = Path(path)

    attempts = 0

    while True:
        attempts += 1
        try:
            result = upload(config, path, session=session)
            return DeliveryReport(path, DeliveryOutcome.DELIVERED, attempts, result=result)
        except UploadError as e:
            if not e.retryable:
                log.warning(f"Skipping {path}: {e}")
                return DeliveryReport(path, DeliveryOutcome.SKIPPED, attempts, error=str(e))

            if attempts >= policy.max_attempts:
                log.error(f"Upload of {path} failed after {attempts} attempt(s): {e}")
                return DeliveryReport(path, DeliveryOutcome.FAILED, attempts, error=str(e))

            backoff = policy.delay(attempts - 1)
            log.warning(
                f"Upload of {path} retry {attempts}/{policy.max_attempts - 1} "
                f"after {e}, backoff {backoff}s"
            )
            sleep(backoff)
