"""Startup check for a newer release."""
from __future__ import annotations

import logging
import re

import requests
from pydantic import BaseModel, ValidationError

log = logging.getLogger(__name__)

RELEASES_URL = "https://api.github.com/repos/tardisx/discord-auto-upload/releases/latest"

_VERSION_RE = re.compile(r"^v?(\d+(?:\.\d+)*)$")


class Release(BaseModel):
    tag_name: str
    html_url: str | None = None
    name: str | None = None
    body: str | None = None


def parse_version(version: str) -> tuple[int, ...]:
    """
    Parse a dotted numeric version ("0.5", "v0.10.1") into a comparable tuple.

    Trailing zero components are dropped so "1.0" == "1".

    Raises:
        ValueError: if the string is not a dotted numeric version
    """
    match = _VERSION_RE.match(version.strip())
    if not match:
        raise ValueError(f"Not a dotted numeric version: {version!r}")
    parts = [int(p) for p in match.group(1).split(".")]
    while len(parts) > 1 and parts[-1] == 0:
        parts.pop()
    return tuple(parts)


def is_newer(candidate: str, current: str) -> bool:
    return parse_version(candidate) > parse_version(current)


def check_for_update(
    current_version: str,
    url: str = RELEASES_URL,
    timeout: float = 5,
    session: requests.Session | None = None,
) -> Release | None:
    """
    Look up the latest release.

    Returns:
        The release if it is newer than current_version, else None.
        Failures are logged and treated as "no update".
    """
    getter = session.get if session is not None else requests.get

    try:
        resp = getter(url, timeout=timeout)
        resp.raise_for_status()
        latest = Release.model_validate_json(resp.content)
    except requests.RequestException as e:
        log.warning(f"could not check for updates: {e}")
        return None
    except ValidationError as e:
        log.warning(f"could not parse update response: {e.error_count()} validation error(s)")
        return None

    try:
        newer = is_newer(latest.tag_name, current_version)
    except ValueError as e:
        log.warning(f"could not compare versions: {e}")
        return None

    return latest if newer else None


def format_update_notice(current_version: str, release: Release) -> str:
    lines = [
        f"You are currently on version {current_version}, but version {release.tag_name} is available",
        "----------- Release Info -----------",
        release.body or "",
        "------------------------------------",
    ]
    if release.html_url:
        lines.append(release.html_url)
    return "\n".join(lines)
