"""Polling watch loop: scan, upload inline, commit the mark, sleep."""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable

import requests

from .config import WatchConfig
from .scanner import scan
from .uploader import DeliveryOutcome, DeliveryReport, deliver, make_session

log = logging.getLogger(__name__)

DeliverFn = Callable[..., DeliveryReport]


@dataclass
class CycleReport:
    mark: float
    files_visited: int = 0
    delivered: int = 0
    skipped: int = 0
    failed: int = 0
    bytes_uploaded: int = 0
    duration: float = 0.0

    @property
    def processed(self) -> int:
        return self.delivered + self.skipped + self.failed

    def summary(self) -> str:
        return (
            f"{self.processed} file(s) processed in {self.duration:.2f}s: "
            f"{self.delivered} delivered, {self.skipped} skipped, {self.failed} failed, "
            f"{self.bytes_uploaded} bytes uploaded"
        )


def run_cycle(
    config: WatchConfig,
    mark: float,
    deliver_fn: DeliverFn = deliver,
    session: requests.Session | None = None,
) -> CycleReport:
    """
    Run one full traversal, uploading each eligible file before moving on.

    Args:
        config: watch configuration
        mark: high-water mark in effect at cycle start
        deliver_fn: per-file delivery, called as deliver_fn(config, path, session=session)
        session: requests session shared across uploads

    Returns:
        CycleReport whose mark is the new high-water mark

    Raises:
        ScanError: if the tree cannot be walked (the mark is not advanced)
    """
    started = time.monotonic()
    cycle = scan(config.root, mark)
    report = CycleReport(mark=mark)

    for path in cycle:
        delivery = deliver_fn(config, path, session=session)
        if delivery.outcome is DeliveryOutcome.DELIVERED:
            report.delivered += 1
            if delivery.result is not None:
                report.bytes_uploaded += delivery.result.size
        elif delivery.outcome is DeliveryOutcome.SKIPPED:
            report.skipped += 1
        else:
            report.failed += 1

    report.mark = cycle.high_water_mark
    report.files_visited = cycle.files_visited
    report.duration = time.monotonic() - started
    return report


def watch(
    config: WatchConfig,
    mark: float | None = None,
    max_cycles: int | None = None,
    deliver_fn: DeliverFn = deliver,
    sleep: Callable[[float], None] = time.sleep,
) -> float:
    """
    Watch config.root forever (or for max_cycles cycles).

    The mark defaults to the current time, so files already present at
    startup are never uploaded.

    Returns:
        The final high-water mark (only reached when max_cycles is set)
    """
    if mark is None:
        mark = time.time()

    session = make_session()
    cycles = 0

    log.info(f"Waiting for images to appear in {config.root}")
    try:
        while max_cycles is None or cycles < max_cycles:
            report = run_cycle(config, mark, deliver_fn=deliver_fn, session=session)
            mark = report.mark
            cycles += 1

            if report.processed:
                log.info(report.summary())
            else:
                log.debug(f"Cycle {cycles}: nothing new in {report.files_visited} file(s)")

            if max_cycles is not None and cycles >= max_cycles:
                break
            sleep(config.interval)
    finally:
        session.close()

    return mark
