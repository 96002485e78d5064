"""Polling helpers that wait for the PTP daemon to rewrite the leap records."""

from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from typing import Callable, Mapping, Union

from ptp_leap.errors import WaitTimeoutError

logger = logging.getLogger(__name__)

_MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")

Marker = Union[str, Callable[[], str]]


def today_marker(now: datetime | None = None) -> str:
    """Render the UTC date the way leap announcements do, e.g. ``2 Jan 2006``."""
    now = now or datetime.now(timezone.utc)
    now = now.astimezone(timezone.utc) if now.tzinfo else now
    return f"{now.day} {_MONTHS[now.month - 1]} {now.year}"


def wait_until_updated(
    fetch: Callable[[], Mapping[str, str]],
    marker: Marker,
    interval: float,
    timeout: float,
    *,
    clock: Callable[[], float] = time.monotonic,
    sleep: Callable[[float], None] = time.sleep,
) -> Mapping[str, str]:
    """Poll ``fetch`` until any record contains ``marker``.

    ``fetch`` is called immediately and then every ``interval`` seconds. When
    ``marker`` is callable it is re-evaluated on each poll, so a wait spanning
    midnight UTC looks for the new day. Errors raised by ``fetch`` are logged
    and the next poll is attempted.

    Returns:
        The first fetched mapping in which some value contains the marker.

    Raises:
        WaitTimeoutError: when ``timeout`` elapses without a match.
    """
    deadline = clock() + timeout
    attempts = 0

    while True:
        attempts += 1
        current = marker() if callable(marker) else marker
        try:
            records = fetch()
        except Exception as exc:
            logger.debug("poll %d: fetch failed, retrying: %s", attempts, exc)
        else:
            for key, value in records.items():
                if current in value:
                    logger.info("poll %d: %r found in record %s", attempts, current, key)
                    return records

        if clock() >= deadline:
            raise WaitTimeoutError(
                f"no record contained {current!r} after {attempts} polls in {timeout}s"
            )
        sleep(interval)
