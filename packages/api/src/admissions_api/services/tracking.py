# This project was developed with assistance from AI tools.
"""Tracking number generation.

Format: ``{prefix}{year}{day_of_year:03}{random:04}``, e.g. ``UNI20262920417``.
"""

import logging
import secrets
from datetime import datetime

from ..core.config import settings

logger = logging.getLogger(__name__)


class TrackingNumberExhaustedError(RuntimeError):
    """Every candidate tracking number collided with an existing one."""


def generate_tracking_number(now: datetime, *, prefix: str | None = None, suffix: int | None = None) -> str:
    if suffix is None:
        suffix = secrets.randbelow(10_000)
    prefix = settings.TRACKING_NUMBER_PREFIX if prefix is None else prefix
    return f"{prefix}{now.year}{now.timetuple().tm_yday:03d}{suffix:04d}"


async def allocate_tracking_number(repository, now: datetime, *, attempts: int | None = None) -> str:
    """Generate a tracking number not yet used by any application."""
    attempts = attempts or settings.TRACKING_NUMBER_ATTEMPTS
    for _ in range(attempts):
        candidate = generate_tracking_number(now)
        if not await repository.tracking_number_exists(candidate):
            return candidate
        logger.info("Tracking number collision on %s, retrying", candidate)
    raise TrackingNumberExhaustedError(f"No free tracking number after {attempts} attempts")
