# This project was developed with assistance from AI tools.
"""Tests for tracking number generation."""

from unittest.mock import AsyncMock

import pytest

from admissions_api.services.tracking import (
    TrackingNumberExhaustedError,
    allocate_tracking_number,
    generate_tracking_number,
)

from .factories import NOW


def test_format():
    assert generate_tracking_number(NOW, prefix="UNI", suffix=417) == "UNI20262920417"


def test_default_prefix_and_random_suffix():
    number = generate_tracking_number(NOW)
    assert number.startswith("UNI2026292")
    assert len(number) == 14
    assert number[-4:].isdigit()


@pytest.mark.asyncio
async def test_allocate_retries_on_collision():
    repo = AsyncMock()
    repo.tracking_number_exists = AsyncMock(side_effect=[True, True, False])

    number = await allocate_tracking_number(repo, NOW, attempts=5)

    assert number.startswith("UNI2026292")
    assert repo.tracking_number_exists.await_count == 3


@pytest.mark.asyncio
async def test_allocate_gives_up():
    repo = AsyncMock()
    repo.tracking_number_exists = AsyncMock(return_value=True)

    with pytest.raises(TrackingNumberExhaustedError):
        await allocate_tracking_number(repo, NOW, attempts=3)
    assert repo.tracking_number_exists.await_count == 3
