"""
Unit tests for first_success race
"""
import asyncio

import pytest

from openbeats.utils.race import RaceExhaustedError, first_success


def delayed(value, delay: float, log: list = None, error: Exception = None):
    async def attempt():
        try:
            await asyncio.sleep(delay)
        except asyncio.CancelledError:
            if log is not None:
                log.append(("cancelled", value))
            raise
        if log is not None:
            log.append(("finished", value))
        if error is not None:
            raise error
        return value

    return attempt


@pytest.mark.asyncio
class TestFirstSuccess:
    """Test race semantics"""

    async def test_fastest_success_wins(self):
        label, result = await first_success({"a": delayed("A", 0.01), "b": delayed("B", 0.05)})

        assert (label, result) == ("a", "A")

    async def test_failures_are_skipped(self):
        label, result = await first_success(
            {"bad": delayed("X", 0.0, error=ValueError("nope")), "good": delayed("G", 0.02)}
        )

        assert (label, result) == ("good", "G")

    async def test_losers_are_cancelled_before_returning(self):
        log = []

        await first_success({"a": delayed("A", 0.01, log), "b": delayed("B", 0.5, log)})

        assert ("cancelled", "B") in log
        # Nothing from the loser can happen after the race returns
        await asyncio.sleep(0.6)
        assert ("finished", "B") not in log

    async def test_all_failures_raise_with_every_error(self):
        with pytest.raises(RaceExhaustedError) as exc_info:
            await first_success(
                {
                    "a": delayed("A", 0.0, error=ValueError("a")),
                    "b": delayed("B", 0.01, error=KeyError("b")),
                }
            )

        errors = exc_info.value.errors
        assert set(errors) == {"a", "b"}
        assert isinstance(errors["a"], ValueError)
        assert isinstance(errors["b"], KeyError)

    async def test_timeout_counts_as_failure(self):
        with pytest.raises(RaceExhaustedError) as exc_info:
            await first_success({"slow": delayed("S", 1.0)}, timeout=0.02)

        assert isinstance(exc_info.value.errors["slow"], asyncio.TimeoutError)

    async def test_timeout_only_fails_slow_attempts(self):
        label, _ = await first_success({"slow": delayed("S", 1.0), "fast": delayed("F", 0.01)}, timeout=0.1)

        assert label == "fast"

    async def test_empty_race_is_exhausted(self):
        with pytest.raises(RaceExhaustedError):
            await first_success({})
