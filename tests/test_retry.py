"""Tests for the async retry decorator."""

from unittest.mock import AsyncMock, patch

import pytest

from skillsynx.retry import retry


class Flaky(Exception):
    pass


@pytest.mark.asyncio
async def test_success_first_try():
    fn = AsyncMock(return_value="ok")
    wrapped = retry(max_attempts=3, base_delay=0)(fn)
    assert await wrapped("x") == "ok"
    fn.assert_awaited_once_with("x")


@pytest.mark.asyncio
async def test_retries_then_succeeds():
    fn = AsyncMock(side_effect=[Flaky("1"), Flaky("2"), "ok"])
    fn.__qualname__ = "flaky"
    with patch("skillsynx.retry.asyncio.sleep", new=AsyncMock()) as sleep:
        result = await retry(max_attempts=3, base_delay=1.0, jitter=False, retryable=(Flaky,))(fn)()
    assert result == "ok"
    assert fn.await_count == 3
    assert [c.args[0] for c in sleep.await_args_list] == [1.0, 2.0]


@pytest.mark.asyncio
async def test_gives_up_after_max_attempts():
    fn = AsyncMock(side_effect=Flaky("down"))
    fn.__qualname__ = "flaky"
    with patch("skillsynx.retry.asyncio.sleep", new=AsyncMock()):
        with pytest.raises(Flaky, match="down"):
            await retry(max_attempts=2, base_delay=0, retryable=(Flaky,))(fn)()
    assert fn.await_count == 2


@pytest.mark.asyncio
async def test_single_attempt_never_sleeps():
    fn = AsyncMock(side_effect=Flaky("once"))
    fn.__qualname__ = "flaky"
    with patch("skillsynx.retry.asyncio.sleep", new=AsyncMock()) as sleep:
        with pytest.raises(Flaky):
            await retry(max_attempts=1, retryable=(Flaky,))(fn)()
    assert fn.await_count == 1
    sleep.assert_not_awaited()


@pytest.mark.asyncio
async def test_non_retryable_propagates_immediately():
    fn = AsyncMock(side_effect=KeyError("nope"))
    with pytest.raises(KeyError):
        await retry(max_attempts=5, base_delay=0, retryable=(Flaky,))(fn)()
    assert fn.await_count == 1


@pytest.mark.asyncio
async def test_delay_is_capped():
    fn = AsyncMock(side_effect=[Flaky(), Flaky(), Flaky(), "ok"])
    fn.__qualname__ = "flaky"
    with patch("skillsynx.retry.asyncio.sleep", new=AsyncMock()) as sleep:
        await retry(
            max_attempts=4, base_delay=10.0, max_delay=15.0, jitter=False, retryable=(Flaky,)
        )(fn)()
    assert [c.args[0] for c in sleep.await_args_list] == [10.0, 15.0, 15.0]
