"""Unit tests for stream channels and deferred metadata."""

import asyncio

import pytest

from llm_factory.streaming import ByteChannel, Channel, ChannelClosed, Deferred


class TestChannel:
    """Test suite for the ordered chunk channel."""

    @pytest.mark.asyncio
    async def test_items_arrive_in_order(self):
        channel = Channel()
        for item in ["a", "b", "c"]:
            await channel.send(item)
        channel.close()

        assert [item async for item in channel] == ["a", "b", "c"]
        assert channel.items_sent == 3

    @pytest.mark.asyncio
    async def test_send_after_close_raises(self):
        channel = Channel()
        channel.close()

        with pytest.raises(ChannelClosed):
            await channel.send("late")

    @pytest.mark.asyncio
    async def test_close_is_idempotent(self):
        channel = Channel()
        await channel.send("a")
        channel.close()
        channel.close()

        assert [item async for item in channel] == ["a"]

    @pytest.mark.asyncio
    async def test_fail_delivers_buffered_items_then_error(self):
        channel = Channel()
        await channel.send("a")
        channel.fail(RuntimeError("broken"))

        assert await channel.receive() == "a"
        with pytest.raises(RuntimeError, match="broken"):
            await channel.receive()
        # Every later read sees the same terminal error
        with pytest.raises(RuntimeError, match="broken"):
            await channel.receive()

    @pytest.mark.asyncio
    async def test_bounded_channel_suspends_producer(self):
        channel = Channel(maxsize=1)
        await channel.send("a")

        blocked = asyncio.create_task(channel.send("b"))
        await asyncio.sleep(0.01)
        assert not blocked.done()

        assert await channel.receive() == "a"
        await asyncio.wait_for(blocked, timeout=1)
        assert await channel.receive() == "b"

    @pytest.mark.asyncio
    async def test_cancel_stops_producer_and_closes(self):
        channel = Channel()

        async def produce():
            while True:
                await channel.send("tick")
                await asyncio.sleep(0.01)

        producer = asyncio.create_task(produce())
        channel.attach_producer(producer)
        assert await channel.receive() == "tick"

        await channel.cancel()

        assert producer.cancelled()
        assert channel.closed

    @pytest.mark.asyncio
    async def test_waiting_consumer_is_released_on_close(self):
        channel = Channel()
        reader = asyncio.create_task(channel.receive())
        await asyncio.sleep(0)

        channel.close()

        with pytest.raises(ChannelClosed):
            await asyncio.wait_for(reader, timeout=1)


class TestByteChannel:
    """Test suite for the byte channel."""

    @pytest.mark.asyncio
    async def test_text_is_utf8_encoded(self):
        channel = ByteChannel()
        await channel.write("héllo ")
        await channel.write(b"world")
        channel.close()

        assert await channel.read() == "héllo ".encode("utf-8")
        assert await channel.read() == b"world"
        assert await channel.read() == b""

    @pytest.mark.asyncio
    async def test_read_text(self):
        channel = ByteChannel()
        for chunk in ["one ", "two ", "three"]:
            await channel.write(chunk)
        channel.close()

        assert await channel.read_text() == "one two three"

    @pytest.mark.asyncio
    async def test_read_raises_channel_error(self):
        channel = ByteChannel()
        channel.fail(ValueError("upstream"))

        with pytest.raises(ValueError, match="upstream"):
            await channel.read()


class TestDeferred:
    """Test suite for deferred values."""

    @pytest.mark.asyncio
    async def test_waiters_receive_result(self):
        deferred = Deferred()
        waiters = [asyncio.create_task(deferred.wait()) for _ in range(3)]
        await asyncio.sleep(0)

        deferred.set_result(42)

        assert await asyncio.gather(*waiters) == [42, 42, 42]

    @pytest.mark.asyncio
    async def test_first_resolution_wins(self):
        deferred = Deferred()
        deferred.set_exception(RuntimeError("first"))
        deferred.set_result("second")

        assert deferred.done()
        with pytest.raises(RuntimeError, match="first"):
            await deferred.wait()

    def test_can_be_created_without_running_loop(self):
        deferred = Deferred()
        assert not deferred.done()
