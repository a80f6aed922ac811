"""Single-writer chunk channels with distinct producer and consumer ends."""

import asyncio
from typing import AsyncIterator, Generic, Optional, TypeVar, Union

T = TypeVar("T")

_EOF = object()


class ChannelClosed(Exception):
    """Raised when sending to, or receiving past the end of, a closed channel."""


class Channel(Generic[T]):
    """Ordered append-only channel.

    The producer end is ``send``/``close``/``fail``; the consumer end is
    ``receive`` or async iteration. Items are delivered in the order they were
    sent. With ``maxsize > 0`` the producer is suspended while that many items
    are waiting to be consumed.
    """

    def __init__(self, maxsize: int = 0):
        """
        Initialize channel.

        Args:
            maxsize: Maximum number of buffered items, 0 for unbounded
        """
        self.maxsize = maxsize
        self._queue: asyncio.Queue = asyncio.Queue()
        self._slots: Optional[asyncio.Semaphore] = (
            asyncio.Semaphore(maxsize) if maxsize > 0 else None
        )
        self._closed = False
        self._error: Optional[BaseException] = None
        self._producer: Optional[asyncio.Task] = None
        self.items_sent = 0

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def error(self) -> Optional[BaseException]:
        return self._error

    # Producer end

    async def send(self, item: T) -> None:
        if self._closed:
            raise ChannelClosed("cannot send to a closed channel")
        if self._slots is not None:
            await self._slots.acquire()
            if self._closed:
                self._slots.release()
                raise ChannelClosed("cannot send to a closed channel")
        self._queue.put_nowait(item)
        self.items_sent += 1

    def close(self) -> None:
        """Mark the end of the stream. Idempotent."""
        if self._closed:
            return
        self._closed = True
        self._queue.put_nowait(_EOF)

    def fail(self, error: BaseException) -> None:
        """Terminate the stream with an error that consumers will receive."""
        if self._closed:
            return
        self._error = error
        self._closed = True
        self._queue.put_nowait(_EOF)

    def attach_producer(self, task: asyncio.Task) -> None:
        self._producer = task

    async def cancel(self) -> None:
        """Stop the producer and close the channel without hanging consumers."""
        producer = self._producer
        if producer is not None and not producer.done():
            producer.cancel()
            try:
                await producer
            except asyncio.CancelledError:
                pass
        self.close()

    # Consumer end

    async def receive(self) -> T:
        item = await self._queue.get()
        if item is _EOF:
            # Keep the terminal marker for any other reader.
            self._queue.put_nowait(_EOF)
            if self._error is not None:
                raise self._error
            raise ChannelClosed("channel is closed")
        if self._slots is not None:
            self._slots.release()
        return item

    def __aiter__(self) -> AsyncIterator[T]:
        return self

    async def __anext__(self) -> T:
        try:
            return await self.receive()
        except ChannelClosed:
            raise StopAsyncIteration


class ByteChannel(Channel[bytes]):
    """Channel of UTF-8 encoded text chunks, read like a stream reader."""

    encoding = "utf-8"

    async def write(self, chunk: Union[str, bytes]) -> None:
        if isinstance(chunk, str):
            chunk = chunk.encode(self.encoding)
        await self.send(chunk)

    async def read(self) -> bytes:
        """Return the next chunk, or ``b""`` once the channel is closed."""
        try:
            return await self.receive()
        except ChannelClosed:
            return b""

    async def read_all(self) -> bytes:
        parts = []
        async for chunk in self:
            parts.append(chunk)
        return b"".join(parts)

    async def read_text(self) -> str:
        return (await self.read_all()).decode(self.encoding)
