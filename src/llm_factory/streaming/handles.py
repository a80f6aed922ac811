"""Stream handles returned by the streaming generation modes."""

from dataclasses import dataclass
from typing import AsyncIterator, Awaitable, Callable

from ..schemas import UsageMetadata
from .channel import ByteChannel


@dataclass
class StreamWithMetadata:
    """Text chunks plus an accessor for metadata resolved after the stream ends."""

    stream: AsyncIterator[str]
    get_metadata: Callable[[], Awaitable[UsageMetadata]]

    def __aiter__(self) -> AsyncIterator[str]:
        return self.stream.__aiter__()

    async def aclose(self) -> None:
        aclose = getattr(self.stream, "aclose", None)
        if aclose is not None:
            await aclose()


@dataclass
class ByteStreamWithMetadata:
    """Byte channel plus an accessor for metadata resolved after the channel closes."""

    channel: ByteChannel
    get_metadata: Callable[[], Awaitable[UsageMetadata]]

    async def cancel(self) -> None:
        await self.channel.cancel()
