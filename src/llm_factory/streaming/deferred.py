"""Deferred values resolved once a stream has finished."""

import asyncio
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class Deferred(Generic[T]):
    """A write-once result that any number of coroutines can await.

    Unlike ``asyncio.Future`` it can be created outside a running event loop,
    which lets synchronous ``generate_stream`` calls hand one out.
    """

    def __init__(self):
        self._event = asyncio.Event()
        self._result: Optional[T] = None
        self._error: Optional[BaseException] = None

    def done(self) -> bool:
        return self._event.is_set()

    def set_result(self, value: T) -> None:
        if self.done():
            return
        self._result = value
        self._event.set()

    def set_exception(self, error: BaseException) -> None:
        if self.done():
            return
        self._error = error
        self._event.set()

    async def wait(self) -> T:
        await self._event.wait()
        if self._error is not None:
            raise self._error
        return self._result  # type: ignore[return-value]
