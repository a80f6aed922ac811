"""Callback types for push-based generation."""

import inspect
from typing import Any, Awaitable, Callable, Optional, Union

from ..schemas import GenerationResult

ChunkCallback = Callable[[str], Union[None, Awaitable[None]]]
CompleteCallback = Callable[[GenerationResult], Union[None, Awaitable[None]]]
ErrorCallback = Callable[[BaseException], Union[None, Awaitable[None]]]


async def invoke_callback(callback: Optional[Callable[..., Any]], *args: Any) -> None:
    """Call a sync or async callback, awaiting it when it returns an awaitable."""
    if callback is None:
        return
    result = callback(*args)
    if inspect.isawaitable(result):
        await result
