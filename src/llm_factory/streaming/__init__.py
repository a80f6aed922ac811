"""Streaming primitives shared by providers and the orchestrator."""

from .callbacks import ChunkCallback, CompleteCallback, ErrorCallback, invoke_callback
from .channel import ByteChannel, Channel, ChannelClosed
from .deferred import Deferred
from .handles import ByteStreamWithMetadata, StreamWithMetadata

__all__ = [
    "ByteChannel",
    "ByteStreamWithMetadata",
    "Channel",
    "ChannelClosed",
    "ChunkCallback",
    "CompleteCallback",
    "Deferred",
    "ErrorCallback",
    "StreamWithMetadata",
    "invoke_callback",
]
