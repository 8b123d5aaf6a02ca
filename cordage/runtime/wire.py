"""
Wire - bounded event channel between concurrent producers and one consumer.

Usage:
    wire = Wire(maxsize=2)
    task = asyncio.create_task(producer(wire))

    async for item in wire.read():
        ...

    await wire.close()
"""

import asyncio
from typing import Any, AsyncIterator


class Wire:
    """
    Event channel for concurrent producers.

    Wire is a simple wrapper around asyncio.Queue that provides:
    - write(): Put an item into the channel, waiting while it is full
    - read(): Async iterate over items until closed
    - close(): Signal that no more items will be written
    """

    # Sentinel value to signal end of stream
    _SENTINEL = object()

    def __init__(self, maxsize: int = 0):
        """
        Initialize Wire.

        Args:
            maxsize: Maximum queue size (0 = unlimited)
        """
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=maxsize)
        self._closed = False

    async def write(self, item: Any) -> None:
        """
        Write an item to the wire.

        Writes after close are ignored.
        """
        if self._closed:
            return
        await self._queue.put(item)

    async def close(self) -> None:
        """
        Close the wire, signaling no more items will be written.

        Readers drain whatever is queued and then stop.
        """
        if self._closed:
            return
        self._closed = True
        try:
            self._queue.put_nowait(self._SENTINEL)
        except asyncio.QueueFull:
            # Nobody is reading a full closed wire; drop the backlog.
            while not self._queue.empty():
                self._queue.get_nowait()
            self._queue.put_nowait(self._SENTINEL)

    async def read(self) -> AsyncIterator[Any]:
        """
        Read items from the wire until closed.

        Yields:
            Items in write order
        """
        while True:
            item = await self._queue.get()
            if item is self._SENTINEL:
                # Re-put sentinel for other readers (if any)
                self._queue.put_nowait(self._SENTINEL)
                break
            yield item

    @property
    def closed(self) -> bool:
        """Check if wire is closed."""
        return self._closed

    def __repr__(self) -> str:
        return f"Wire(closed={self._closed}, qsize={self._queue.qsize()})"


__all__ = ["Wire"]
