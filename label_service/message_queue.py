import asyncio
from abc import ABC, abstractmethod
from typing import Generic, Optional, TypeVar

T = TypeVar('T')


class MessageQueue(ABC, Generic[T]):
    """Queue between the socket producer and the label consumer."""

    @abstractmethod
    async def put(self, item: T) -> None:
        pass

    @abstractmethod
    async def get(self, timeout: Optional[float] = None) -> T:
        """Wait for the next item; raise asyncio.TimeoutError once timeout seconds pass."""
        pass

    @abstractmethod
    def empty(self) -> bool:
        pass

    @abstractmethod
    async def join(self) -> None:
        pass

    @abstractmethod
    def task_done(self) -> None:
        pass


class AsyncQueue(MessageQueue[T]):
    def __init__(self, maxsize: int = 0):
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=maxsize)

    async def put(self, item: T) -> None:
        await self._queue.put(item)

    async def get(self, timeout: Optional[float] = None) -> T:
        if timeout is None:
            return await self._queue.get()
        return await asyncio.wait_for(self._queue.get(), timeout)

    def empty(self) -> bool:
        return self._queue.empty()

    async def join(self) -> None:
        await self._queue.join()

    def task_done(self) -> None:
        self._queue.task_done()
