"""
Pooled resources.

``ResourceFactory`` is the create / validate / destroy contract a pool
uses; specialize it per resource kind (database connection, client
session, ...). ``ResourcePool`` hands resources out to coroutines and
takes them back.
"""

from __future__ import annotations

import asyncio
from collections import deque
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Generic, TypeVar

from ..exceptions import ResourceError

T = TypeVar("T")


class ResourceFactory(Generic[T]):
    """Default factory: creates empty dicts, accepts everything."""

    async def create(self) -> T:
        return {}  # type: ignore[return-value]

    async def destroy(self, resource: T) -> None:
        return None

    async def validate(self, resource: T) -> bool:
        return True


class ResourcePool(Generic[T]):
    """
    Bounded async pool.

    Idle resources are validated before being handed out; invalid ones
    are destroyed and replaced.

    Example:
        pool = ResourcePool(ConnectionFactory(dsn), max_size=5)
        async with pool.borrow() as conn:
            await conn.execute(...)
        await pool.drain()
    """

    def __init__(
        self,
        factory: ResourceFactory[T],
        max_size: int = 10,
        acquire_timeout: float | None = None,
    ) -> None:
        if max_size < 1:
            raise ValueError("max_size must be at least 1")
        self._factory = factory
        self._max_size = max_size
        self._acquire_timeout = acquire_timeout
        self._idle: deque[T] = deque()
        self._size = 0
        self._closed = False
        self._cond = asyncio.Condition()

    @property
    def size(self) -> int:
        """Resources alive (idle and in use)."""
        return self._size

    @property
    def idle(self) -> int:
        return len(self._idle)

    @property
    def closed(self) -> bool:
        return self._closed

    async def _discard(self, resource: T) -> None:
        self._size -= 1
        await self._factory.destroy(resource)

    async def _take_idle(self) -> T | None:
        while self._idle:
            resource = self._idle.popleft()
            if await self._factory.validate(resource):
                return resource
            await self._discard(resource)
        return None

    async def acquire(self) -> T:
        """
        Get a resource, creating one while below ``max_size``.

        Raises:
            ResourceError: Pool closed, timed out, or creation failed
        """
        async with self._cond:
            while True:
                if self._closed:
                    raise ResourceError("Resource pool is closed")
                resource = await self._take_idle()
                if resource is not None:
                    return resource
                if self._size < self._max_size:
                    self._size += 1
                    break
                try:
                    await asyncio.wait_for(self._cond.wait(), self._acquire_timeout)
                except TimeoutError:
                    raise ResourceError(
                        "Timed out waiting for a resource",
                        timeout=self._acquire_timeout,
                    ) from None

        try:
            return await self._factory.create()
        except Exception as e:
            async with self._cond:
                self._size -= 1
                self._cond.notify()
            raise ResourceError("Failed to create resource", cause=e) from e

    async def release(self, resource: T) -> None:
        """Return a resource. After drain() it is destroyed instead."""
        async with self._cond:
            if self._closed:
                await self._discard(resource)
            else:
                self._idle.append(resource)
            self._cond.notify()

    @asynccontextmanager
    async def borrow(self) -> AsyncIterator[T]:
        resource = await self.acquire()
        try:
            yield resource
        finally:
            await self.release(resource)

    async def drain(self) -> None:
        """Close the pool and destroy idle resources."""
        async with self._cond:
            self._closed = True
            while self._idle:
                await self._discard(self._idle.popleft())
            self._cond.notify_all()


__all__ = ["ResourceFactory", "ResourcePool"]
