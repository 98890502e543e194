"""Watch sessions over cluster event streams."""

from __future__ import annotations

import asyncio
import threading
from abc import ABC, abstractmethod
from typing import Any

import urllib3.exceptions
from kubernetes import watch as k8s_watch
from kubernetes.client.rest import ApiException
from kubernetes.watch.watch import iter_resp_lines

from budharness.cluster.schemas import WatchEvent
from budharness.commons.exceptions import ResourceOperationError
from budharness.commons.observability import get_logger


logger = get_logger(__name__)

# Seconds close() waits for an in-flight read to end after the socket is shut down.
CLOSE_TIMEOUT_SECONDS = 5


class WatchSession(ABC):
    """An open event subscription.

    Iterate it with ``async for``; iteration stops when the server ends the
    stream. ``close`` must be safe to call more than once.
    """

    @abstractmethod
    async def next_event(self) -> WatchEvent | None:
        """Return the next event, or None once the stream has ended."""

    @abstractmethod
    async def close(self) -> None:
        """Release the subscription."""

    def __aiter__(self) -> WatchSession:
        return self

    async def __anext__(self) -> WatchEvent:
        event = await self.next_event()
        if event is None:
            raise StopAsyncIteration
        return event

    async def __aenter__(self) -> WatchSession:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()


class KubernetesWatchSession(WatchSession):
    """Session over a raw Kubernetes watch response.

    ``response`` is the urllib3 response of a list call made with
    ``watch=True`` and ``_preload_content=False``. Lines are read on a worker
    thread and decoded with ``kubernetes.watch.Watch.unmarshal_event``.
    Closing while a read is in flight shuts the socket down so the read ends
    at once, and ``close`` returns only after the response is released.
    """

    def __init__(self, response: Any, description: str = "") -> None:
        self._response = response
        self._lines = iter_resp_lines(response)
        self._watcher = k8s_watch.Watch()
        self._description = description
        self._lock = threading.Lock()
        self._idle = threading.Event()
        self._idle.set()
        self._reading = False
        self._closed = False
        self._released = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def released(self) -> bool:
        return self._released

    async def next_event(self) -> WatchEvent | None:
        if self._closed:
            return None
        try:
            raw = await asyncio.to_thread(self._read)
        except ApiException as e:
            raise ResourceOperationError(
                f"Watch {self._description} failed: {e.reason}", status=e.status
            ) from e
        except urllib3.exceptions.HTTPError as e:
            raise ResourceOperationError(f"Watch {self._description} failed: {e}") from e
        if raw is None:
            return None
        return WatchEvent.from_raw(raw)

    def _read(self) -> dict[str, Any] | None:
        with self._lock:
            if self._closed:
                return None
            self._reading = True
            self._idle.clear()
        try:
            for line in self._lines:
                raw = self._watcher.unmarshal_event(line, None)
                if not isinstance(raw, dict):
                    continue
                if raw.get("type") == "ERROR":
                    status = raw.get("raw_object") or {}
                    raise ApiException(
                        status=status.get("code"),
                        reason=f"{status.get('reason')}: {status.get('message')}",
                    )
                return raw
            return None
        except (urllib3.exceptions.HTTPError, OSError):
            if self._closed:
                logger.debug("Watch read ended by close", watch=self._description)
                return None
            raise
        finally:
            with self._lock:
                self._reading = False
                if self._closed:
                    self._release()
            self._idle.set()

    async def close(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
            reading = self._reading
            if reading:
                try:
                    self._response.shutdown()
                except (ValueError, RuntimeError, OSError) as e:
                    logger.debug("Watch shutdown failed", watch=self._description, error=str(e))
            else:
                self._release()
        if reading and not await asyncio.to_thread(self._idle.wait, CLOSE_TIMEOUT_SECONDS):
            logger.warning("Watch read still in flight after close", watch=self._description)
        logger.debug("Watch closed", watch=self._description)

    def _release(self) -> None:
        # Caller holds self._lock.
        if self._released:
            return
        self._released = True
        self._response.close()
        self._response.release_conn()
