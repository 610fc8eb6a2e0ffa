"""Request/response channel between the wizard UI and the controller.

The UI side calls SetupClient methods; the controller registers one handler
per request name on a WizardChannel. Arguments and results are deep-copied
across the boundary so neither side can mutate the other's state. Progress
travels the other way on a latest-value ProgressStream.
"""

import asyncio
import copy
import logging
from collections.abc import AsyncIterator
from typing import Any, Awaitable, Callable

from onboarding.session import CompleteRequest, Defaults, DownloadResult, ProgressEvent

logger = logging.getLogger(__name__)

GET_DEFAULTS = "setup:get-defaults"
PICK_DIRECTORY = "setup:pick-directory"
SET_PASSWORD = "setup:set-password"
SET_INTEGRATION = "setup:set-integration"
DOWNLOAD_BROWSER = "setup:download-browser"
COMPLETE = "setup:complete"

BROWSER_PROGRESS = "setup:browser-progress"

REQUESTS = (
    GET_DEFAULTS,
    PICK_DIRECTORY,
    SET_PASSWORD,
    SET_INTEGRATION,
    DOWNLOAD_BROWSER,
    COMPLETE,
)

Handler = Callable[..., Awaitable[Any]]


class ProtocolError(Exception):
    """Base class for channel failures seen by the caller."""


class ChannelClosedError(ProtocolError):
    """No handler is registered for the request (wizard finished or closed)."""


class RemoteError(ProtocolError):
    """The handler raised; carries its human-readable message."""


class ProgressStream:
    """Latest-value event stream.

    publish() never blocks and keeps only the newest event. Each listener
    wakes with whatever is newest since its last wake; intermediate events
    may be skipped and nothing published before a listener started is
    replayed to it.
    """

    def __init__(self) -> None:
        self._latest: ProgressEvent | None = None
        self._seq = 0
        self._closed = False
        self._wakers: set[asyncio.Event] = set()

    @property
    def latest(self) -> ProgressEvent | None:
        return self._latest

    def publish(self, event: ProgressEvent) -> None:
        if self._closed:
            return
        self._latest = event
        self._seq += 1
        for waker in self._wakers:
            waker.set()

    def close(self) -> None:
        """End all listeners. Later publishes are dropped."""
        self._closed = True
        for waker in self._wakers:
            waker.set()

    def listen(self) -> AsyncIterator[ProgressEvent]:
        """Iterate events published after this call."""
        return self._follow(self._seq)

    async def _follow(self, seen: int) -> AsyncIterator[ProgressEvent]:
        waker = asyncio.Event()
        self._wakers.add(waker)
        try:
            while True:
                if self._seq == seen:
                    if self._closed:
                        return
                    await waker.wait()
                    waker.clear()
                    continue
                seen = self._seq
                if self._latest is not None:
                    yield self._latest
        finally:
            self._wakers.discard(waker)


class WizardChannel:
    """Handler registry plus the progress event stream."""

    def __init__(self) -> None:
        self._handlers: dict[str, Handler] = {}
        self.progress = ProgressStream()

    def handle(self, name: str, handler: Handler) -> None:
        if name in self._handlers:
            raise ValueError(f"Handler already registered for {name!r}")
        self._handlers[name] = handler

    def remove_handler(self, name: str) -> None:
        """Unregister name. No-op if absent."""
        self._handlers.pop(name, None)

    def has_handler(self, name: str) -> bool:
        return name in self._handlers

    async def invoke(self, name: str, *args: Any) -> Any:
        """Call the handler for name with copies of args; return a copy of its result."""
        handler = self._handlers.get(name)
        if handler is None:
            raise ChannelClosedError(f"No handler registered for {name!r}")
        try:
            result = await handler(*copy.deepcopy(args))
        except ProtocolError:
            raise
        except Exception as e:
            logger.warning("Handler %s failed: %s", name, e)
            raise RemoteError(str(e) or type(e).__name__) from e
        return copy.deepcopy(result)

    def send(self, name: str, event: ProgressEvent) -> None:
        """Emit an event toward the UI. Only browser progress exists."""
        if name != BROWSER_PROGRESS:
            raise ValueError(f"Unknown event {name!r}")
        self.progress.publish(event)


class SetupClient:
    """UI-side facade: one coroutine per request name."""

    def __init__(self, channel: WizardChannel) -> None:
        self._channel = channel

    async def get_defaults(self) -> Defaults:
        return await self._channel.invoke(GET_DEFAULTS)

    async def pick_directory(self) -> str | None:
        return await self._channel.invoke(PICK_DIRECTORY)

    async def set_password(self, password: str) -> bool:
        return await self._channel.invoke(SET_PASSWORD, password)

    async def set_integration(self, webhook_url: str) -> bool:
        return await self._channel.invoke(SET_INTEGRATION, webhook_url)

    async def download_browser(self) -> DownloadResult:
        return await self._channel.invoke(DOWNLOAD_BROWSER)

    async def complete(self, request: CompleteRequest) -> None:
        await self._channel.invoke(COMPLETE, request)

    def progress(self) -> AsyncIterator[ProgressEvent]:
        """Async iterator over browser progress events from now on."""
        return self._channel.progress.listen()
