"""Fixed-interval readiness polling for newly registered Shopify files.

The poller is an explicit state machine:

    registered -> polling -> ready
                          -> exhausted

Each attempt waits one interval and then queries the file. It stops on the
first observation carrying a URL, when the attempt budget is spent, or when
the optional cancel signal is set (checked before every attempt). A file
reported FAILED can never become ready and raises immediately.
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Awaitable, Callable

from asset_publisher.errors import RemoteProtocolError
from asset_publisher.publisher.models import FileStatus, PollConfig, RemoteFile

logger = logging.getLogger(__name__)

FetchFile = Callable[[str], Awaitable[RemoteFile]]
Sleep = Callable[[float], Awaitable[None]]


class PollState(str, Enum):
    REGISTERED = "registered"
    POLLING = "polling"
    READY = "ready"
    EXHAUSTED = "exhausted"


class ReadinessPoller:
    """Poll one file id until it has a resolvable URL."""

    def __init__(
        self,
        fetch: FetchFile,
        config: PollConfig,
        sleep: Sleep = asyncio.sleep,
        cancel: asyncio.Event | None = None,
    ):
        self._fetch = fetch
        self._config = config
        self._sleep = sleep
        self._cancel = cancel
        self.state = PollState.REGISTERED
        self.attempts_made = 0
        self.last_seen: RemoteFile | None = None

    @property
    def done(self) -> bool:
        return self.state in (PollState.READY, PollState.EXHAUSTED)

    def _cancelled(self) -> bool:
        return self._cancel is not None and self._cancel.is_set()

    async def step(self, file_id: str) -> PollState:
        """Advance by one attempt and return the new state."""
        if self.done:
            return self.state
        if self.attempts_made >= self._config.attempts or self._cancelled():
            self.state = PollState.EXHAUSTED
            return self.state

        self.state = PollState.POLLING
        await self._sleep(self._config.interval)
        self.attempts_made += 1
        observed = await self._fetch(file_id)
        self.last_seen = observed

        if observed.ready:
            self.state = PollState.READY
        elif observed.status is FileStatus.FAILED:
            raise RemoteProtocolError(
                "fileStatus",
                f"File {file_id} failed processing: {'; '.join(observed.errors) or 'no detail'}",
                detail=list(observed.errors),
            )
        logger.debug(
            "Poll %d/%d for %s: status=%s ready=%s",
            self.attempts_made,
            self._config.attempts,
            file_id,
            observed.status.value if observed.status else None,
            observed.ready,
        )
        return self.state

    async def run(self, file_id: str) -> RemoteFile | None:
        """Poll until ready or exhausted. Returns the ready file or None."""
        while not self.done:
            await self.step(file_id)
        if self.state is PollState.READY:
            return self.last_seen
        logger.warning(
            "Readiness polling exhausted for %s after %d attempts", file_id, self.attempts_made
        )
        return None
