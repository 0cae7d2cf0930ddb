"""
Timer-driven pollers for the dashboard.

Both run as a single asyncio task and poll at a fixed interval. There is no
backoff; `max_attempts` is optional and unlimited by default, so a dataset
stuck in ``processing`` is polled until the poller is cancelled.
"""
import asyncio
import inspect
import logging
from typing import Awaitable, Callable, Optional, Union

import httpx

from visionm.client.api import VisionMClient, VisionMClientError

logger = logging.getLogger(__name__)

TERMINAL_DATASET_STATUSES = ("ready", "failed")

Callback = Callable[..., Union[None, Awaitable[None]]]


async def _call(callback: Optional[Callback], *args):
    if callback is None:
        return
    result = callback(*args)
    if inspect.isawaitable(result):
        await result


class DatasetStatusPoller:
    """Polls one dataset until it reaches ``ready`` or ``failed``.

    `on_terminal(status_payload)` runs once, after polling has stopped; the
    dataset list refresh hangs off it.
    """

    def __init__(
        self,
        client: VisionMClient,
        dataset_id: str,
        on_terminal: Optional[Callback] = None,
        interval: float = 3.0,
        max_attempts: Optional[int] = None,
    ):
        self.client = client
        self.dataset_id = dataset_id
        self.on_terminal = on_terminal
        self.interval = interval
        self.max_attempts = max_attempts
        self.attempts = 0
        self.last_status: Optional[dict] = None
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> asyncio.Task:
        if not self.running:
            self._task = asyncio.create_task(self.run())
        return self._task

    def cancel(self):
        if self._task is not None and not self._task.done():
            self._task.cancel()

    async def run(self) -> Optional[dict]:
        """Poll until terminal. Returns the terminal payload, or None if attempts ran out."""
        while self.max_attempts is None or self.attempts < self.max_attempts:
            self.attempts += 1
            try:
                payload = await self.client.dataset_status(self.dataset_id)
            except VisionMClientError as e:
                logger.warning(f"Dataset {self.dataset_id} status poll failed: {e.error}")
            except httpx.HTTPError as e:
                logger.warning(f"Dataset {self.dataset_id} status poll failed: {e}")
            else:
                self.last_status = payload
                if payload.get("status") in TERMINAL_DATASET_STATUSES:
                    await _call(self.on_terminal, payload)
                    return payload
            await asyncio.sleep(self.interval)

        logger.info(f"Dataset {self.dataset_id} poller gave up after {self.attempts} attempts")
        return None

    async def wait(self) -> Optional[dict]:
        return await self.start()


class JoinRequestPanel:
    """In-app list of open join requests addressed to the signed-in admin."""

    def __init__(
        self,
        client: VisionMClient,
        on_change: Optional[Callback] = None,
        interval: float = 10.0,
    ):
        self.client = client
        self.on_change = on_change
        self.interval = interval
        self.requests: list = []
        self._task: Optional[asyncio.Task] = None

    async def refresh(self) -> list:
        self.requests = await self.client.pending_requests()
        await _call(self.on_change, self.requests)
        return self.requests

    async def approve(self, token: str) -> dict:
        result = await self.client.approve_request(token)
        await self.refresh()
        return result

    async def reject(self, request_id: str) -> dict:
        result = await self.client.reject_request(request_id)
        await self.refresh()
        return result

    async def ignore(self, request_id: str) -> dict:
        result = await self.client.ignore_request(request_id)
        await self.refresh()
        return result

    async def _loop(self):
        while True:
            try:
                await self.refresh()
            except VisionMClientError as e:
                logger.warning(f"Pending requests refresh failed: {e.error}")
            except httpx.HTTPError as e:
                logger.warning(f"Pending requests refresh failed: {e}")
            await asyncio.sleep(self.interval)

    def start(self) -> asyncio.Task:
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self._loop())
        return self._task

    def stop(self):
        if self._task is not None and not self._task.done():
            self._task.cancel()
