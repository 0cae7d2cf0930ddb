"""
Session hydration for the dashboard.

Profile loading must never leave the UI waiting forever, so the fetch runs
under a primary timeout and is raced against a separate safety-net timer. The
first of (fetch, primary timeout, safety net) to finish decides the outcome.
"""
import asyncio
import logging
from typing import Optional

import httpx

from visionm.client.api import VisionMClient, VisionMClientError

logger = logging.getLogger(__name__)

PRIMARY_TIMEOUT = 8.0
SAFETY_NET_TIMEOUT = 10.0


class ProfileResolver:
    def __init__(
        self,
        client: VisionMClient,
        primary_timeout: float = PRIMARY_TIMEOUT,
        safety_net_timeout: float = SAFETY_NET_TIMEOUT,
    ):
        self.client = client
        self.primary_timeout = primary_timeout
        self.safety_net_timeout = safety_net_timeout
        self.session: Optional[dict] = None
        self.error: Optional[str] = None

    async def _fetch(self) -> dict:
        return await asyncio.wait_for(self.client.get_profile(), timeout=self.primary_timeout)

    async def hydrate(self) -> Optional[dict]:
        """Load `{profile, company, is_admin}`. Returns None on failure or timeout."""
        fetch = asyncio.ensure_future(self._fetch())
        safety_net = asyncio.ensure_future(asyncio.sleep(self.safety_net_timeout))
        try:
            done, _ = await asyncio.wait({fetch, safety_net}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for task in (fetch, safety_net):
                if not task.done():
                    task.cancel()

        if fetch not in done:
            logger.warning("Profile hydration hit the safety-net timeout")
            self.error = "timeout"
            return None

        try:
            self.session = fetch.result()
        except asyncio.TimeoutError:
            logger.warning("Profile hydration timed out")
            self.error = "timeout"
            return None
        except (VisionMClientError, httpx.HTTPError) as e:
            logger.error(f"Profile hydration failed: {e}")
            self.error = str(e)
            return None

        self.error = None
        return self.session

    @property
    def is_admin(self) -> bool:
        return bool(self.session and self.session.get("is_admin"))
