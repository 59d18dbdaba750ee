import logging
import os
from typing import Iterable, Optional

import httpx

from creatorscout.services.runner import BoundedTask, TaskOutcome, run_bounded

logger = logging.getLogger(__name__)


class AvatarService:
    """Fetch profile images once and cache them on disk as ``<key>.jpg``."""

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None, timeout: float = 30):
        self._transport = transport
        self.timeout = timeout

    @staticmethod
    def avatar_path(dest_dir: str, key: str) -> str:
        safe_key = key.replace("/", "_").replace("\\", "_")
        return os.path.join(dest_dir, f"{safe_key}.jpg")

    async def download_avatar(self, key: str, url: Optional[str], dest_dir: str) -> Optional[str]:
        """Download ``url`` into ``dest_dir``. Returns the path, or None when
        there was nothing to do (no URL, or already cached).

        Raises ``httpx.HTTPError`` on network errors and non-2xx responses.
        """
        if not url:
            return None
        dest = self.avatar_path(dest_dir, key)
        if os.path.exists(dest):
            return None

        async with httpx.AsyncClient(transport=self._transport, follow_redirects=True) as client:
            resp = await client.get(url, timeout=self.timeout)
            resp.raise_for_status()

        os.makedirs(dest_dir, exist_ok=True)
        # Only a complete file may appear under the cached name
        partial = dest + ".part"
        with open(partial, "wb") as fh:
            fh.write(resp.content)
        os.replace(partial, dest)
        logger.info("Downloaded avatar: %s", key)
        return dest

    async def download_avatars(
        self,
        avatars: Iterable[tuple[str, Optional[str]]],
        dest_dir: str,
        concurrency: int = 10,
    ) -> list[TaskOutcome]:
        """Download many ``(key, url)`` pairs through the bounded runner."""
        tasks = [
            BoundedTask(
                name=f"avatar:{key}",
                run=lambda key=key, url=url: self.download_avatar(key, url, dest_dir),
            )
            for key, url in avatars
        ]
        return await run_bounded(tasks, concurrency=concurrency)
