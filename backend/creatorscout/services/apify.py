"""Apify API v2 client: start an actor run, poll it, read its dataset.

- POST /v2/acts/{actorId}/runs
- GET  /v2/actor-runs/{runId}
- GET  /v2/datasets/{datasetId}/items
"""
from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Optional
from urllib.parse import quote

import httpx

from creatorscout.config import get_settings

logger = logging.getLogger(__name__)

TERMINAL_STATUSES = ("SUCCEEDED", "FAILED", "TIMED-OUT", "ABORTED")


class ApifyError(Exception):
    """Raised when the Apify API returns an error or a run does not succeed."""

    def __init__(self, message: str, status_code: Optional[int] = None, body: Optional[str] = None):
        self.status_code = status_code
        self.body = body[:500] if body else None
        super().__init__(message)


class ApifyTimeoutError(ApifyError):
    pass


@dataclass
class RunInfo:
    run_id: str
    actor_id: str
    status: str
    dataset_id: Optional[str]

    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def is_success(self) -> bool:
        return self.status == "SUCCEEDED"

    @classmethod
    def from_response(cls, actor_id: str, payload: dict) -> "RunInfo":
        data = payload.get("data") or {}
        if not data.get("id"):
            raise ApifyError("Apify response has no run id")
        return cls(
            run_id=data["id"],
            actor_id=actor_id,
            status=data.get("status", "READY"),
            dataset_id=data.get("defaultDatasetId"),
        )


class ApifyService:
    def __init__(
        self,
        token: Optional[str] = None,
        base_url: Optional[str] = None,
        poll_interval: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        settings = get_settings()
        self.token = token if token is not None else settings.apify_token
        self.base_url = (base_url or settings.apify_base_url).rstrip("/")
        self.poll_interval = settings.apify_poll_interval if poll_interval is None else poll_interval
        self.headers = {
            "Authorization": f"Bearer {self.token}",
            "Content-Type": "application/json",
        }
        self._transport = transport

    def _is_configured(self) -> bool:
        return bool(self.token)

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(base_url=self.base_url, headers=self.headers, transport=self._transport)

    async def _request(self, client: httpx.AsyncClient, method: str, url: str, **kwargs) -> Any:
        try:
            resp = await client.request(method, url, timeout=30, **kwargs)
        except httpx.HTTPError as e:
            raise ApifyError(f"Request to Apify failed: {e}") from e
        if resp.is_error:
            raise ApifyError(
                f"Apify returned HTTP {resp.status_code} for {url}",
                status_code=resp.status_code,
                body=resp.text,
            )
        return resp.json()

    async def start_actor_run(self, client: httpx.AsyncClient, actor_id: str, run_input: dict) -> RunInfo:
        # Actor ids contain a slash ("apify/instagram-profile-scraper")
        url = f"/v2/acts/{quote(actor_id, safe='')}/runs"
        logger.info("Starting Apify actor %s", actor_id)
        payload = await self._request(client, "POST", url, json=run_input)
        return RunInfo.from_response(actor_id, payload)

    async def poll_run(self, client: httpx.AsyncClient, run: RunInfo, timeout_s: float) -> RunInfo:
        deadline = time.monotonic() + timeout_s
        while not run.is_terminal():
            if time.monotonic() >= deadline:
                raise ApifyTimeoutError(f"Apify run {run.run_id} ({run.actor_id}) did not finish in {timeout_s}s")
            await asyncio.sleep(self.poll_interval)
            payload = await self._request(client, "GET", f"/v2/actor-runs/{run.run_id}")
            run = RunInfo.from_response(run.actor_id, payload)
        return run

    async def fetch_dataset_items(self, client: httpx.AsyncClient, dataset_id: str) -> list[dict]:
        items = await self._request(
            client, "GET", f"/v2/datasets/{dataset_id}/items", params={"format": "json", "clean": "true"}
        )
        if not isinstance(items, list):
            raise ApifyError(f"Dataset {dataset_id} did not return a list")
        return [item for item in items if isinstance(item, dict)]

    async def run_actor(self, actor_id: str, run_input: dict, timeout_s: Optional[float] = None) -> list[dict]:
        """Run an actor to completion and return its dataset items."""
        if not self._is_configured():
            raise ApifyError("APIFY_TOKEN is not configured")
        if timeout_s is None:
            timeout_s = get_settings().apify_run_timeout

        async with self._client() as client:
            run = await self.start_actor_run(client, actor_id, run_input)
            run = await self.poll_run(client, run, timeout_s)
            if not run.is_success():
                raise ApifyError(f"Apify run {run.run_id} ({actor_id}) ended with status {run.status}")
            if not run.dataset_id:
                return []
            items = await self.fetch_dataset_items(client, run.dataset_id)

        logger.info("Apify actor %s returned %d items", actor_id, len(items))
        return items
