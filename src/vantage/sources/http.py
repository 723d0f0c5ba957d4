"""Snapshot source backed by the compliance store's REST API.

Frameworks and controls are listed first; evaluations and evidence
documents are then fetched concurrently in batches of control references.
Any batch that still fails after its retries aborts the whole snapshot.
"""

from __future__ import annotations

import os
from typing import Optional

import httpx

from ..models.snapshot import Snapshot
from .base import BaseSource, DashboardUnavailableError, chunk, gather_all

RETRYABLE_STATUS = (429, 500, 502, 503, 504)


def _rows(data: object, what: str) -> list:
    """Accept a bare list or a ``{"items": [...]}`` / ``{"data": [...]}`` envelope."""
    if isinstance(data, list):
        return data
    if isinstance(data, dict):
        for key in ("items", "data", "results"):
            if isinstance(data.get(key), list):
                return data[key]
    raise DashboardUnavailableError(f"{what} returned an unexpected payload")


class HttpSnapshotSource(BaseSource):
    name = "http"

    def __init__(self, source_config: dict, transport: Optional[httpx.AsyncBaseTransport] = None):
        super().__init__(source_config)
        self.transport = transport

    def is_retryable(self, error: Exception) -> bool:
        if isinstance(error, httpx.HTTPStatusError):
            return error.response.status_code in RETRYABLE_STATUS
        return isinstance(error, (httpx.TimeoutException, httpx.TransportError))

    def _headers(self) -> dict:
        headers = {"Accept": "application/json"}
        token_env = self.config.get("api_key_env", "VANTAGE_API_TOKEN")
        token = self.config.get("api_key") or (os.environ.get(token_env, "") if token_env else "")
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    async def _get_rows(self, client: httpx.AsyncClient, path: str, params: Optional[dict] = None) -> list:
        async def request() -> object:
            response = await client.get(path, params=params)
            response.raise_for_status()
            return response.json()

        return _rows(await self.with_retry(request, f"GET {path}"), f"GET {path}")

    async def fetch(self) -> Snapshot:
        endpoint = (self.config.get("endpoint") or "").rstrip("/")
        if not endpoint:
            raise DashboardUnavailableError("no snapshot endpoint configured")

        timeout = self.config.get("timeout_seconds", 30)
        client_args: dict = {"base_url": endpoint, "timeout": timeout, "headers": self._headers()}
        if self.transport is not None:
            client_args["transport"] = self.transport

        async with httpx.AsyncClient(**client_args) as client:
            frameworks, controls = await gather_all(
                self._get_rows(client, "/frameworks"),
                self._get_rows(client, "/controls"),
            )
            catalog = Snapshot.from_payload({"frameworks": frameworks, "controls": controls})

            references = sorted({ref for control in catalog.controls for ref in (control.id, control.code)})
            batches = chunk(references, self.batch_size)
            results = await gather_all(
                *(self._get_rows(client, "/evaluations", {"controlIds": ",".join(b)}) for b in batches),
                *(self._get_rows(client, "/documents", {"controlIds": ",".join(b)}) for b in batches),
            )

        evaluations = [row for rows in results[:len(batches)] for row in rows]
        documents = [row for rows in results[len(batches):] for row in rows]
        activity = Snapshot.from_payload({"evaluations": evaluations, "documents": documents})
        return catalog.merge(activity)
