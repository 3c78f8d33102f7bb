"""Timeout-bounded HTTP access to the weather feeds."""

from __future__ import annotations

import json
import logging
from typing import Any, Literal

import httpx

LOGGER = logging.getLogger(__name__)

FailureKind = Literal["network", "malformed"]


class FeedError(RuntimeError):
    """A feed could not be fetched or its body could not be understood."""

    def __init__(self, url: str, kind: FailureKind, detail: str) -> None:
        super().__init__(f"{kind} failure for {url}: {detail}")
        self.url = url
        self.kind = kind
        self.detail = detail


class FeedFetcher:
    """Fetch JSON, XML and HTML documents with a hard per-request timeout."""

    def __init__(
        self,
        user_agent: str,
        timeout_seconds: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.user_agent = user_agent
        self.timeout_seconds = timeout_seconds
        self.transport = transport

    async def get_text(self, url: str, accept: str | None = None) -> str:
        headers = {"User-Agent": self.user_agent}
        if accept:
            headers["Accept"] = accept
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout_seconds,
                headers=headers,
                transport=self.transport,
                follow_redirects=True,
            ) as client:
                response = await client.get(url)
                response.raise_for_status()
                return response.text
        except httpx.TimeoutException as exc:
            raise FeedError(
                url, "network", f"timed out after {self.timeout_seconds}s"
            ) from exc
        except httpx.HTTPStatusError as exc:
            raise FeedError(
                url, "network", f"HTTP {exc.response.status_code}"
            ) from exc
        except httpx.HTTPError as exc:
            raise FeedError(url, "network", str(exc) or type(exc).__name__) from exc

    async def get_json(
        self, url: str, accept: str = "application/geo+json"
    ) -> Any:
        text = await self.get_text(url, accept=accept)
        try:
            return json.loads(text)
        except json.JSONDecodeError as exc:
            raise FeedError(url, "malformed", f"invalid JSON: {exc}") from exc

    async def get_features(self, url: str) -> list[dict[str, Any]]:
        """Return the feature list of a GeoJSON FeatureCollection."""
        payload = await self.get_json(url)
        records = extract_features(payload)
        if records is None:
            raise FeedError(url, "malformed", "response has no features list")
        LOGGER.debug("Fetched %s features from %s", len(records), url)
        return records


def extract_features(payload: Any) -> list[dict[str, Any]] | None:
    """Return the dict entries of a FeatureCollection's ``features`` list."""
    if not isinstance(payload, dict) or not isinstance(payload.get("features"), list):
        return None
    return [record for record in payload["features"] if isinstance(record, dict)]
