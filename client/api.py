"""Async HTTP client for the gig listing API.

Wraps an `httpx.AsyncClient` and unwraps the `{success, data}` envelope.
Transport problems surface as `httpx.HTTPError`; well-formed error envelopes
and unexpected bodies surface as `GigsApiError`.
"""
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional

import httpx
from pydantic import ValidationError

import config
from models import Pagination, RatingSummary


class GigsApiError(Exception):
    """The API answered, but not with a successful payload."""


@dataclass
class GigPage:
    gigs: List[Dict[str, Any]]
    pagination: Pagination


class GigsApiClient:
    """Thin wrapper around the `/gigs` endpoints used by the listing view."""

    def __init__(
        self,
        base_url: str = config.API_BASE_URL,
        timeout: float = config.API_TIMEOUT,
        token: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        headers = {"Content-Type": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._client = httpx.AsyncClient(
            base_url=base_url, timeout=timeout, headers=headers, transport=transport
        )

    async def _get(self, path: str, params: Optional[Mapping[str, Any]] = None) -> Any:
        response = await self._client.get(path, params=params)
        try:
            body = response.json()
        except ValueError as e:
            response.raise_for_status()
            raise GigsApiError(f"Invalid JSON from {path}") from e
        if response.is_error or not isinstance(body, dict) or not body.get("success"):
            message = body.get("message") if isinstance(body, dict) else None
            raise GigsApiError(message or f"Request to {path} failed ({response.status_code})")
        return body.get("data")

    async def list_gigs(self, filters: Optional[Mapping[str, Any]] = None) -> GigPage:
        """Fetch one page of gigs; empty filter values are not sent."""
        params = {k: v for k, v in (filters or {}).items() if v not in (None, "")}
        data = await self._get("/gigs", params=params) or {}
        if not isinstance(data, dict):
            raise GigsApiError("Malformed gig listing payload")
        try:
            pagination = Pagination.model_validate(data.get("pagination") or {})
        except ValidationError as e:
            raise GigsApiError("Malformed pagination in gig listing") from e
        return GigPage(gigs=list(data.get("gigs") or []), pagination=pagination)

    async def gig_rating(self, gig_id: str) -> RatingSummary:
        data = await self._get(f"/gigs/{gig_id}/rating")
        try:
            return RatingSummary.model_validate(data or {})
        except ValidationError as e:
            raise GigsApiError(f"Malformed rating for gig {gig_id}") from e

    async def aclose(self) -> None:
        await self._client.aclose()
