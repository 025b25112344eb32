#!/usr/bin/env python3
"""
countrydex.fetcher – country lookups against the REST Countries API
"""

import json
import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx

from .models import Record

LOGGER = logging.getLogger(__name__)

API_ENDPOINT = "https://restcountries.com/v3.1"
REQUEST_TIMEOUT = 10.0
USER_AGENT = "countrydex/1.0"


class FetchError(Exception):
    """A lookup failed; the caller shows it as an empty result set."""

    kind = "fetch-error"

    def __init__(self, query: str, message: str) -> None:
        super().__init__(message)
        self.query = query
        self.message = message


class NetworkFailure(FetchError):
    kind = "network-failure"

    def __init__(
        self, query: str, message: str, status_code: Optional[int] = None
    ) -> None:
        super().__init__(query, message)
        self.status_code = status_code


class MalformedResponse(FetchError):
    kind = "malformed-response"


def parse_countries(query: str, payload: Any) -> List[Record]:
    """
    Map a decoded response body onto records.

    The body must be a list of country objects, each carrying `name.common`
    and `flags.svg`. Ranks follow the arrival order, starting at 1.
    """
    if not isinstance(payload, list):
        raise MalformedResponse(
            query, f"expected a list of countries, got {type(payload).__name__}"
        )

    records = []
    for index, item in enumerate(payload):
        try:
            name = item["name"]["common"]
            flag = item["flags"]["svg"]
        except (KeyError, TypeError) as e:
            raise MalformedResponse(
                query, f"country #{index + 1} is missing {e}"
            ) from e
        if not isinstance(name, str) or not isinstance(flag, str):
            raise MalformedResponse(
                query, f"country #{index + 1} has non-string name or flag"
            )
        records.append(Record(name=name, flag_ref=flag, rank=index + 1))
    return records


class CountryFetcher:
    """Issues one GET per lookup; never retries and never cancels."""

    def __init__(
        self,
        endpoint: str = API_ENDPOINT,
        timeout: float = REQUEST_TIMEOUT,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.endpoint = endpoint.rstrip("/")
        self.timeout = timeout
        self.headers: Dict[str, str] = {
            "User-Agent": USER_AGENT,
            "Accept": "application/json",
        }
        self._client = client
        self._owns_client = client is None

    def url_for(self, query: str) -> str:
        return f"{self.endpoint}/name/{quote(query, safe='')}"

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self.timeout, headers=self.headers, follow_redirects=True
            )
        return self._client

    async def fetch(self, query: str) -> List[Record]:
        url = self.url_for(query)
        client = self._get_client()
        try:
            response = await client.get(url, headers=self.headers)
        except (httpx.RequestError, httpx.InvalidURL) as e:
            LOGGER.error(f"Request error: {e} for {url}")
            raise NetworkFailure(query, f"request failed: {e}") from e

        if response.status_code != 200:
            LOGGER.error(f"HTTP error: {response.status_code} for {url}")
            raise NetworkFailure(
                query,
                f"unexpected status {response.status_code}",
                status_code=response.status_code,
            )

        try:
            payload = response.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise MalformedResponse(query, f"response is not JSON: {e}") from e

        records = parse_countries(query, payload)
        LOGGER.info(f"Lookup '{query}' returned {len(records)} countries")
        return records

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None
