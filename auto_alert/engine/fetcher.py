"""Paginated marketplace search client."""

from __future__ import annotations

import random
import time
from typing import Callable, Mapping

import httpx

from ..config import MarketplaceConfig
from ..infra import UserAgentPool
from ..logging_conf import component_logger
from ..models import RawListing
from .parser import ListingParser, ParseFailure

MULTI_VALUE_KEYS = frozenset({"model[]", "region[]", "chassis[]"})


class MarketplaceError(Exception):
    """Base class for marketplace fetch failures."""


class MarketplaceUnreachable(MarketplaceError):
    """The marketplace could not be contacted."""


class UnexpectedStatus(MarketplaceError):
    def __init__(self, status_code: int, url: str) -> None:
        self.status_code = status_code
        self.url = url
        super().__init__(f"unexpected status code {status_code} for {url}")


class MarketplaceParseError(MarketplaceError, ParseFailure):
    """A fetched page could not be turned into listings."""


def build_query(params: Mapping[str, str]) -> list[tuple[str, str]]:
    """Expand comma-joined multi-value keys into repeated query parameters."""

    query: list[tuple[str, str]] = []
    for key, value in params.items():
        if key in MULTI_VALUE_KEYS:
            query.extend((key, part) for part in value.split(",") if part)
        else:
            query.append((key, value))
    return query


class MarketplaceClient:
    """Fetch and parse search result pages until an empty page is reached."""

    def __init__(
        self,
        config: MarketplaceConfig,
        ua_pool: UserAgentPool | None = None,
        client: httpx.Client | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.config = config
        self.ua_pool = ua_pool or UserAgentPool(config.user_agent_list)
        self._client = client or httpx.Client(
            base_url=config.base_url,
            follow_redirects=True,
            timeout=config.timeout,
        )
        self._sleep = sleep
        self.parser = ListingParser(config.base_url)
        self.logger = component_logger("marketplace")

    def close(self) -> None:
        self._client.close()

    def fetch_listings(self, params: Mapping[str, str]) -> list[RawListing]:
        query_params = dict(params)
        listings: list[RawListing] = []
        page = 1
        while page != self.config.page_limit:
            query_params["page"] = str(page)
            html = self._get(self.config.search_path, build_query(query_params))
            try:
                page_listings = self.parser.parse(html)
            except ParseFailure as exc:
                raise MarketplaceParseError(str(exc)) from exc
            if not page_listings:
                break
            listings.extend(page_listings)
            self.logger.debug("page_parsed", page=page, listings=len(page_listings))
            page += 1
            self._pause()
        return listings

    def fetch_chassis(self) -> dict[str, str]:
        html = self._get("/", [])
        return self.parser.parse_options(html, "chassis")

    def fetch_regions(self) -> dict[str, str]:
        html = self._get("/", [])
        return self.parser.parse_options(html, "region", skip_numeric=True)

    def _get(self, path: str, query: list[tuple[str, str]]) -> str:
        headers = {"User-Agent": self.ua_pool.get()}
        try:
            response = self._client.get(path, params=query, headers=headers)
        except httpx.HTTPError as exc:
            raise MarketplaceUnreachable(f"error making request to {path}: {exc}") from exc
        if response.status_code != 200:
            raise UnexpectedStatus(response.status_code, str(response.url))
        return response.text

    def _pause(self) -> None:
        low, high = self.config.delay_range
        if high <= 0:
            return
        self._sleep(random.uniform(low, high))


__all__ = [
    "MarketplaceClient",
    "MarketplaceError",
    "MarketplaceParseError",
    "MarketplaceUnreachable",
    "UnexpectedStatus",
    "build_query",
]
