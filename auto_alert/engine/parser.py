"""HTML parsing for marketplace search result pages."""

from __future__ import annotations

from datetime import datetime
from urllib.parse import urljoin

from selectolax.parser import HTMLParser, Node

from ..logging_conf import component_logger
from ..models import RawListing

RENEW_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class ParseFailure(Exception):
    """A marketplace page could not be parsed."""


def _text(nodes: list[Node], index: int) -> str:
    if len(nodes) <= index:
        return ""
    return nodes[index].text(strip=True)


class ListingParser:
    """Extract :class:`RawListing` records from ``article.classified`` blocks."""

    def __init__(self, base_url: str) -> None:
        self.base_url = base_url
        self.logger = component_logger("parser")

    def parse(self, html: str) -> list[RawListing]:
        if not isinstance(html, str):
            raise ParseFailure(f"expected HTML text, got {type(html).__name__}")
        try:
            tree = HTMLParser(html)
        except Exception as exc:  # noqa: BLE001
            raise ParseFailure(f"error parsing HTML: {exc}") from exc

        listings: list[RawListing] = []
        for article in tree.css("article.classified"):
            listing = self._parse_article(article)
            if listing is None:
                continue
            listings.append(listing)
        return listings

    def parse_options(self, html: str, select_id: str, *, skip_numeric: bool = False) -> dict[str, str]:
        """Map option labels to values for a ``<select id=...>`` on the search form."""

        tree = HTMLParser(html)
        options: dict[str, str] = {}
        for option in tree.css(f"#{select_id} option"):
            value = (option.attributes.get("value") or "").strip()
            if not value or (skip_numeric and value.isdigit()):
                continue
            options[option.text(strip=True)] = value
        return options

    def _parse_article(self, article: Node) -> RawListing | None:
        attrs = article.attributes
        listing_id = (attrs.get("data-classifiedid") or "").strip()
        if not listing_id:
            self.logger.debug("listing_without_id_skipped")
            return None

        title_node = article.css_first("a.ga-title")
        title = ""
        link = ""
        if title_node is not None:
            title = (title_node.attributes.get("title") or title_node.text(strip=True)).strip()
            link = (title_node.attributes.get("href") or "").strip()
        if link and not link.startswith("http"):
            link = urljoin(self.base_url, link)

        top = article.css("div.setInfo div.top")
        bottom = article.css("div.setInfo div.bottom")
        year, body_type = "", ""
        year_and_body = _text(top, 0)
        if "." in year_and_body:
            year, body_type = (part.strip() for part in year_and_body.split(".", 1))

        city = article.css_first("div.city")
        return RawListing(
            id=listing_id,
            title=title,
            price=(attrs.get("data-price") or "").strip(),
            year=year,
            engine_volume=_text(bottom, 0),
            transmission=_text(top, 2),
            body_type=body_type,
            mileage=_text(top, 1),
            location=city.text(strip=True) if city is not None else "",
            link=link,
            date=self._parse_date(attrs.get("data-renewdate")),
        )

    @staticmethod
    def _parse_date(value: str | None) -> datetime | None:
        if not value:
            return None
        try:
            return datetime.strptime(value.strip(), RENEW_DATE_FORMAT)
        except ValueError:
            return None


__all__ = ["ListingParser", "ParseFailure", "RENEW_DATE_FORMAT"]
