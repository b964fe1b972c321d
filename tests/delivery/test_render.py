from __future__ import annotations

from datetime import datetime

from auto_alert.delivery import escape_markdown, format_price, render_listing
from auto_alert.models import Listing


def _listing(**overrides) -> Listing:
    payload = {
        "listing_id": "1",
        "subscription_id": "sub-1",
        "title": "Audi A4 2.0 TDI",
        "price": "10.000 €",
        "engine_volume": "1968 cm3",
        "transmission": "Manuelni",
        "body_type": "Limuzina",
        "mileage": "180.000 km",
        "location": "Beograd",
        "link": "https://example.com/ad/1_(a)",
        "date": datetime(2024, 3, 5, 10, 15),
    }
    payload.update(overrides)
    return Listing(**payload)


def test_escape_markdown_escapes_special_characters() -> None:
    assert escape_markdown("A4 2.0 (TDI) - 5*") == r"A4 2\.0 \(TDI\) \- 5\*"
    assert escape_markdown("") == ""


def test_format_price_without_change() -> None:
    assert format_price(_listing()) == "10.000 €"
    assert format_price(_listing(new_price="10.000 €")) == "10.000 €"


def test_format_price_marks_direction() -> None:
    assert format_price(_listing(new_price="9.500 €")) == "⚠10.000 €🔻9.500 €"
    assert format_price(_listing(new_price="12.000 €")) == "⚠10.000 €🔺12.000 €"


def test_render_listing_contains_every_field() -> None:
    text = render_listing(_listing(new_price="9.500 €"))

    assert r"*Title:* Audi A4 2\.0 TDI" in text
    assert r"*Price:* ⚠10\.000 €🔻9\.500 €" in text
    assert r"*Mileage:* 180\.000 km" in text
    assert r"*Date:* 2024\-03\-05 10:15:00" in text
    assert r"[tap to link](https://example.com/ad/1_(a\))" in text
