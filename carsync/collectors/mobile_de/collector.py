from __future__ import annotations

import html
import logging
import re
from typing import Any

import httpx

from carsync.collectors.base import Collector
from carsync.core.models import RawListingFields


LOGGER = logging.getLogger(__name__)

SEARCH_URL_TEMPLATE = "https://suchen.mobile.de/fahrzeuge/search.html?s=Car&vc=Car&sid={customer_id}"
DETAIL_URL_TEMPLATE = "https://suchen.mobile.de/fahrzeuge/details.html?id={listing_id}"
IMAGE_HOST_MARKER = "img.classistatic.de/api/v1/mo-prod/images/"
IMAGE_RULE = "?rule=mo-1600"

# Detail page <dt> label -> raw field key. Earlier labels win for the same key.
FIELD_LABELS: tuple[tuple[str, str], ...] = (
    ("Kilometerstand", "mileage"),
    ("Leistung", "power"),
    ("Kraftstoffart", "fuel_type"),
    ("Getriebe", "transmission"),
    ("Erstzulassung", "first_registration"),
    ("Fahrzeughalter", "owners"),
    ("Anzahl der Fahrzeughalter", "owners"),
    ("Fahrzeugzustand", "condition"),
    ("Kategorie", "body_type"),
    ("Baureihe", "series"),
    ("Ausstattungslinie", "variant"),
    ("Hubraum", "cubic_capacity"),
    ("Antriebsart", "drive_type"),
    ("Anzahl Sitzplätze", "seats"),
    ("Anzahl der Türen", "doors"),
    ("Schadstoffklasse", "emission_class"),
    ("Umweltplakette", "emission_sticker"),
    ("HU", "hu"),
    ("Klimatisierung", "climate"),
    ("Einparkhilfe", "parking_assist"),
    ("Airbags", "airbags"),
    ("Farbe (Hersteller)", "color_manufacturer"),
    ("Farbe", "color"),
    ("Innenausstattung", "interior"),
    ("Gewicht", "weight"),
    ("Zylinder", "cylinders"),
    ("Tankgröße", "tank_size"),
)

MAX_VALUE_LENGTH = 150
MAX_SUBTITLE_LENGTH = 200
MAX_FEATURE_LENGTH = 80

_DT_DD_PATTERN = re.compile(
    r"<dt\b[^>]*>(?P<label>(?:(?!</?dt\b).)*?)</dt>\s*<dd\b[^>]*>(?P<value>(?:(?!</?d[dt]\b).)*?)</dd>",
    re.I | re.S,
)
_TITLE_PATTERN = re.compile(r"<title\b[^>]*>(.*?)</title>", re.I | re.S)
_PRICE_PATTERN = re.compile(r">\s*(\d{1,3}(?:\.\d{3})*)(?:\s|&nbsp;)*(?:€|&euro;|&#8364;)\s*<", re.I)
_ASIDE_PATTERN = re.compile(r"<aside\b[^>]*>(.*?)</aside>", re.I | re.S)
_SUBTITLE_PATTERN = re.compile(r"<h2\b[^>]*>.*?</h2>\s*<p\b[^>]*>(.*?)</p>", re.I | re.S)
_ARTICLE_PATTERN = re.compile(r"<article\b[^>]*>(.*?)</article>", re.I | re.S)
_HEADING_PATTERN = re.compile(r"<h[23]\b[^>]*>(.*?)</h[23]>", re.I | re.S)
_LIST_ITEM_PATTERN = re.compile(r"<li\b[^>]*>(.*?)</li>", re.I | re.S)
_IMG_SRC_PATTERN = re.compile(r"<img\b[^>]*?\bsrc=\"([^\"]+)\"", re.I)
_DETAIL_HREF_PATTERN = re.compile(r"href=\"([^\"]*?/fahrzeuge/details\.html\?[^\"]*)\"", re.I)
_LISTING_ID_PATTERN = re.compile(r"[?&]id=(\d+)")
_CUSTOMER_ID_PATTERN = re.compile(r"customerId=(\d+)")
_TAG_PATTERN = re.compile(r"<[^>]+>")


class MobileDeCollector(Collector):
    source_name = "mobile_de"

    def __init__(self, client: httpx.Client | None = None, timeout_seconds: float = 60.0) -> None:
        headers = {
            "User-Agent": (
                "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
                "AppleWebKit/537.36 (KHTML, like Gecko) Chrome/124.0 Safari/537.36"
            ),
            "Accept-Language": "de-DE,de;q=0.9",
        }
        self.client = client or httpx.Client(timeout=timeout_seconds, follow_redirects=True, headers=headers)

    def list_candidates(self, dealer_url: str) -> list[str]:
        search_url = dealer_search_url(dealer_url)
        LOGGER.info("Navigating to: %s", search_url)
        response = self.client.get(search_url)
        response.raise_for_status()
        urls = _extract_listing_urls(response.text)
        LOGGER.info("Found %s listings on search page", len(urls))
        return urls

    def fetch_fields(self, url: str) -> RawListingFields:
        response = self.client.get(url)
        response.raise_for_status()
        return _extract_detail_fields(response.text)

    def close(self) -> None:
        self.client.close()


def dealer_search_url(dealer_url: str) -> str:
    # home.mobile.de storefronts are rewritten to the dealer's search result page.
    match = _CUSTOMER_ID_PATTERN.search(dealer_url)
    if match:
        return SEARCH_URL_TEMPLATE.format(customer_id=match.group(1))
    return dealer_url


def _extract_listing_urls(page_html: str) -> list[str]:
    seen: dict[str, None] = {}
    for href in _DETAIL_HREF_PATTERN.findall(page_html):
        match = _LISTING_ID_PATTERN.search(html.unescape(href))
        if match:
            seen.setdefault(DETAIL_URL_TEMPLATE.format(listing_id=match.group(1)), None)
    return list(seen.keys())


def _extract_detail_fields(page_html: str) -> RawListingFields:
    fields: RawListingFields = {}

    title_match = _TITLE_PATTERN.search(page_html)
    if title_match:
        title = _clean_text(title_match.group(1)).split("für")[0].strip()
        if title:
            fields["title"] = title

    price_match = _PRICE_PATTERN.search(page_html)
    if price_match:
        fields["price"] = re.sub(r"\D", "", price_match.group(1))

    labelled = _extract_labelled_values(page_html)
    for label, key in FIELD_LABELS:
        value = labelled.get(label)
        if value and key not in fields:
            fields[key] = value

    subtitle = _extract_subtitle(page_html)
    if subtitle:
        fields["subtitle"] = subtitle

    fields["features"] = _extract_features(page_html)
    fields["images"] = _extract_image_urls(page_html)
    return fields


def _extract_labelled_values(page_html: str) -> dict[str, str]:
    values: dict[str, str] = {}
    for match in _DT_DD_PATTERN.finditer(page_html):
        label = _clean_text(match.group("label"))
        value = _clean_text(match.group("value"))
        if label and value and len(value) < MAX_VALUE_LENGTH:
            values.setdefault(label, value)
    return values


def _extract_subtitle(page_html: str) -> str | None:
    for aside in _ASIDE_PATTERN.findall(page_html):
        match = _SUBTITLE_PATTERN.search(aside)
        if not match:
            continue
        text = _clean_text(match.group(1))
        if text and "€" not in text and len(text) < MAX_SUBTITLE_LENGTH:
            return text
    return None


def _extract_features(page_html: str) -> list[str]:
    features: list[str] = []
    for article in _ARTICLE_PATTERN.findall(page_html):
        heading = _HEADING_PATTERN.search(article)
        if not heading or "Ausstattung" not in _clean_text(heading.group(1)):
            continue
        for item in _LIST_ITEM_PATTERN.findall(article):
            text = _clean_text(item)
            if 1 < len(text) < MAX_FEATURE_LENGTH:
                features.append(text)
    return features


def _extract_image_urls(page_html: str) -> list[str]:
    seen: dict[str, None] = {}
    for src in _IMG_SRC_PATTERN.findall(page_html):
        if IMAGE_HOST_MARKER not in src:
            continue
        base_url = html.unescape(src).split("?")[0]
        seen.setdefault(base_url, None)
    return [f"{base_url}{IMAGE_RULE}" for base_url in seen]


def _clean_text(fragment: Any) -> str:
    text = html.unescape(_TAG_PATTERN.sub(" ", str(fragment or "")))
    return re.sub(r"\s+", " ", text).strip()
