from __future__ import annotations

from abc import ABC, abstractmethod

from carsync.core.models import RawListingFields


class Collector(ABC):
    source_name: str

    @abstractmethod
    def list_candidates(self, dealer_url: str) -> list[str]:
        """Return detail page URLs for one dealer storefront, in page order."""

    @abstractmethod
    def fetch_fields(self, url: str) -> RawListingFields:
        """Fetch one detail page; missing fields are absent keys, not errors."""

    def close(self) -> None:
        return None
