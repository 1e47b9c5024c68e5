from __future__ import annotations

import json
import logging
import threading
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from carsync.core.models import Dealer


LOGGER = logging.getLogger(__name__)

COUNTERS = ("listings_found", "listings_new", "listings_skipped", "images_uploaded")


@dataclass(frozen=True, slots=True)
class RunError:
    type: str  # image | scrape | dealer | insert | fingerprints
    context: str
    message: str


class RunReport:
    """
    Accumulator for one sync run.

    Shared by every component that can skip or fail. Mutations take a lock so
    concurrent candidate and image workers can record into the same report.
    """

    def __init__(self, started_at: datetime | None = None) -> None:
        self.started_at = started_at or datetime.now(timezone.utc)
        self.completed_at: datetime | None = None
        self.dealers: list[Dealer] = []
        self.listings_found = 0
        self.listings_new = 0
        self.listings_skipped = 0
        self.images_uploaded = 0
        self.errors: list[RunError] = []
        self.cancelled = False
        self._lock = threading.Lock()

    def add_dealer(self, dealer: Dealer) -> None:
        with self._lock:
            self.dealers.append(dealer)

    def increment(self, counter: str, amount: int = 1) -> None:
        if counter not in COUNTERS:
            raise ValueError(f"Unknown report counter: {counter}")
        with self._lock:
            setattr(self, counter, getattr(self, counter) + amount)

    def record_error(self, error_type: str, context: str, message: Any) -> None:
        with self._lock:
            self.errors.append(RunError(type=error_type, context=context, message=str(message)))

    def finish(self, completed_at: datetime | None = None) -> None:
        with self._lock:
            self.completed_at = completed_at or datetime.now(timezone.utc)

    def to_dict(self) -> dict[str, Any]:
        with self._lock:
            return {
                "startedAt": self.started_at.isoformat(),
                "completedAt": self.completed_at.isoformat() if self.completed_at else None,
                "cancelled": self.cancelled,
                "dealers": [asdict(dealer) for dealer in self.dealers],
                "listingsFound": self.listings_found,
                "listingsNew": self.listings_new,
                "listingsSkipped": self.listings_skipped,
                "imagesUploaded": self.images_uploaded,
                "errors": [asdict(error) for error in self.errors],
            }

    def write_json(self, path: str | Path) -> Path:
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(json.dumps(self.to_dict(), indent=2, ensure_ascii=False), encoding="utf-8")
        return target

    def log_summary(self, logger: logging.Logger = LOGGER) -> None:
        data = self.to_dict()
        logger.info("Sync summary%s", " (cancelled)" if data["cancelled"] else "")
        logger.info("Dealers processed: %s", len(data["dealers"]))
        logger.info("Listings found: %s", data["listingsFound"])
        logger.info("Listings new (inserted): %s", data["listingsNew"])
        logger.info("Listings skipped (existing): %s", data["listingsSkipped"])
        logger.info("Images uploaded: %s", data["imagesUploaded"])
        logger.info("Errors: %s", len(data["errors"]))
        for error in data["errors"]:
            logger.error("  - %s [%s]: %s", error["type"], error["context"], error["message"])
