from __future__ import annotations

import argparse
import logging
import signal
import sys
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Protocol, Sequence

from carsync.collectors.base import Collector
from carsync.collectors.mobile_de.collector import MobileDeCollector
from carsync.core.dedupe import KnownFingerprints, is_duplicate, snapshot
from carsync.core.identity import identify, slug
from carsync.core.images import ImagePipeline
from carsync.core.models import Dealer, NormalizedListing
from carsync.core.normalize import assemble_listing, listing_to_record
from carsync.core.parsers import registration_year
from carsync.core.report import RunReport
from carsync.core.settings import SyncSettings, load_config
from carsync.core.supabase_repo import SupabaseRepo


LOGGER = logging.getLogger(__name__)

DEFAULT_REPORT_PATH = "sync-log.json"


class ListingRepo(Protocol):
    def get_known_fingerprints(self) -> set[str]: ...

    def insert_listing(self, row: dict[str, Any]) -> dict[str, Any]: ...


class VehicleSync:
    """
    One sync run: load known fingerprints, walk dealers and their candidates,
    persist the new listings, and account for everything in the run report.
    """

    def __init__(
        self,
        collector: Collector,
        repo: ListingRepo,
        image_pipeline: ImagePipeline,
        settings: SyncSettings,
        report: RunReport | None = None,
        stop_event: threading.Event | None = None,
    ) -> None:
        self.collector = collector
        self.repo = repo
        self.image_pipeline = image_pipeline
        self.settings = settings
        self.report = report or RunReport()
        self.stop_event = stop_event or threading.Event()

    def run(self, dealers: Sequence[Dealer]) -> RunReport:
        LOGGER.info("Loading existing fingerprints from database...")
        try:
            known = snapshot(self.repo.get_known_fingerprints())
        except Exception as exc:  # noqa: BLE001
            LOGGER.error("Error loading fingerprints: %s", exc)
            self.report.record_error("fingerprints", "known_fingerprints", exc)
            known = snapshot(())
        LOGGER.info("Loaded %s existing fingerprints", len(known))

        listings: list[NormalizedListing] = []
        max_total = self.settings.max_total_listings
        for position, dealer in enumerate(dealers):
            if self.stop_event.is_set():
                LOGGER.warning("Sync cancelled before dealer %s", dealer.name)
                break
            if position:
                self._pause(self.settings.dealer_delay_seconds)

            LOGGER.info("Processing dealer: %s", dealer.name)
            self.report.add_dealer(dealer)
            try:
                dealer_listings = self._sync_dealer(dealer, known, max_total - len(listings))
            except Exception as exc:  # noqa: BLE001
                LOGGER.exception("Error scraping dealer %s: %s", dealer.name, exc)
                self.report.record_error("dealer", dealer.url, exc)
                continue

            listings.extend(dealer_listings)
            self.report.increment("listings_found", len(dealer_listings))
            if len(listings) >= max_total:
                LOGGER.info("Reached max total listings (%s)", max_total)
                break

        self._persist(listings)
        self.report.cancelled = self.stop_event.is_set()
        self.report.finish()
        return self.report

    def _sync_dealer(self, dealer: Dealer, known: KnownFingerprints, budget: int) -> list[NormalizedListing]:
        if budget <= 0:
            return []
        urls = self.collector.list_candidates(dealer.url)[: self.settings.max_listings_per_dealer]
        if self.settings.candidate_workers > 1:
            collected = self._sync_candidates_concurrently(urls, known, budget)
        else:
            collected = []
            for index, url in enumerate(urls, start=1):
                if len(collected) >= budget or self.stop_event.is_set():
                    break
                LOGGER.info("Scraping listing %s/%s: %s", index, len(urls), url)
                listing = self._process_candidate_safely(url, known)
                if listing is not None:
                    collected.append(listing)
                if index < len(urls):
                    self._pause(self.settings.candidate_delay_seconds)
        return collected[:budget]

    def _sync_candidates_concurrently(
        self,
        urls: Sequence[str],
        known: KnownFingerprints,
        budget: int,
    ) -> list[NormalizedListing]:
        futures: list[Future[NormalizedListing | None]] = []
        with ThreadPoolExecutor(max_workers=self.settings.candidate_workers) as pool:
            for index, url in enumerate(urls, start=1):
                if self.stop_event.is_set() or _completed_listings(futures) >= budget:
                    break
                LOGGER.info("Scraping listing %s/%s: %s", index, len(urls), url)
                futures.append(pool.submit(self._process_candidate_safely, url, known))
                if index < len(urls):
                    self._pause(self.settings.candidate_delay_seconds)
        # Submission order, not completion order, decides which listings fit the budget.
        return [listing for listing in (future.result() for future in futures) if listing is not None]

    def _process_candidate_safely(self, url: str, known: KnownFingerprints) -> NormalizedListing | None:
        try:
            return self.process_candidate(url, known)
        except Exception as exc:  # noqa: BLE001
            LOGGER.error("Error scraping listing %s: %s", url, exc)
            self.report.record_error("scrape", url, exc)
            return None

    def process_candidate(self, url: str, known: KnownFingerprints) -> NormalizedListing | None:
        raw = self.collector.fetch_fields(url)
        identity = identify(raw)
        if is_duplicate(identity.fingerprint, known):
            LOGGER.info("Skipped (already exists): %s", raw.get("title"))
            self.report.increment("listings_skipped")
            return None

        listing_slug = slug(identity.make, identity.model, registration_year(identity.first_registration))
        images = self.image_pipeline.process(raw.get("images") or [], listing_slug, self.report)
        listing = assemble_listing(raw, url, identity, listing_slug, images)
        LOGGER.info("Scraped: %s %s", listing.make, listing.model)
        return listing

    def _persist(self, listings: Sequence[NormalizedListing]) -> None:
        LOGGER.info("Inserting %s new listings to database...", len(listings))
        for listing in listings:
            try:
                self.repo.insert_listing(listing_to_record(listing))
            except Exception as exc:  # noqa: BLE001
                LOGGER.error("Error inserting listing %s: %s", listing.slug, exc)
                self.report.record_error("insert", listing.slug, exc)
                continue
            self.report.increment("listings_new")
            LOGGER.info("Inserted: %s %s (%s)", listing.make, listing.model, listing.slug)

    def _pause(self, seconds: float) -> None:
        # Waiting on the stop event keeps pacing interruptible.
        if seconds > 0:
            self.stop_event.wait(seconds)


def _completed_listings(futures: Sequence[Future[NormalizedListing | None]]) -> int:
    return sum(1 for future in futures if future.done() and future.result() is not None)


def _install_stop_handlers(stop_event: threading.Event) -> None:
    def _handle(signum: int, _frame: Any) -> None:
        LOGGER.warning("Received signal %s, finishing current listing and stopping.", signum)
        stop_event.set()

    for signum in (signal.SIGINT, signal.SIGTERM):
        signal.signal(signum, _handle)


def main(argv: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Sync dealer vehicle listings into the catalogue.")
    parser.add_argument("--config", default=None, help="Dealer roster JSON (default: config/dealers.json).")
    parser.add_argument("--report", default=DEFAULT_REPORT_PATH, help="Where to write the run report JSON.")
    parser.add_argument("--max-runtime", type=float, default=None, help="Stop taking new listings after N seconds.")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")
    LOGGER.info("Vehicle sync started")

    try:
        dealers, settings = load_config(args.config)
    except (OSError, ValueError, KeyError) as exc:
        LOGGER.error("Error loading config: %s", exc)
        return 1
    LOGGER.info("Loaded config with %s dealers", len(dealers))
    if not settings.enabled:
        LOGGER.info("Sync is disabled in config. Exiting.")
        return 0

    try:
        repo = SupabaseRepo()
        repo.check_connection()
    except Exception as exc:  # noqa: BLE001
        LOGGER.error("Fatal error: %s", exc)
        return 1

    stop_event = threading.Event()
    _install_stop_handlers(stop_event)
    timer: threading.Timer | None = None
    if args.max_runtime:
        timer = threading.Timer(args.max_runtime, stop_event.set)
        timer.daemon = True
        timer.start()

    report = RunReport()
    collector = MobileDeCollector()
    pipeline = ImagePipeline(
        repo,
        width=settings.image_width,
        height=settings.image_height,
        max_images=settings.max_images,
        quality=settings.image_quality,
        workers=settings.image_workers,
    )
    try:
        VehicleSync(collector, repo, pipeline, settings, report=report, stop_event=stop_event).run(dealers)
    finally:
        if timer is not None:
            timer.cancel()
        collector.close()
        pipeline.close()
        if report.completed_at is None:
            report.cancelled = True
            report.finish()
        report.write_json(args.report)
        report.log_summary()
    LOGGER.info("Sync completed")
    return 0


if __name__ == "__main__":
    sys.exit(main())
