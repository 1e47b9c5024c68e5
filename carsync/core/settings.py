from __future__ import annotations

import json
import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

from carsync.core.models import Dealer


DEFAULT_CONFIG_PATH = Path("config/dealers.json")


@dataclass(frozen=True, slots=True)
class SyncSettings:
    enabled: bool = True
    max_listings_per_dealer: int = 20
    max_total_listings: int = 100
    image_width: int = 1200
    image_height: int = 900
    max_images: int = 10
    image_quality: int = 85
    image_workers: int = 4
    candidate_workers: int = 1
    candidate_delay_seconds: float = 2.0
    dealer_delay_seconds: float = 3.0


def load_config(path: str | Path | None = None) -> tuple[list[Dealer], SyncSettings]:
    """
    Read the dealer roster and run settings, then apply environment overrides.
    """
    config_path = Path(path or os.environ.get("CARSYNC_CONFIG") or DEFAULT_CONFIG_PATH)
    with open(config_path, "r", encoding="utf-8") as handle:
        data = json.load(handle)
    dealers = [Dealer(name=str(entry["name"]), url=str(entry["url"])) for entry in data.get("dealers") or []]
    return dealers, apply_env_overrides(settings_from_dict(data.get("settings") or {}))


def settings_from_dict(raw: dict[str, Any]) -> SyncSettings:
    defaults = SyncSettings()
    return SyncSettings(
        enabled=bool(raw.get("enabled", defaults.enabled)),
        max_listings_per_dealer=int(raw.get("maxListingsPerDealer", defaults.max_listings_per_dealer)),
        max_total_listings=int(raw.get("maxTotalListings", defaults.max_total_listings)),
        image_width=int(raw.get("imageWidth", defaults.image_width)),
        image_height=int(raw.get("imageHeight", defaults.image_height)),
        max_images=int(raw.get("maxImages", defaults.max_images)),
        image_quality=int(raw.get("imageQuality", defaults.image_quality)),
        image_workers=int(raw.get("imageWorkers", defaults.image_workers)),
        candidate_workers=int(raw.get("candidateWorkers", defaults.candidate_workers)),
        candidate_delay_seconds=float(raw.get("candidateDelaySeconds", defaults.candidate_delay_seconds)),
        dealer_delay_seconds=float(raw.get("dealerDelaySeconds", defaults.dealer_delay_seconds)),
    )


def apply_env_overrides(settings: SyncSettings) -> SyncSettings:
    max_override = _env_int("MAX_LISTINGS_OVERRIDE", 0)
    if max_override > 0:
        settings = replace(settings, max_total_listings=max_override)
    return replace(
        settings,
        image_workers=max(1, _env_int("IMAGE_WORKERS", settings.image_workers)),
        candidate_workers=max(1, _env_int("CANDIDATE_WORKERS", settings.candidate_workers)),
    )


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        return int(raw.strip())
    except (TypeError, ValueError):
        return default
