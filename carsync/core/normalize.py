from __future__ import annotations

from dataclasses import asdict
from datetime import datetime, timezone
from typing import Any, Sequence

from carsync.core.models import ListingIdentity, NormalizedListing, RawListingFields
from carsync.core.parsers import (
    parse_accident_damaged,
    parse_color,
    parse_condition,
    parse_interior,
    parse_numeric,
    parse_power,
)
from carsync.core.vocabulary import BODY_TYPES, CLIMATE, DRIVE_TYPES, FUEL_TYPES, GEARBOXES


SYNC_SOURCE = "github_actions"


def assemble_listing(
    raw: RawListingFields,
    source_url: str,
    identity: ListingIdentity,
    slug: str,
    images: Sequence[str],
) -> NormalizedListing:
    color, metallic = parse_color(raw.get("color"))
    interior_material, interior_color = parse_interior(raw.get("interior"))
    power_kw, power_ps = parse_power(raw.get("power"))
    condition_text = raw.get("condition")

    return NormalizedListing(
        fingerprint=identity.fingerprint,
        slug=slug,
        make=identity.make,
        model=identity.model,
        subtitle=_text(raw.get("subtitle")),
        series=_text(raw.get("series")),
        variant=_text(raw.get("variant")),
        body_type=BODY_TYPES.normalize(raw.get("body_type")),
        drive_type=DRIVE_TYPES.normalize(raw.get("drive_type")),
        fuel=FUEL_TYPES.normalize(raw.get("fuel_type")),
        gearbox=GEARBOXES.normalize(raw.get("transmission")),
        power_kw=power_kw,
        power_ps=power_ps,
        cubic_capacity=parse_numeric(raw.get("cubic_capacity")),
        cylinders=parse_numeric(raw.get("cylinders")),
        mileage=identity.mileage,
        first_registration=identity.first_registration,
        num_previous_owners=parse_numeric(raw.get("owners")),
        condition=parse_condition(condition_text),
        accident_damaged=parse_accident_damaged(condition_text),
        num_doors=parse_numeric(raw.get("doors")),
        num_seats=parse_numeric(raw.get("seats")),
        exterior_color=color,
        exterior_color_manufacturer=_text(raw.get("color_manufacturer")),
        metallic=metallic,
        interior_color=interior_color,
        interior_material=interior_material,
        climate=CLIMATE.normalize(raw.get("climate")),
        airbags=_text(raw.get("airbags")),
        emission_class=_text(raw.get("emission_class")),
        emission_sticker=_text(raw.get("emission_sticker")),
        hu_valid_until=_text(raw.get("hu")),
        tank_size=parse_numeric(raw.get("tank_size")),
        weight=parse_numeric(raw.get("weight")),
        price=parse_numeric(raw.get("price")),
        images=tuple(images),
        features=tuple(str(item) for item in raw.get("features") or ()),
        source_url=source_url,
    )


def listing_to_record(listing: NormalizedListing, synced_at: datetime | None = None) -> dict[str, Any]:
    synced = (synced_at or datetime.now(timezone.utc)).isoformat()
    record = asdict(listing)
    record["images"] = list(listing.images)
    record["features"] = list(listing.features)
    record.update(
        {
            "model_description": listing.subtitle,
            "source": SYNC_SOURCE,
            "sync_source": SYNC_SOURCE,
            "synced_at": synced,
            "published": True,
            "featured": False,
        }
    )
    return record


def _text(value: Any) -> str | None:
    if value is None:
        return None
    cleaned = str(value).strip()
    return cleaned or None
