from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


# Source-language field text keyed by semantic field name; any key may be absent.
RawListingFields = dict[str, Any]


@dataclass(frozen=True, slots=True)
class Dealer:
    name: str
    url: str


@dataclass(frozen=True, slots=True)
class ListingIdentity:
    make: str | None
    model: str | None
    mileage: int | None
    first_registration: str | None
    fingerprint: str


@dataclass(frozen=True, slots=True)
class NormalizedListing:
    fingerprint: str
    slug: str
    make: str | None
    model: str | None
    subtitle: str | None = None
    series: str | None = None
    variant: str | None = None
    body_type: str | None = None
    drive_type: str | None = None
    fuel: str | None = None
    gearbox: str | None = None
    power_kw: int | None = None
    power_ps: int | None = None
    cubic_capacity: int | None = None
    cylinders: int | None = None
    mileage: int | None = None
    first_registration: str | None = None  # YYYYMM
    num_previous_owners: int | None = None
    condition: str = "USED"  # NEW | USED
    accident_damaged: bool | None = None
    num_doors: int | None = None
    num_seats: int | None = None
    exterior_color: str | None = None
    exterior_color_manufacturer: str | None = None
    metallic: bool = False
    interior_color: str | None = None
    interior_material: str | None = None
    climate: str | None = None
    airbags: str | None = None
    emission_class: str | None = None
    emission_sticker: str | None = None
    hu_valid_until: str | None = None
    tank_size: int | None = None
    weight: int | None = None
    price: int | None = None
    currency: str = "EUR"
    price_type: str = "FIXED"
    images: tuple[str, ...] = ()
    features: tuple[str, ...] = ()
    source_url: str | None = field(default=None, repr=False)
