from __future__ import annotations

import hashlib
import re
import secrets
import unicodedata
from typing import Any

from carsync.core.models import ListingIdentity, RawListingFields
from carsync.core.parsers import parse_make_model, parse_numeric, parse_registration


FINGERPRINT_DELIMITER = "|"
SLUG_SUFFIX_BYTES = 4


def fingerprint(make: str | None, model: str | None, mileage: Any, first_registration: str | None) -> str:
    """
    Stable listing identity over (make, model, mileage, first registration).

    MD5 matches the digests already stored in listings.fingerprint.
    """
    parts = [str(value) if value else "" for value in (make, model, mileage, first_registration)]
    serialized = FINGERPRINT_DELIMITER.join(parts)
    return hashlib.md5(serialized.encode("utf-8")).hexdigest()


def slug(make: str | None, model: str | None, year: str | None) -> str:
    base = f"{make or ''}-{model or ''}-{year or 'unknown'}"
    folded = unicodedata.normalize("NFKD", base).encode("ascii", "ignore").decode("ascii")
    cleaned = re.sub(r"[^a-z0-9]+", "-", folded.lower()).strip("-")
    return f"{cleaned}-{secrets.token_hex(SLUG_SUFFIX_BYTES)}"


def identify(raw: RawListingFields) -> ListingIdentity:
    make, model = parse_make_model(raw.get("title"))
    mileage = parse_numeric(raw.get("mileage"))
    first_registration = parse_registration(raw.get("first_registration"))
    return ListingIdentity(
        make=make,
        model=model,
        mileage=mileage,
        first_registration=first_registration,
        fingerprint=fingerprint(make, model, mileage, first_registration),
    )
