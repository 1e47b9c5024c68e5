from __future__ import annotations

from collections.abc import Iterable

# Fingerprints known before the run started; never extended while the run is in progress.
KnownFingerprints = frozenset[str]


def snapshot(fingerprints: Iterable[str | None]) -> KnownFingerprints:
    return frozenset(value for value in fingerprints if value)


def is_duplicate(fingerprint: str, known: KnownFingerprints) -> bool:
    """
    Listings seen in earlier runs are skipped before any parsing or image work.
    Two candidates of the same run sharing a fingerprint are both kept.
    """
    return fingerprint in known
