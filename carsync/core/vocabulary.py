from __future__ import annotations

from collections.abc import Callable, Mapping

Rule = tuple[Callable[[str], bool], str]


class Vocabulary:
    """
    Closed mapping from source vocabulary to a canonical enumeration.

    Lookup tiers, first match wins: exact key, case-insensitive key, then any key
    contained in the value (case-insensitive). Within a tier, table order decides.
    """

    __slots__ = ("name", "entries", "rules")

    def __init__(self, name: str, entries: Mapping[str, str]) -> None:
        self.name = name
        self.entries = dict(entries)
        self.rules = _compile_rules(self.entries)

    def normalize(self, value: str | None) -> str | None:
        return resolve(value, self.rules)


def _compile_rules(entries: Mapping[str, str]) -> tuple[Rule, ...]:
    exact: list[Rule] = []
    folded: list[Rule] = []
    partial: list[Rule] = []
    for key, result in entries.items():
        needle = key.lower()
        exact.append((lambda value, key=key: value == key, result))
        folded.append((lambda value, needle=needle: value.lower() == needle, result))
        partial.append((lambda value, needle=needle: needle in value.lower(), result))
    return (*exact, *folded, *partial)


def resolve(value: str | None, rules: tuple[Rule, ...]) -> str | None:
    if not value:
        return None
    for predicate, result in rules:
        if predicate(value):
            return result
    return None


def normalize_value(value: str | None, table: Vocabulary | Mapping[str, str]) -> str | None:
    if isinstance(table, Vocabulary):
        return table.normalize(value)
    return resolve(value, _compile_rules(table))


FUEL_TYPES = Vocabulary(
    "fuel",
    {
        "Benzin": "PETROL",
        "Diesel": "DIESEL",
        "Elektro": "ELECTRIC",
        "Hybrid": "HYBRID",
        "Hybrid (Benzin)": "HYBRID_PETROL",
        "Hybrid (Benzin/Elektro)": "HYBRID_PETROL",
        "Hybrid (Diesel)": "HYBRID_DIESEL",
        "Plug-in-Hybrid": "PLUGIN_HYBRID",
        "LPG": "LPG",
        "CNG": "CNG",
        "Erdgas": "CNG",
        "Wasserstoff": "HYDROGEN",
    },
)

GEARBOXES = Vocabulary(
    "gearbox",
    {
        "Automatik": "AUTOMATIC",
        "Schaltgetriebe": "MANUAL",
        "Schaltung": "MANUAL",
        "Halbautomatik": "SEMI_AUTOMATIC",
    },
)

BODY_TYPES = Vocabulary(
    "body_type",
    {
        "Limousine": "SEDAN",
        "Kombi": "WAGON",
        "SUV": "SUV",
        "Geländewagen": "SUV",
        "Coupé": "COUPE",
        "Coupe": "COUPE",
        "Sportwagen/Coupé": "SPORTS_COUPE",
        "Sportwagen": "SPORTS",
        "Cabrio": "CONVERTIBLE",
        "Cabriolet": "CONVERTIBLE",
        "Roadster": "ROADSTER",
        "Kleinwagen": "COMPACT",
        "Van": "VAN",
        "Van/Minibus": "MPV",
        "Pickup": "PICKUP",
        "Andere": "OTHER",
    },
)

DRIVE_TYPES = Vocabulary(
    "drive_type",
    {
        "Verbrennungsmotor": "ICE",
        "Elektro": "ELECTRIC",
        "Elektroantrieb": "ELECTRIC",
        "Hybrid": "HYBRID",
        "Hybridantrieb": "HYBRID",
        "Plug-in-Hybrid": "PLUGIN_HYBRID",
    },
)

CLIMATE = Vocabulary(
    "climate",
    {
        "Klimaanlage": "AUTOMATIC",
        "Klimaautomatik": "AUTOMATIC",
        "2-Zonen-Klimaautomatik": "TWO_ZONE",
        "3-Zonen-Klimaautomatik": "THREE_ZONE",
        "4-Zonen-Klimaautomatik": "FOUR_ZONE",
        "Manuelle Klimaanlage": "MANUAL",
    },
)

COLORS = Vocabulary(
    "color",
    {
        "Weiß": "WHITE",
        "Schwarz": "BLACK",
        "Silber": "SILVER",
        "Grau": "GRAY",
        "Rot": "RED",
        "Blau": "BLUE",
        "Grün": "GREEN",
        "Braun": "BROWN",
        "Beige": "BEIGE",
        "Gold": "GOLD",
        "Orange": "ORANGE",
        "Gelb": "YELLOW",
        "Violett": "PURPLE",
        "Bronze": "BRONZE",
        "Anthrazit": "ANTHRACITE",
    },
)

INTERIOR_MATERIALS = Vocabulary(
    "interior_material",
    {
        "Leder": "LEATHER",
        "Vollleder": "FULL_LEATHER",
        "Teilleder": "PARTIAL_LEATHER",
        "Stoff": "FABRIC",
        "Alcantara": "ALCANTARA",
        "Velours": "VELOUR",
    },
)
