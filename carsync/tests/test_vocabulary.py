from carsync.core.vocabulary import (
    BODY_TYPES,
    CLIMATE,
    COLORS,
    FUEL_TYPES,
    GEARBOXES,
    INTERIOR_MATERIALS,
    Vocabulary,
    normalize_value,
)


def test_normalize_value_tiers_on_plain_mapping():
    table = {"Benzin": "PETROL"}
    assert normalize_value("Benzin", table) == "PETROL"
    assert normalize_value("benzin", table) == "PETROL"
    assert normalize_value("Benzin Plus", table) == "PETROL"
    assert normalize_value("Strom", table) is None


def test_normalize_value_empty_inputs_return_none():
    assert normalize_value(None, FUEL_TYPES) is None
    assert normalize_value("", FUEL_TYPES) is None


def test_exact_match_beats_earlier_substring_entry():
    # "Hybrid" is listed first and is contained in the value, but the exact key wins.
    assert FUEL_TYPES.normalize("Hybrid (Diesel)") == "HYBRID_DIESEL"
    assert FUEL_TYPES.normalize("Plug-in-Hybrid") == "PLUGIN_HYBRID"


def test_case_insensitive_tier_beats_substring_tier():
    vocab = Vocabulary("test", {"Van": "VAN", "Van/Minibus": "MPV"})
    assert vocab.normalize("van/minibus") == "MPV"


def test_substring_tie_broken_by_table_order():
    vocab = Vocabulary("test", {"Rot": "RED", "Blau": "BLUE"})
    assert vocab.normalize("Blau mit Rot") == "RED"
    assert COLORS.normalize("Dunkelblau") == "BLUE"


def test_tables_map_observed_vocabulary():
    assert GEARBOXES.normalize("Automatik") == "AUTOMATIC"
    assert BODY_TYPES.normalize("Geländewagen") == "SUV"
    assert BODY_TYPES.normalize("SUV / Geländewagen / Pickup") == "SUV"
    assert CLIMATE.normalize("2-Zonen-Klimaautomatik") == "TWO_ZONE"
    assert INTERIOR_MATERIALS.normalize("Teilleder") == "PARTIAL_LEATHER"
    assert COLORS.normalize("Anthrazit") == "ANTHRACITE"
