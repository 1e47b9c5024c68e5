from carsync.core.parsers import (
    parse_accident_damaged,
    parse_color,
    parse_condition,
    parse_interior,
    parse_make_model,
    parse_numeric,
    parse_power,
    parse_registration,
    registration_year,
)


def test_parse_color_splits_metallic_marker():
    assert parse_color("Schwarz Metallic") == ("BLACK", True)
    assert parse_color("Schwarz") == ("BLACK", False)
    assert parse_color("grau metallic") == ("GRAY", True)
    assert parse_color(None) == (None, False)


def test_parse_color_unknown_color_keeps_flag():
    assert parse_color("Mystic Metallic") == (None, True)


def test_parse_interior_assigns_first_match_per_role():
    assert parse_interior("Vollleder, Schwarz") == ("FULL_LEATHER", "BLACK")
    assert parse_interior("Stoff, Grau, Leder, Beige") == ("FABRIC", "GRAY")
    assert parse_interior(None) == (None, None)


def test_parse_interior_token_can_fill_both_roles():
    assert parse_interior("Leder Schwarz") == ("LEATHER", "BLACK")


def test_parse_numeric_strips_non_digits():
    assert parse_numeric("85.000 km") == 85000
    assert parse_numeric("1.995 cm³") == 1995
    assert parse_numeric("0") == 0
    assert parse_numeric("k.A.") is None
    assert parse_numeric("") is None
    assert parse_numeric(None) is None


def test_parse_power_reads_both_units_independently():
    assert parse_power("140 kW (190 PS)") == (140, 190)
    assert parse_power("140kW") == (140, None)
    assert parse_power("190 PS") == (None, 190)
    assert parse_power("unbekannt") == (None, None)
    assert parse_power(None) == (None, None)


def test_parse_registration_reformats_month_year():
    assert parse_registration("03/2021") == "202103"
    assert parse_registration("2021") == "2021"
    assert parse_registration("202103") == "202103"
    assert parse_registration(None) is None
    assert registration_year("202103") == "2021"
    assert registration_year(None) is None


def test_parse_make_model_prefers_known_multiword_makes():
    assert parse_make_model("Mercedes-Benz C 200") == ("Mercedes-Benz", "C 200")
    assert parse_make_model("Alfa Romeo Giulia Veloce") == ("Alfa Romeo", "Giulia Veloce")
    assert parse_make_model("Land Rover Defender 110") == ("Land Rover", "Defender 110")


def test_parse_make_model_falls_back_to_first_word():
    assert parse_make_model("Cupra Formentor VZ") == ("Cupra", "Formentor VZ")
    assert parse_make_model("Dacia") == ("Dacia", None)
    assert parse_make_model("") == (None, None)


def test_condition_and_accident_flags():
    assert parse_condition("Neuwagen") == "NEW"
    assert parse_condition("Gebrauchtwagen, Unfallfrei") == "USED"
    assert parse_condition(None) == "USED"
    assert parse_accident_damaged("Gebrauchtwagen, Unfallfrei") is False
    assert parse_accident_damaged("Gebrauchtwagen") is None
    assert parse_accident_damaged(None) is None
