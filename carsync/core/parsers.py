from __future__ import annotations

import re
from typing import Any

from carsync.core.vocabulary import COLORS, INTERIOR_MATERIALS


KNOWN_MAKES = (
    "Mercedes-Benz",
    "BMW",
    "Audi",
    "Volkswagen",
    "Porsche",
    "Ford",
    "Opel",
    "Toyota",
    "Honda",
    "Mazda",
    "Nissan",
    "Hyundai",
    "Kia",
    "Volvo",
    "Skoda",
    "Seat",
    "Renault",
    "Peugeot",
    "Citroën",
    "Fiat",
    "Alfa Romeo",
    "Jaguar",
    "Land Rover",
    "Range Rover",
    "Mini",
    "Tesla",
    "Lexus",
    "Infiniti",
)

METALLIC_PATTERN = re.compile(r"\s*metallic\s*", re.IGNORECASE)
KW_PATTERN = re.compile(r"(\d+)\s*kW")
PS_PATTERN = re.compile(r"(\d+)\s*PS")
REGISTRATION_PATTERN = re.compile(r"(\d{2})/(\d{4})")
NON_DIGIT_PATTERN = re.compile(r"\D")


def parse_color(color_text: str | None) -> tuple[str | None, bool]:
    """
    Split a color string into (canonical color, metallic flag).
    """
    if not color_text:
        return None, False
    metallic = "metallic" in color_text.lower()
    color_only = METALLIC_PATTERN.sub(" ", color_text, count=1).strip()
    return COLORS.normalize(color_only), metallic


def parse_interior(interior_text: str | None) -> tuple[str | None, str | None]:
    """
    Return (material, color) from comma separated interior text.

    Each token is tested against both tables independently, so one token may fill both.
    """
    if not interior_text:
        return None, None
    material: str | None = None
    color: str | None = None
    for part in (token.strip() for token in interior_text.split(",")):
        if material is None:
            material = INTERIOR_MATERIALS.normalize(part)
        if color is None:
            color = COLORS.normalize(part)
    return material, color


def parse_numeric(value: Any) -> int | None:
    if value is None or value == "":
        return None
    digits = NON_DIGIT_PATTERN.sub("", str(value))
    if not digits:
        return None
    try:
        return int(digits, 10)
    except ValueError:
        return None


def parse_power(power_text: str | None) -> tuple[int | None, int | None]:
    """
    Return (kW, PS) from text such as "110 kW (150 PS)".
    """
    if not power_text:
        return None, None
    kw_match = KW_PATTERN.search(power_text)
    ps_match = PS_PATTERN.search(power_text)
    return (
        int(kw_match.group(1)) if kw_match else None,
        int(ps_match.group(1)) if ps_match else None,
    )


def parse_registration(registration_text: str | None) -> str | None:
    # MM/YYYY becomes YYYYMM; anything else passes through untouched.
    if not registration_text:
        return None
    match = REGISTRATION_PATTERN.search(registration_text)
    if match:
        return f"{match.group(2)}{match.group(1)}"
    return registration_text


def registration_year(first_registration: str | None) -> str | None:
    if not first_registration:
        return None
    return first_registration[:4]


def parse_make_model(title: str | None) -> tuple[str | None, str | None]:
    """
    Split a listing title into (make, model).

    Known manufacturers are matched as prefixes in list order so multi-word names
    such as "Alfa Romeo" stay intact; otherwise the first word is the make.
    """
    if not title:
        return None, None
    for make in KNOWN_MAKES:
        if title.startswith(make):
            return make, title[len(make):].strip() or None
    parts = title.split(" ")
    return parts[0] or None, " ".join(parts[1:]).strip() or None


def parse_condition(condition_text: str | None) -> str:
    if condition_text and "neuwagen" in condition_text.lower():
        return "NEW"
    return "USED"


def parse_accident_damaged(condition_text: str | None) -> bool | None:
    # Absence of "unfallfrei" means unknown, not damaged.
    if condition_text and "unfallfrei" in condition_text.lower():
        return False
    return None
