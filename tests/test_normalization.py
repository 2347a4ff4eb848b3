from __future__ import annotations

import pytest

from pyfuelprices.ingestion.normalize import normalize_district_key, normalize_location_key
from pyfuelprices.models.prices import FuelType


@pytest.mark.parametrize("raw", ["İstanbul", "ISTANBUL", "istanbul (Avrupa)", "  İSTANBUL  ", "Istanbul [merkez]"])
def test_location_key_spellings_collapse_to_one_key(raw: str) -> None:
    assert normalize_location_key(raw) == "ISTANBUL"


def test_location_key_folds_turkish_letters() -> None:
    assert normalize_location_key("Şanlıurfa") == "SANLIURFA"
    assert normalize_location_key("Muğla") == "MUGLA"
    assert normalize_location_key("Çanakkale") == "CANAKKALE"
    assert normalize_location_key("Gümüşhane") == "GUMUSHANE"
    assert normalize_location_key("Iğdır") == "IGDIR"


def test_location_key_drops_punctuation_and_spaces() -> None:
    assert normalize_location_key("Afyon-karahisar") == "AFYONKARAHISAR"
    assert normalize_location_key("Kahraman Maraş") == "KAHRAMANMARAS"


def test_location_key_applies_aliases() -> None:
    assert normalize_location_key("İçel") == "MERSIN"
    assert normalize_location_key("Urfa") == "SANLIURFA"
    assert normalize_location_key("izmit") == "KOCAELI"


@pytest.mark.parametrize("raw", ["", "   ", None, "()", "---"])
def test_location_key_unusable_input_is_empty(raw: object) -> None:
    assert normalize_location_key(raw) == ""


def test_location_key_is_idempotent() -> None:
    once = normalize_location_key("Kırşehir (merkez)")
    assert normalize_location_key(once) == once == "KIRSEHIR"


def test_district_key_keeps_qualifier() -> None:
    assert normalize_district_key("İstanbul (Avrupa)") == "ISTANBUL_AVRUPA"
    assert normalize_district_key("istanbul  (Anadolu)") == "ISTANBUL_ANADOLU"
    assert normalize_district_key("Ankara") == "ANKARA"


def test_district_key_unusable_input_is_empty() -> None:
    assert normalize_district_key(None) == ""
    assert normalize_district_key(" ( ) ") == ""


@pytest.mark.parametrize(
    ("label", "expected"),
    [
        ("Kurşunsuz Benzin 95", FuelType.GASOLINE),
        ("Motorin", FuelType.DIESEL),
        ("Eurodiesel", FuelType.DIESEL),
        ("Otogaz (LPG)", FuelType.LPG),
        ("gasoline", FuelType.GASOLINE),
        ("İl", None),
    ],
)
def test_fuel_type_from_label(label: str, expected: FuelType | None) -> None:
    assert FuelType.from_label(label) == expected
