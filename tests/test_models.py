import json
import math

import pytest

from app.exceptions import MalformedAttribute
from app.models.charging import (
    Charger,
    ChargerAttributes,
    Coordinates,
    SortKey,
    parse_coordinates,
    parse_number,
    parse_tags,
    parse_timestamp,
)


def test_coordinates_reject_out_of_range():
    with pytest.raises(ValueError):
        Coordinates(lat=91, lng=0)
    with pytest.raises(ValueError):
        Coordinates(lat=0, lng=-180.5)
    assert Coordinates(lat=-90, lng=180).lng == 180


@pytest.mark.parametrize(
    "raw,expected",
    [("distance", SortKey.DISTANCE), ("POWER", SortKey.POWER), (" price ", SortKey.PRICE),
     ("updated", SortKey.UPDATED), ("rating", SortKey.DISTANCE), (None, SortKey.DISTANCE),
     ("", SortKey.DISTANCE)],
)
def test_sort_key_parse(raw, expected):
    assert SortKey.parse(raw) is expected


def test_parse_number():
    assert parse_number("150", "powerKW").value == 150.0
    missing = parse_number(None, "powerKW")
    assert math.isnan(missing.value) and missing.ok

    bad = parse_number("fast", "powerKW")
    assert math.isnan(bad.value)
    assert isinstance(bad.error, MalformedAttribute)
    assert bad.error.field == "powerKW"

    assert not parse_number("inf", "powerKW").ok


def test_parse_timestamp():
    assert parse_timestamp("1700000000000", "updatedAt").value == 1700000000000
    assert parse_timestamp(None, "updatedAt").value is None
    result = parse_timestamp("yesterday", "updatedAt")
    assert result.value is None and not result.ok


def test_parse_tags():
    assert parse_tags('["Mall", "ATM"]', "amenities").value == ["Mall", "ATM"]
    assert parse_tags("", "amenities").value == []

    not_json = parse_tags("Mall, ATM", "amenities")
    assert not_json.value == [] and not not_json.ok

    not_list = parse_tags('{"a": 1}', "amenities")
    assert not_list.value == [] and not_list.error.reason == "not a list"


def test_parse_coordinates():
    assert parse_coordinates("1.304", "103.8318").value == Coordinates(1.304, 103.8318)
    assert parse_coordinates("1.304", None).value is None
    out_of_range = parse_coordinates("120", "10")
    assert out_of_range.value is None and not out_of_range.ok


def test_attributes_from_hash_collects_errors():
    attributes, errors = ChargerAttributes.from_hash({
        "name": "ION Orchard",
        "powerKW": "150",
        "pricePerKWh": "cheap",
        "amenities": "not-json",
        "updatedAt": "1700000000000",
        "status": "available",
    })

    assert attributes.name == "ION Orchard"
    assert attributes.power_kw == 150.0
    assert math.isnan(attributes.price_per_kwh)
    assert attributes.amenities == []
    assert attributes.status == "available"
    assert attributes.coords is None
    assert {error.field for error in errors} == {"pricePerKWh", "amenities"}


def test_attributes_from_empty_hash_defaults():
    attributes, errors = ChargerAttributes.from_hash({})

    assert errors == []
    assert attributes.name is None
    assert math.isnan(attributes.power_kw)
    assert attributes.amenities == [] and attributes.connectors == []
    assert attributes.updated_at is None


def test_charger_to_hash_layout():
    charger = Charger(
        id="sg-002",
        name="ION Orchard L5 EV Bays",
        address="2 Orchard Turn",
        coords=Coordinates(1.304, 103.8318),
        power_kw=150,
        price_per_kwh=0.55,
        updated_at=1700000000000,
        amenities=["Mall"],
    )

    mapping = charger.to_hash()

    assert mapping["powerKW"] == "150"
    assert mapping["pricePerKWh"] == "0.55"
    assert json.loads(mapping["amenities"]) == ["Mall"]
    assert mapping["lat"] == "1.304" and mapping["lng"] == "103.8318"
    assert "status" not in mapping and "connectors" not in mapping

    charger.status = "available"
    charger.connectors = ["CCS2"]
    mapping = charger.to_hash()
    assert mapping["status"] == "available"
    assert json.loads(mapping["connectors"]) == ["CCS2"]

    parsed, errors = ChargerAttributes.from_hash(mapping)
    assert errors == []
    assert parsed.power_kw == 150.0 and parsed.coords == Coordinates(1.304, 103.8318)
