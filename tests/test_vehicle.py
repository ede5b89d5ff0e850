#!/usr/bin/env python3
"""Tests for Vehicle class."""

from servicebook import Vehicle


class TestVehicle:
    """Tests for Vehicle attributes and name."""

    def test_required_attributes(self):
        vehicle = Vehicle("golf", "Volkswagen", "Golf")
        assert vehicle.id == "golf"
        assert vehicle.make == "Volkswagen"
        assert vehicle.model == "Golf"
        assert vehicle.year is None
        assert vehicle.trim is None

    def test_name_with_year_and_trim(self):
        vehicle = Vehicle("golf", "Volkswagen", "Golf", 2017, "GTI")
        assert vehicle.name == "2017 Volkswagen Golf GTI"

    def test_name_without_year(self):
        vehicle = Vehicle("lada", "Lada", "Vesta")
        assert vehicle.name == "Lada Vesta"

    def test_equality_by_fields(self):
        assert Vehicle("a", "Lada", "Vesta", 2020) == Vehicle("a", "Lada", "Vesta", 2020)
        assert Vehicle("a", "Lada", "Vesta") != Vehicle("b", "Lada", "Vesta")
