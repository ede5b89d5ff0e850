#!/usr/bin/env python3
"""Tests for data file schema validation."""

from servicebook.validation import load_schema, validate_document, validate_file


class TestLoadSchema:
    """Tests for load_schema function."""

    def test_returns_dict(self):
        schema = load_schema()
        assert isinstance(schema, dict)

    def test_has_expected_structure(self):
        schema = load_schema()
        assert "vehicles" in schema["properties"]
        assert "records" in schema["properties"]


class TestValidateDocument:
    """Tests for validate_document."""

    def test_empty_document_is_valid(self):
        assert validate_document({}) == []

    def test_valid_document(self):
        data = {
            "vehicles": [{"id": "golf", "make": "Volkswagen", "model": "Golf", "year": 2017}],
            "records": [
                {
                    "id": "r1",
                    "vehicleId": "golf",
                    "date": "2024-01-01",
                    "mileage": 50000,
                    "serviceType": "Oil change",
                    "nextServiceDate": "2024-07-01",
                    "nextServiceMileage": 60000,
                    "isPlanned": False,
                }
            ],
        }
        assert validate_document(data) == []

    def test_negative_mileage_rejected(self):
        data = {
            "records": [
                {"id": "r1", "vehicleId": "golf", "date": "2024-01-01", "mileage": -5, "isPlanned": False}
            ]
        }
        errors = validate_document(data)
        assert errors
        assert any("Schema validation" in e for e in errors)
        assert any("records.0.mileage" in e for e in errors)

    def test_malformed_date_rejected(self):
        data = {"records": [{"id": "r1", "vehicleId": "golf", "date": "01.01.2024", "isPlanned": True}]}
        assert validate_document(data)

    def test_unknown_key_rejected(self):
        data = {"vehicles": [{"id": "golf", "make": "VW", "model": "Golf", "color": "red"}]}
        assert validate_document(data)


class TestValidateFile:
    """Tests for validate_file."""

    def test_valid_file(self, tmp_path):
        path = tmp_path / "garage.yaml"
        path.write_text("vehicles:\n  - id: golf\n    make: Volkswagen\n    model: Golf\n")
        assert validate_file(path) == []

    def test_empty_file_is_valid(self, tmp_path):
        path = tmp_path / "garage.yaml"
        path.write_text("")
        assert validate_file(path) == []

    def test_invalid_yaml_returns_parse_error(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("vehicles: [unclosed\n")
        errors = validate_file(path)
        assert any("YAML" in e for e in errors)

    def test_nonexistent_file_returns_error(self, tmp_path):
        errors = validate_file(tmp_path / "does_not_exist.yaml")
        assert len(errors) == 1
        assert errors[0].startswith("Error")
