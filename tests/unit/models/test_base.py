"""Unit tests for base model functionality."""

from decimal import Decimal

import pytest
from pydantic import ValidationError

from flight_billing.models.base import BaseDataModel, to_decimal


class TestBaseModelSerialization:
    """Test serialization/deserialization for models."""

    def test_model_can_be_created_with_valid_data(self):
        """Test that a simple model can be created with valid data."""

        class TestModel(BaseDataModel):
            name: str
            value: int

        model = TestModel(name="test", value=42)
        assert model.name == "test"
        assert model.value == 42

    def test_model_to_dict(self):
        """Test model serialization to dictionary."""

        class TestModel(BaseDataModel):
            name: str
            amount: Decimal

        model = TestModel(name="Landing fee", amount=Decimal("25.00"))
        assert model.model_dump() == {"name": "Landing fee", "amount": Decimal("25.00")}

    def test_model_from_dict(self):
        """Test model deserialization from dictionary."""

        class TestModel(BaseDataModel):
            name: str
            value: int

        model = TestModel.model_validate({"name": "test", "value": 42})
        assert model.name == "test"
        assert model.value == 42

    def test_model_is_frozen(self):
        """Test that models cannot be mutated in place."""

        class TestModel(BaseDataModel):
            value: int

        model = TestModel(value=1)
        with pytest.raises(ValidationError):
            model.value = 2

        assert model.model_copy(update={"value": 2}).value == 2
        assert model.value == 1

    def test_model_rejects_unknown_fields(self):
        """Test that extra fields are forbidden."""

        class TestModel(BaseDataModel):
            value: int

        with pytest.raises(ValidationError):
            TestModel(value=1, other="x")

    def test_model_validation_error_on_invalid_type(self):
        """Test that validation errors are raised for invalid types."""

        class TestModel(BaseDataModel):
            value: int

        with pytest.raises(ValidationError) as exc_info:
            TestModel(value="not an int")

        assert "validation error" in str(exc_info.value).lower()


class TestToDecimal:
    """Test Decimal coercion."""

    def test_decimal_passes_through(self):
        value = Decimal("1.50")
        assert to_decimal(value) is value

    def test_float_has_no_binary_artefacts(self):
        """Test that floats are converted through their string form."""
        assert to_decimal(101.5) == Decimal("101.5")
        assert str(to_decimal(0.1)) == "0.1"

    def test_int_and_string(self):
        assert to_decimal(3) == Decimal("3")
        assert to_decimal("150.00") == Decimal("150.00")

    def test_invalid_string_raises(self):
        with pytest.raises(ValueError, match="Cannot convert"):
            to_decimal("abc")

    def test_bool_raises(self):
        """Test that booleans are not treated as numbers."""
        with pytest.raises(ValueError):
            to_decimal(True)
