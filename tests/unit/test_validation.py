"""Field normalization for customer and product payloads."""
import pytest

from customer_registry.services.customer_store import validate_customer_fields, validate_product_fields
from customer_registry.utils.errors import ValidationError

pytestmark = [pytest.mark.unit]


def test_customer_fields_are_trimmed_and_optional_blanks_become_null(jane_doe):
    values = validate_customer_fields({**jane_doe, "name": "  Jane Doe ", "email": "   "})
    assert values["name"] == "Jane Doe"
    assert values["email"] is None
    assert values["passport_id"] is None
    assert values["aadhar_id"] == "123456789012"


@pytest.mark.parametrize("missing", ["name", "age", "address"])
def test_mandatory_customer_fields(jane_doe, missing):
    payload = {k: v for k, v in jane_doe.items() if k != missing}
    with pytest.raises(ValidationError) as exc:
        validate_customer_fields(payload)
    assert exc.value.message == "Name, age, and address are mandatory"


@pytest.mark.parametrize("age", [0, -3, "34", 3.5, True, 2**31, 10**20])
def test_age_must_be_a_positive_integer(jane_doe, age):
    with pytest.raises(ValidationError):
        validate_customer_fields({**jane_doe, "age": age})


def test_age_upper_bound_is_accepted(jane_doe):
    assert validate_customer_fields({**jane_doe, "age": 2**31 - 1})["age"] == 2**31 - 1


def test_at_least_one_id_document_required(jane_doe):
    payload = {**jane_doe, "aadhar_id": "  "}
    with pytest.raises(ValidationError) as exc:
        validate_customer_fields(payload)
    assert "At least one ID document" in exc.value.message


def test_any_single_id_document_is_enough(jane_doe):
    payload = {k: v for k, v in jane_doe.items() if k != "aadhar_id"}
    values = validate_customer_fields({**payload, "driving_license_id": "KA0120230001234"})
    assert values["driving_license_id"] == "KA0120230001234"


def test_overlong_field_rejected(jane_doe):
    with pytest.raises(ValidationError) as exc:
        validate_customer_fields({**jane_doe, "phone_number": "9" * 21})
    assert exc.value.details == {"field": "phone_number"}


def test_non_string_identifier_rejected(jane_doe):
    with pytest.raises(ValidationError):
        validate_customer_fields({**jane_doe, "aadhar_id": 123456789012})


def test_payload_must_be_a_mapping():
    with pytest.raises(ValidationError):
        validate_customer_fields(["Jane Doe", 34])


def test_product_fields_valid():
    values = validate_product_fields(
        {"customer_id": 1234567890, "product_name": " Laptop ", "quantity": 1, "price": 999})
    assert values == {
        "customer_id": 1234567890,
        "product_name": "Laptop",
        "quantity": 1,
        "price": 999.0,
    }


@pytest.mark.parametrize("override", [
    {"customer_id": None},
    {"product_name": ""},
    {"quantity": 0},
    {"quantity": 1.5},
    {"quantity": 2**31},
    {"customer_id": -5},
    {"price": 0},
    {"price": -10.0},
    {"price": float("nan")},
])
def test_product_fields_invalid(override):
    payload = {"customer_id": 1234567890, "product_name": "Laptop", "quantity": 1, "price": 999.99}
    with pytest.raises(ValidationError) as exc:
        validate_product_fields({**payload, **override})
    assert exc.value.message == "All product fields are required and must be valid"
