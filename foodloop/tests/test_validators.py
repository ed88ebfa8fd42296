"""
Registration validator tests
"""
import pytest

from foodloop.utils.validators import (
    clean_phone, validate_name, validate_phone, validate_role, validate_registration,
)


@pytest.mark.parametrize("phone", [
    "+919876543210",
    "9876543210",
    "+1 (415) 555-0132",
    "022-2345-6789",
])
def test_valid_phones(phone):
    assert validate_phone(phone) is None


@pytest.mark.parametrize("phone", ["", None, "12345", "+91 98765 4321x", "+1234567890123456", "++919876543210"])
def test_invalid_phones(phone):
    assert validate_phone(phone) is not None


def test_clean_phone():
    assert clean_phone("+1 (415) 555-0132") == "+14155550132"


def test_name_rules():
    assert validate_name("Al") is None
    assert validate_name(" A ") == "Name must be at least 2 characters"
    assert validate_name("") == "Name is required"
    assert validate_name(42) == "Name is required"
    assert validate_name("x" * 256) == "Name must be less than 255 characters"


def test_role_rules():
    for role in ("donor", "receiver", "volunteer"):
        assert validate_role(role) is None
    assert validate_role("admin") is not None
    assert validate_role(None) is not None


def test_validate_registration_collects_all_fields():
    assert validate_registration("Asha", "+919876543210", "donor") == {}
    errors = validate_registration(None, None, None)
    assert set(errors) == {"name", "phone", "role"}
