"""
Input validation utilities for user registration.
Each validator returns an error message, or None when the value is acceptable.
"""
import re
from typing import Any, Dict, Optional

from foodloop.models.user import UserRole

PHONE_PATTERN = re.compile(r"^\+?[0-9]{10,15}$")
PHONE_SEPARATORS = re.compile(r"[\s\-()]")


def clean_phone(phone: str) -> str:
    """Strip spaces, dashes and parentheses"""
    return PHONE_SEPARATORS.sub("", phone)


def validate_name(name: Any) -> Optional[str]:
    if not name or not isinstance(name, str):
        return "Name is required"
    if len(name.strip()) < 2:
        return "Name must be at least 2 characters"
    if len(name.strip()) > 255:
        return "Name must be less than 255 characters"
    return None


def validate_phone(phone: Any) -> Optional[str]:
    if not phone or not isinstance(phone, str):
        return "Phone number is required"
    if not PHONE_PATTERN.match(clean_phone(phone)):
        return "Please enter a valid phone number (10-15 digits)"
    return None


def validate_role(role: Any) -> Optional[str]:
    valid_roles = {r.value for r in UserRole}
    if isinstance(role, UserRole):
        role = role.value
    if not role or role not in valid_roles:
        return "Role must be one of: donor, receiver, or volunteer"
    return None


def validate_registration(name: Any, phone: Any, role: Any) -> Dict[str, str]:
    """Collect field-level errors for a new user's profile"""
    errors = {}
    for field, error in (
        ("name", validate_name(name)),
        ("phone", validate_phone(phone)),
        ("role", validate_role(role)),
    ):
        if error:
            errors[field] = error
    return errors
