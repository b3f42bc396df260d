"""Contact field validation tests."""

import pytest

from app.core.exceptions import InvalidContactError
from app.domains.feedback.contact import (
    REASON_PHONE_DIGITS,
    REASON_UNSUPPORTED_DOMAIN,
    classify_contact,
    ensure_valid_contact,
    validate_contact,
)
from app.domains.feedback.models import ContactKind


@pytest.mark.parametrize(
    "contact",
    [
        "5551234567",
        "555-123-4567",
        "(555) 123-4567",
        "555 123 4567",
        " 555 123 4567 ",
    ],
)
def test_ten_digit_phone_in_any_accepted_form_passes(contact):
    check = validate_contact(contact, domain="gmail.com")
    assert check.valid
    assert check.kind == ContactKind.PHONE
    assert check.errors == {}


def test_nine_digit_phone_is_rejected_with_digit_count_message():
    check = validate_contact("555-123-456", domain="gmail.com")

    assert not check.valid
    assert check.kind == ContactKind.PHONE
    assert check.reason == REASON_PHONE_DIGITS
    assert check.errors == {"contact": "Phone number must be exactly 10 digits"}


def test_eleven_digit_phone_is_rejected():
    check = validate_contact("1-555-123-4567", domain="gmail.com")
    assert not check.valid
    assert check.reason == REASON_PHONE_DIGITS


@pytest.mark.parametrize("contact", ["jane@gmail.com", "Jane.Doe@GMAIL.COM", "x+tag@Gmail.com"])
def test_registered_domain_email_passes_case_insensitively(contact):
    check = validate_contact(contact, domain="gmail.com")
    assert check.valid
    assert check.kind == ContactKind.EMAIL


@pytest.mark.parametrize(
    "contact",
    [
        "jane@yahoo.com",
        "jane@gmail.com.evil.org",
        "jane@mail.gmail.co",
        "jane doe@gmail.com",
        "@gmail.com",
        "12345",
        "not a contact",
    ],
)
def test_everything_else_is_rejected_as_unsupported_domain(contact):
    check = validate_contact(contact, domain="gmail.com")

    assert not check.valid
    assert check.reason == REASON_UNSUPPORTED_DOMAIN
    assert check.message == "Email must be a valid @gmail.com address"


def test_domain_is_configurable():
    assert validate_contact("ops@example.org", domain="example.org").valid
    assert not validate_contact("ops@gmail.com", domain="example.org").valid


def test_classify_contact():
    assert classify_contact("(555) 123-4567") == ContactKind.PHONE
    assert classify_contact("jane@gmail.com") == ContactKind.EMAIL


def test_ensure_valid_contact_raises_field_keyed_error():
    with pytest.raises(InvalidContactError) as exc_info:
        ensure_valid_contact("555-123-456", domain="gmail.com")

    exc = exc_info.value
    assert exc.status_code == 422
    assert exc.error_code == "INVALID_CONTACT"
    assert exc.details["field"] == "contact"
    assert exc.details["errors"] == {"contact": "Phone number must be exactly 10 digits"}


def test_ensure_valid_contact_returns_kind():
    assert ensure_valid_contact("555-123-4567", domain="gmail.com") == ContactKind.PHONE
