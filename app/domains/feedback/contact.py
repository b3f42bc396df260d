"""Contact field validation.

The contact field holds either a phone number or an email address. The rule is
deliberately narrow:

- With whitespace removed, anything made of digits, hyphens and parentheses
  that is at least 10 characters long is treated as a phone number and must
  contain exactly 10 digits.
- Anything else must be an email address on the single registered domain
  (case-insensitive). Other domains are rejected; there is no generic email
  fallback.
"""

import re
from dataclasses import dataclass, field

from app.core.config import settings
from app.core.exceptions import InvalidContactError
from app.domains.feedback.models import ContactKind

PHONE_SHAPE = re.compile(r"^[\d\s\-()]{10,}$")
PHONE_DIGITS = 10

REASON_PHONE_DIGITS = "phone digit count"
REASON_UNSUPPORTED_DOMAIN = "unsupported domain"


@dataclass(frozen=True)
class ContactCheck:
    """Outcome of validating one contact value."""

    valid: bool
    kind: ContactKind | None = None
    reason: str | None = None
    errors: dict[str, str] = field(default_factory=dict)

    @property
    def message(self) -> str | None:
        return self.errors.get("contact")


def _email_pattern(domain: str) -> re.Pattern:
    return re.compile(rf"^[^\s@]+@{re.escape(domain)}$", re.IGNORECASE)


def classify_contact(contact: str) -> ContactKind:
    """Return which validation branch a contact value falls into."""
    if PHONE_SHAPE.match(re.sub(r"\s", "", contact)):
        return ContactKind.PHONE
    return ContactKind.EMAIL


def validate_contact(contact: str, domain: str | None = None) -> ContactCheck:
    """Validate a raw contact value as a phone number or restricted email."""
    domain = domain or settings.contact_email_domain

    if classify_contact(contact) == ContactKind.PHONE:
        digits = re.sub(r"\D", "", contact)
        if len(digits) != PHONE_DIGITS:
            return ContactCheck(
                valid=False,
                kind=ContactKind.PHONE,
                reason=REASON_PHONE_DIGITS,
                errors={"contact": f"Phone number must be exactly {PHONE_DIGITS} digits"},
            )
        return ContactCheck(valid=True, kind=ContactKind.PHONE)

    if not _email_pattern(domain).match(contact):
        return ContactCheck(
            valid=False,
            kind=None,
            reason=REASON_UNSUPPORTED_DOMAIN,
            errors={"contact": f"Email must be a valid @{domain} address"},
        )
    return ContactCheck(valid=True, kind=ContactKind.EMAIL)


def ensure_valid_contact(contact: str, domain: str | None = None) -> ContactKind:
    """Validate a contact value, raising InvalidContactError on failure."""
    check = validate_contact(contact, domain)
    if not check.valid:
        raise InvalidContactError(message=check.message, reason=check.reason)
    return check.kind
