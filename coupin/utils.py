"""
Phone number helpers.

Every stored phone number is E.164 ("+27832091122"). Lookups accept any of
the local spellings customers type in ("083 209 1122", "(083) 209-1122",
"27832091122", "832091122") and compare on the normalized form.
"""

import logging

import phonenumbers
from phonenumbers import NumberParseException, PhoneNumberFormat

logger = logging.getLogger(__name__)


def _default_region(region: str | None) -> str:
    if region:
        return region.upper()
    from coupin.conf import coupin_settings

    return coupin_settings.DEFAULT_REGION


def _country_code(region: str) -> str:
    return str(phonenumbers.country_code_for_region(region) or "")


def _fallback_normalize(digits: str, region: str) -> str:
    """Digit rules used when the number cannot be parsed."""
    cc = _country_code(region)
    if cc and digits.startswith(cc):
        return f"+{digits}"
    if digits.startswith("0"):
        return f"+{cc}{digits[1:]}"
    return f"+{cc}{digits}"


def normalize_phone(value: str, region: str | None = None) -> str:
    """
    Normalize a phone number to E.164.

    Args:
        value: Phone number in any common format
        region: ISO region used for national numbers (default: DEFAULT_REGION)

    Returns:
        E.164 string, or "" for empty input
    """
    if not value:
        return ""

    region = _default_region(region)
    raw = value.strip()
    digits = "".join(filter(str.isdigit, raw))
    if not digits:
        return ""

    try:
        parsed = phonenumbers.parse(raw, region)
    except NumberParseException:
        parsed = None

    if parsed is not None and phonenumbers.is_possible_number(parsed):
        return phonenumbers.format_number(parsed, PhoneNumberFormat.E164)

    normalized = _fallback_normalize(digits, region)
    logger.debug("Phone %r not parseable, fell back to %s", value, normalized)
    return normalized


def is_valid_phone(value: str, region: str | None = None) -> bool:
    """True if value normalizes to a valid number for its country."""
    normalized = normalize_phone(value, region)
    if not normalized:
        return False
    try:
        return phonenumbers.is_valid_number(phonenumbers.parse(normalized, None))
    except NumberParseException:
        return False


def format_phone_for_display(value: str, region: str | None = None) -> str:
    """National form with trunk prefix: +27832091122 -> 0832091122."""
    normalized = normalize_phone(value, region)
    if not normalized:
        return ""
    prefix = f"+{_country_code(_default_region(region))}"
    if normalized.startswith(prefix):
        return f"0{normalized[len(prefix):]}"
    return value


def format_phone_with_spaces(value: str, region: str | None = None) -> str:
    """Readable national form: 083 209 1122."""
    local = format_phone_for_display(value, region)
    if not local or len(local) < 10:
        return local
    return f"{local[:3]} {local[3:6]} {local[6:]}"


def phone_numbers_match(first: str, second: str, region: str | None = None) -> bool:
    """True if both numbers normalize to the same E.164 value."""
    if not first or not second:
        return False
    return normalize_phone(first, region) == normalize_phone(second, region)


def phone_alternatives(value: str, region: str | None = None) -> list[str]:
    """
    Spellings under which a number may have been stored.

    Returns:
        [E.164, E.164 without "+", national with 0, national without 0]
    """
    normalized = normalize_phone(value, region)
    if not normalized:
        return []
    prefix = f"+{_country_code(_default_region(region))}"
    national = normalized[len(prefix):] if normalized.startswith(prefix) else normalized[1:]
    return [
        normalized,
        normalized.lstrip("+"),
        f"0{national}",
        national,
    ]
