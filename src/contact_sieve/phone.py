"""Vietnamese mobile numbers — digit extraction, local form, carrier prefixes."""

from __future__ import annotations

import re

from contact_sieve.text import cell_text

COUNTRY_CODE = "84"
LOCAL_LENGTH = 10

CARRIER_PREFIXES: dict[str, tuple[str, ...]] = {
    "Viettel": (
        "032", "033", "034", "035", "036", "037", "038", "039", "086", "096", "097", "098",
    ),
    "VinaPhone": ("081", "082", "083", "084", "085", "088", "091", "094"),
    "MobiFone": ("070", "076", "077", "078", "079", "089", "090", "093"),
    "Vietnamobile": ("056", "058", "092"),
    "Gmobile": ("059", "099"),
}

ALLOWED_PREFIXES: frozenset[str] = frozenset(
    prefix for prefixes in CARRIER_PREFIXES.values() for prefix in prefixes
)

_PREFIX_CARRIER: dict[str, str] = {
    prefix: carrier
    for carrier, prefixes in CARRIER_PREFIXES.items()
    for prefix in prefixes
}

_NON_DIGIT_RE = re.compile(r"[^0-9]")


def extract_digits(value: object) -> str:
    """Return the decimal digits of *value* in order (``None`` -> ``""``)."""
    return _NON_DIGIT_RE.sub("", cell_text(value))


def to_local_ten_digits(digits: str) -> str:
    """Rewrite ``84xxxxxxxxx`` (11 digits) to ``0xxxxxxxxx``; anything else is unchanged."""
    if len(digits) == LOCAL_LENGTH + 1 and digits.startswith(COUNTRY_CODE):
        return "0" + digits[len(COUNTRY_CODE):]
    return digits


def local_phone(value: object) -> str:
    return to_local_ten_digits(extract_digits(value))


def is_valid_phone(value: object) -> bool:
    """True when *value* is a ten-digit local number with a known carrier prefix."""
    normalized = local_phone(value)
    if len(normalized) != LOCAL_LENGTH:
        return False
    return normalized[:3] in ALLOWED_PREFIXES


def carrier_for(value: object) -> str | None:
    """Return the carrier owning a valid number, or ``None``."""
    if not is_valid_phone(value):
        return None
    return _PREFIX_CARRIER[local_phone(value)[:3]]
