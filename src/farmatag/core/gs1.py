"""
GS1 Application Identifier decoder.

Turns a raw Data Matrix payload into a field map. Handles:
- Fixed-length AIs (GTIN, expiry, production date)
- Variable-length AIs terminated by FNC1 (ASCII 29), the next known AI,
  or end of payload
- Misaligned or corrupted payloads (unknown prefixes are skipped one
  character at a time)

Decoding never raises: whatever can be recognized is returned.
"""

import logging

from ..utils.constants import GS1_GROUP_SEPARATOR
from .country import country_from_prefix

logger = logging.getLogger(__name__)

# AI -> (field name, value length)
FIXED_LENGTH_AIS: dict[str, tuple[str, int]] = {
    "01": ("GTIN", 14),
    "17": ("Expiry", 6),
    "11": ("ProductionDate", 6),
}

# AI -> field name
VARIABLE_LENGTH_AIS: dict[str, str] = {
    "10": "Batch",
    "21": "Serial",
    "240": "AdditionalID",
    "90": "InternalCode",
}

DATE_FIELDS = frozenset({"Expiry", "ProductionDate"})

# Longest first so "240" wins over any 2-character reading
KNOWN_AIS: tuple[str, ...] = tuple(
    sorted({*FIXED_LENGTH_AIS, *VARIABLE_LENGTH_AIS}, key=len, reverse=True)
)


def format_gs1_date(yymmdd: str) -> str:
    """Render YYMMDD as DD/MM/20YY; any other length is returned unchanged."""
    if len(yymmdd) != 6:
        return yymmdd
    return f"{yymmdd[4:6]}/{yymmdd[2:4]}/20{yymmdd[0:2]}"


def _match_ai(text: str, index: int) -> str | None:
    """Return the known AI starting at index, if any."""
    for ai in KNOWN_AIS:
        if text.startswith(ai, index):
            return ai
    return None


def _variable_value_end(text: str, start: int) -> int:
    """Find where a variable-length value ends (separator, next AI, or end)."""
    j = start
    while j < len(text):
        if text[j] == GS1_GROUP_SEPARATOR or _match_ai(text, j):
            return j
        j += 1
    return len(text)


def decode_payload(payload: str | None) -> dict[str, str]:
    """
    Decode a GS1 element string into named fields.

    Args:
        payload: Raw payload as read from the Data Matrix

    Returns:
        Dict with any of GTIN, Batch, Serial, Expiry, ProductionDate,
        AdditionalID, InternalCode, plus ManufacturerCountry derived from GTIN.
        Empty dict when nothing recognizable is present.
    """
    if not payload:
        return {}
    text = str(payload)
    fields: dict[str, str] = {}

    i = 0
    while len(text) - i >= 2:
        ai = _match_ai(text, i)
        if ai is None:
            i += 1
            continue

        value_start = i + len(ai)
        if ai in FIXED_LENGTH_AIS:
            name, length = FIXED_LENGTH_AIS[ai]
            value_end = min(value_start + length, len(text))
            value = text[value_start:value_end]
            if name in DATE_FIELDS:
                value = format_gs1_date(value)
            i = value_end
        else:
            name = VARIABLE_LENGTH_AIS[ai]
            value_end = _variable_value_end(text, value_start)
            value = text[value_start:value_end]
            i = value_end
            if i < len(text) and text[i] == GS1_GROUP_SEPARATOR:
                i += 1

        fields[name] = value
        logger.debug(f"AI ({ai}) {name} = {value!r}")

    gtin = fields.get("GTIN")
    if gtin and len(gtin) >= 3:
        fields["ManufacturerCountry"] = country_from_prefix(gtin[:3])

    return fields
