"""Normalization helpers.

Centralizes location-key canonicalization and locale-aware price parsing so
every source adapter reconciles spellings and number formats the same way.
"""

from __future__ import annotations

import math
import re
import unicodedata
from enum import StrEnum
from typing import Any

from pyfuelprices._constants import DIACRITIC_TABLE, LOCATION_ALIASES

_QUALIFIER_RE = re.compile(r"\([^)]*\)|\[[^\]]*\]")
_NON_KEY_RE = re.compile(r"[^A-Z0-9]")
_NON_DISTRICT_RE = re.compile(r"[^A-Z0-9_]")
_WHITESPACE_RE = re.compile(r"\s+")
_UNDERSCORES_RE = re.compile(r"_+")
_NON_NUMERIC_RE = re.compile(r"[^0-9.,\-]")
_FLOAT_LITERAL_RE = re.compile(r"^[+-]?\d+(?:\.\d+)?[eE][+-]?\d+$")


class SeparatorConvention(StrEnum):
    """How a source formats decimals.

    ``DECIMAL_COMMA`` is the Turkish convention (``1.234,56``),
    ``DECIMAL_DOT`` the English one (``1,234.56``). ``AUTO`` treats the
    right-most separator as decimal when both occur.
    """

    AUTO = "auto"
    DECIMAL_COMMA = "decimal_comma"
    DECIMAL_DOT = "decimal_dot"


def _fold(raw: str) -> str:
    text = raw.strip().upper()
    text = "".join(DIACRITIC_TABLE.get(ch, ch) for ch in text)
    # Anything the table does not cover (and the dot of a decomposed "i̇").
    decomposed = unicodedata.normalize("NFKD", text)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def normalize_location_key(raw: Any) -> str:
    """Canonicalize a free-text location name into a location key.

    Parenthetical qualifiers are dropped, Turkish diacritics folded and
    everything outside ``[A-Z0-9]`` removed, so ``"İstanbul"``,
    ``"ISTANBUL"`` and ``"istanbul (Avrupa)"`` all map to ``"ISTANBUL"``.
    Empty input yields ``""``, which callers must treat as unusable.
    """
    if raw is None:
        return ""
    text = _QUALIFIER_RE.sub(" ", str(raw))
    key = _NON_KEY_RE.sub("", _fold(text))
    return LOCATION_ALIASES.get(key, key)


def normalize_district_key(raw: Any) -> str:
    """District-aware variant of :func:`normalize_location_key`.

    Keeps word boundaries (as ``_``) and qualifiers, e.g.
    ``"İstanbul (Avrupa)"`` -> ``"ISTANBUL_AVRUPA"``.
    """
    if raw is None:
        return ""
    text = _WHITESPACE_RE.sub("_", _fold(str(raw)))
    text = _NON_DISTRICT_RE.sub("", text)
    key = _UNDERSCORES_RE.sub("_", text).strip("_")
    return LOCATION_ALIASES.get(key, key)


def _apply_convention(text: str, convention: SeparatorConvention) -> str:
    if convention == SeparatorConvention.DECIMAL_COMMA:
        return text.replace(".", "").replace(",", ".")
    if convention == SeparatorConvention.DECIMAL_DOT:
        return text.replace(",", "")

    has_dot = "." in text
    has_comma = "," in text
    if has_dot and has_comma:
        if text.rfind(",") > text.rfind("."):
            return text.replace(".", "").replace(",", ".")
        return text.replace(",", "")
    if has_comma:
        return text.replace(",", ".") if text.count(",") == 1 else text.replace(",", "")
    if has_dot and text.count(".") > 1:
        return text.replace(".", "")
    return text


def _accept(value: float) -> float | None:
    if not math.isfinite(value) or value <= 0:
        return None
    return value


def parse_price(raw: Any, convention: SeparatorConvention = SeparatorConvention.AUTO) -> float | None:
    """Parse a locale-formatted price; ``None`` means invalid.

    Numbers are accepted when finite and positive. Strings lose currency
    suffixes and whitespace (``"54,10 TL/lt"`` -> ``54.1``), then the
    source's separator convention decides which separator is decimal.
    Zero, negative, NaN and infinite results are rejected: a fuel price at
    or below zero is always a parsing artifact.
    """
    if isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float)):
        return _accept(float(raw))
    if not isinstance(raw, str):
        return None

    stripped = raw.strip()
    if _FLOAT_LITERAL_RE.match(stripped):
        return _accept(float(stripped))

    cleaned = _NON_NUMERIC_RE.sub("", stripped)
    if not cleaned:
        return None
    try:
        value = float(_apply_convention(cleaned, convention))
    except ValueError:
        return None
    return _accept(value)
