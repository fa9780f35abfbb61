"""Money amounts written the way people type them in Vietnamese chat.

``20k``, ``20,5k``, ``50 nghìn``, ``2 triệu`` and ``100.000`` are all
recognised. Amounts are whole VND.
"""

import re
import unicodedata

THOUSAND = 1_000
MILLION = 1_000_000

_DECIMAL = r"(\d+(?:[.,]\d+)?)"

# Order matters: the first pattern that matches anywhere in the text wins.
AMOUNT_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(_DECIMAL + r"\s*k", re.IGNORECASE),
    re.compile(_DECIMAL + r"\s*(?:nghìn|ngàn)", re.IGNORECASE),
    re.compile(_DECIMAL + r"\s*triệu", re.IGNORECASE),
)
GROUPED_DIGITS = re.compile(r"\d{1,3}(?:[.,]\d{3})+|\d+")

MILLION_MARKERS = ("triệu", "trieu")
THOUSAND_MARKERS = ("k", "nghìn", "ngàn")


def normalize_text(text: str) -> str:
    return unicodedata.normalize("NFC", text)


def _multiplier(lowered: str) -> int:
    # Looks at the whole sentence, not just the matched number:
    # "20k ... 2 triệu" is read as 20 million.
    if any(marker in lowered for marker in MILLION_MARKERS):
        return MILLION
    if any(marker in lowered for marker in THOUSAND_MARKERS):
        return THOUSAND
    return 1


def _match_number(text: str) -> tuple[float, bool] | None:
    """Return the matched number and whether the multiplier applies to it."""
    for pattern in AMOUNT_PATTERNS:
        match = pattern.search(text)
        if match:
            return float(match.group(1).replace(",", ".")), True

    match = GROUPED_DIGITS.search(text)
    if match:
        digits = match.group(0)
        # "200.000" is already a full amount; a bare "50" is not
        return float(re.sub(r"[.,]", "", digits)), digits.isdigit()
    return None


def parse_amount(text: str) -> int | None:
    """Return the amount in VND, or None when no positive amount is found."""
    text = normalize_text(text)
    matched = _match_number(text)
    if matched is None:
        return None

    number, scalable = matched
    multiplier = _multiplier(text.lower()) if scalable else 1
    amount = int(round(number * multiplier))
    if amount <= 0:
        return None
    return amount
