"""Admission/price text parsing."""

import re

_FREE_WORDS = ("free", "gratuit", "gratis", "kostenlos", "gratuito")
_AMOUNT_RE = re.compile(r"(\d+(?:[.,]\d+)?)")


def extract_cost(admission: str | None) -> float:
    """Normalize free-text admission such as "€15", "15,50 €" or "Free" to a float.

    Unparseable or missing values count as 0.
    """
    if not admission or not isinstance(admission, str):
        return 0.0

    normalized = admission.lower()
    if any(word in normalized for word in _FREE_WORDS):
        return 0.0

    match = _AMOUNT_RE.search(normalized)
    if not match:
        return 0.0
    return float(match.group(1).replace(",", "."))
