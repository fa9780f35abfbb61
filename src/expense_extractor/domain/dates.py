from datetime import date, timedelta

from expense_extractor.domain.amounts import normalize_text

# Bare "qua" and "mai" also hit unrelated words ("quay", "email").
# Checked in this order.
YESTERDAY_MARKERS = ("hôm qua", "hom qua", "qua")
TOMORROW_MARKERS = ("ngày mai", "ngay mai", "mai")


def parse_date(text: str, today: date | None = None) -> str:
    """Resolve a relative day reference to an ISO date.

    Args:
        text: Free-form expense text.
        today: Reference day; defaults to the local current date.

    Returns:
        ``YYYY-MM-DD`` for yesterday, tomorrow or today.
    """
    reference = today or date.today()
    lowered = normalize_text(text).lower()

    if any(marker in lowered for marker in YESTERDAY_MARKERS):
        return (reference - timedelta(days=1)).isoformat()
    if any(marker in lowered for marker in TOMORROW_MARKERS):
        return (reference + timedelta(days=1)).isoformat()
    return reference.isoformat()


def is_iso_date(value: str) -> bool:
    try:
        date.fromisoformat(value)
    except (TypeError, ValueError):
        return False
    return len(value) == 10
