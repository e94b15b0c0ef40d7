"""Month-name lookup used by every month-filtered query."""

MONTH_NAMES = (
    "january",
    "february",
    "march",
    "april",
    "may",
    "june",
    "july",
    "august",
    "september",
    "october",
    "november",
    "december",
)

_MONTH_LOOKUP: dict[str, int] = {}
for _number, _name in enumerate(MONTH_NAMES, start=1):
    _MONTH_LOOKUP[_name] = _number
    _MONTH_LOOKUP[_name[:3]] = _number
_MONTH_LOOKUP["sept"] = 9


def resolve_month(value: str | None) -> int | None:
    """Return 1..12 for a month name or abbreviation, ``None`` when unknown.

    ``None`` is not an error: callers turn it into a filter that matches nothing.
    """

    if not value:
        return None
    return _MONTH_LOOKUP.get(value.strip().lower())


__all__ = ["MONTH_NAMES", "resolve_month"]
