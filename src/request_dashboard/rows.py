"""Pure helpers that turn raw Row Source output into what the dashboard shows.

Every function here returns new containers and leaves its inputs untouched,
so the view-model can recompute projections freely.
"""

from __future__ import annotations

from typing import Any, Dict, Hashable, Iterable, List, Mapping, Sequence, Tuple

Row = Dict[str, Any]
Snapshot = List[Row]

STATUS_FIELD = "Status"
FILTER_ALL = "all"
FILTER_CHOICES: Tuple[str, ...] = (FILTER_ALL, "new", "pending", "closed", "other")
TRUNCATE_LENGTH = 36

STATUS_PRIORITY: Dict[str, int] = {"new": 1, "pending": 2, "closed": 3}
DEFAULT_PRIORITY = 99


def _is_blank(value: Any) -> bool:
    return value is None or str(value).strip() == ""


def is_blank_row(row: Mapping[str, Any]) -> bool:
    """True when every value is None or whitespace (an empty row counts)."""
    return all(_is_blank(value) for value in row.values())


def status_priority(status: Any) -> int:
    if status is None:
        return DEFAULT_PRIORITY
    return STATUS_PRIORITY.get(str(status).strip().lower(), DEFAULT_PRIORITY)


def _collation_key(value: Any) -> Tuple[str, str]:
    """Case-insensitive ordering with the original text as a deterministic tie-break."""
    text = "" if value is None else str(value)
    return text.casefold(), text


def _first_field_key(row: Mapping[str, Any]) -> Tuple[str, str]:
    return _collation_key(next(iter(row.values()), None))


def _sort_key(row: Mapping[str, Any]) -> Tuple[int, Tuple[str, str]]:
    return status_priority(row.get(STATUS_FIELD)), _first_field_key(row)


def clean_and_sort(raw_rows: Iterable[Any]) -> Snapshot:
    """
    Drop blank rows and order the rest by status priority, then first field.

    Rows that are not mappings are discarded. ``sorted`` is stable, so rows
    with equal keys keep their source order.
    """
    cleaned = [
        dict(row)
        for row in raw_rows
        if isinstance(row, Mapping) and not is_blank_row(row)
    ]
    return sorted(cleaned, key=_sort_key)


def normalize_filter(value: str | None) -> str:
    """Lower-case a filter choice and reject anything outside FILTER_CHOICES."""
    normalized = (value or FILTER_ALL).strip().lower()
    if normalized not in FILTER_CHOICES:
        raise ValueError(
            f"unknown status filter {value!r}; expected one of {', '.join(FILTER_CHOICES)}"
        )
    return normalized


def apply_filter(snapshot: Sequence[Row], filter_state: str) -> Snapshot:
    """Project the snapshot onto the rows whose Status matches the filter exactly."""
    wanted = normalize_filter(filter_state)
    if wanted == FILTER_ALL:
        return list(snapshot)
    return [
        row for row in snapshot if str(row.get(STATUS_FIELD) or "").lower() == wanted
    ]


def classify_status(value: Any) -> str:
    """Badge bucket for a Status value: new, pending, closed or other."""
    status = str(value or "").strip().lower()
    return status if status in STATUS_PRIORITY else "other"


def derive_headers(filtered: Sequence[Row], snapshot: Sequence[Row]) -> List[str]:
    # Column names come from the first row of whichever list is non-empty.
    if filtered:
        return list(filtered[0].keys())
    if snapshot:
        return list(snapshot[0].keys())
    return []


def _stringify(raw_value: Any) -> str:
    return "" if raw_value is None else str(raw_value)


def is_truncatable(raw_value: Any) -> bool:
    return len(_stringify(raw_value)) > TRUNCATE_LENGTH


def render_value(field_name: str, raw_value: Any, expanded: bool) -> str:
    """
    Display text for one cell.

    Status values pass through untouched so renderers can badge them. Other
    values longer than TRUNCATE_LENGTH are cut to that many characters unless
    the cell is expanded; the caller adds any "..." affordance.
    """
    text = _stringify(raw_value)
    if field_name.lower() == STATUS_FIELD.lower():
        return text
    if len(text) > TRUNCATE_LENGTH and not expanded:
        return text[:TRUNCATE_LENGTH]
    return text


def toggle_expanded(
    expansion: Mapping[Hashable, bool], key: Hashable
) -> Dict[Hashable, bool]:
    """Return a copy of ``expansion`` with the flag at ``key`` flipped."""
    updated = dict(expansion)
    updated[key] = not updated.get(key, False)
    return updated
