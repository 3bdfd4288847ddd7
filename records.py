# records.py

import math
from dataclasses import dataclass, field

from column_mapping import resolve_columns, resolve_essential_columns
from config import FIELD_ID, FIELD_OWNER, FIELD_SUBJECT, FIELD_CREATED_AT, FIELD_PRIORITY
from history_store import normalize_tracking_id

MIN_PRIORITY = 0
MAX_PRIORITY = 4


@dataclass
class Record:
    """One canonical input row. Rebuilt on every run, never stored as-is."""
    id: str
    owner: str = ''
    subject: str = ''
    created_at: object = ''
    priority_score: int = 0
    extras: dict = field(default_factory=dict)


def clamp_priority(value):
    return max(MIN_PRIORITY, min(MAX_PRIORITY, value))


def parse_priority(value):
    """
    Parses a raw priority cell into an int in [0, 4].
    Fractions truncate toward zero; anything non-numeric becomes 0.
    """
    if value is None or isinstance(value, bool):
        return 0
    try:
        number = float(str(value).strip())
    except ValueError:
        return 0
    if math.isnan(number) or math.isinf(number):
        return 0
    return clamp_priority(int(number))


def cell_text(value):
    if value is None:
        return ''
    return str(value).strip()


def _cell(row, position):
    if position is None or position < 1 or position > len(row):
        return None
    return row[position - 1]


def is_ignored(record, ignore_text):
    """True when the configured ignore text occurs in any canonical field."""
    if not ignore_text:
        return False
    haystack = ' '.join([
        record.id, record.owner, record.subject,
        cell_text(record.created_at), str(record.priority_score),
    ])
    return ignore_text.lower() in haystack.lower()


def normalize_row(row, positions, essential, settings):
    """
    Builds a Record from one raw row.

    Returns None when the row has no id or matches the ignore text.
    """
    record_id = normalize_tracking_id(_cell(row, positions.get(FIELD_ID)))
    if not record_id:
        return None

    created_at = _cell(row, positions.get(FIELD_CREATED_AT))
    record = Record(
        id=record_id,
        owner=cell_text(_cell(row, positions.get(FIELD_OWNER))),
        subject=cell_text(_cell(row, positions.get(FIELD_SUBJECT))),
        created_at=created_at if created_at is not None else '',
        priority_score=parse_priority(_cell(row, positions.get(FIELD_PRIORITY))),
        extras={name: _cell(row, position) for name, position in essential},
    )
    if is_ignored(record, settings.ignore_text):
        return None
    return record


def normalize_table(headers, rows, settings, header_colors=None):
    """
    Maps a raw table onto canonical records.

    Returns:
        (records, extra_names): records in input order, and the essential
        column names in their resolved order.
    """
    positions = resolve_columns(headers, settings)
    essential = resolve_essential_columns(headers, settings, header_colors)
    records = []
    for row in rows:
        record = normalize_row(row, positions, essential, settings)
        if record is not None:
            records.append(record)
    return records, [name for name, _ in essential]
