# history_store.py

from dataclasses import dataclass, field
from datetime import datetime

from config import RECORD_ID, OWNER, UPDATED_AT, TEAM_FIELDS


def normalize_tracking_id(tracking_value):
    """
    Normalizes a RECORD_ID cell to a trimmed string for consistent comparison.
    Returns '' for empty cells.
    """
    if tracking_value is None:
        return ''
    if isinstance(tracking_value, float) and tracking_value.is_integer():
        tracking_value = int(tracking_value)
    return str(tracking_value).strip()


@dataclass
class HistorySnapshot:
    """
    Full read of the history store taken once at the start of a run.

    rows maps RECORD_ID -> {header: value}; positions maps RECORD_ID -> the
    0-based row position of its first occurrence. owner_column holds the
    OWNER value of every stored row, duplicates included, in row order.
    """
    headers: list
    header_index: dict
    rows: dict = field(default_factory=dict)
    positions: dict = field(default_factory=dict)
    owner_column: list = field(default_factory=list)


def new_history_entry(record, headers, flag_field, tier_field, now):
    entry = {header: '' for header in headers}
    for team_field in TEAM_FIELDS:
        entry[team_field] = ''
    entry[RECORD_ID] = record.id
    entry[OWNER] = record.owner
    entry[flag_field] = 'NO'
    entry[tier_field] = 0
    entry[UPDATED_AT] = now
    return entry


class HistoryStore:
    """
    Persistence boundary for the team history.

    Subclasses supply `headers`, `_read_rows`, `_append_rows`,
    `_write_cells` and `_add_headers`; the id bookkeeping lives here.
    """

    def headers(self):
        raise NotImplementedError

    def _read_rows(self):
        """Returns every stored row as (row_handle, {header: value})."""
        raise NotImplementedError

    def _append_rows(self, entries):
        raise NotImplementedError

    def _write_cells(self, cells):
        """Writes [(row_handle, header, value), ...] in one batch."""
        raise NotImplementedError

    def _add_headers(self, headers):
        raise NotImplementedError

    # --- READS ---

    def load_index(self):
        """Maps RECORD_ID -> row handle. The first occurrence of an id wins."""
        index = {}
        for handle, values in self._read_rows():
            record_id = normalize_tracking_id(values.get(RECORD_ID))
            if record_id and record_id not in index:
                index[record_id] = handle
        return index

    def load_full(self):
        headers = list(self.headers())
        snapshot = HistorySnapshot(
            headers=headers,
            header_index={header: position for position, header in enumerate(headers, start=1)},
        )
        for position, (handle, values) in enumerate(self._read_rows()):
            snapshot.owner_column.append(values.get(OWNER, ''))
            record_id = normalize_tracking_id(values.get(RECORD_ID))
            if record_id and record_id not in snapshot.rows:
                snapshot.rows[record_id] = dict(values)
                snapshot.positions[record_id] = position
        return snapshot

    # --- WRITES ---

    def insert(self, entry):
        return self.insert_rows([entry])[0]

    def insert_rows(self, entries):
        """Appends new history rows. Callers guarantee the ids are absent."""
        if not entries:
            return []
        return self._append_rows(entries)

    def update_field(self, record_id, field_name, value):
        return self.update_rows({record_id: {field_name: value}})

    def update_rows(self, changes):
        """
        Applies {RECORD_ID: {header: value}} in one batch.
        Unknown ids and headers missing from the schema are skipped.

        Returns the number of rows touched.
        """
        known = set(self.headers())
        index = self.load_index()
        cells = []
        touched = 0
        for record_id, values in changes.items():
            handle = index.get(normalize_tracking_id(record_id))
            if handle is None:
                continue
            row_cells = [(handle, name, value) for name, value in values.items() if name in known]
            if row_cells:
                cells.extend(row_cells)
                touched += 1
        if cells:
            self._write_cells(cells)
        return touched

    def write_column(self, field_name, values):
        """Overwrites `field_name` positionally across every stored row."""
        if field_name not in self.headers():
            return 0
        handles = [handle for handle, _ in self._read_rows()]
        cells = [(handle, field_name, value) for handle, value in zip(handles, values)]
        if cells:
            self._write_cells(cells)
        return len(cells)

    def ensure_schema(self, required_headers):
        """Appends missing headers. Existing headers are never moved or removed."""
        existing = set(self.headers())
        missing = []
        for header in required_headers:
            if header not in existing and header not in missing:
                missing.append(header)
        if missing:
            self._add_headers(missing)
        return missing


class MemoryHistoryStore(HistoryStore):
    """History held in a header list plus row lists, as a sheet would."""

    def __init__(self, headers=None, rows=None):
        self._headers = list(headers or [])
        self.rows = [list(row) for row in (rows or [])]

    def headers(self):
        return list(self._headers)

    def _row_values(self, row):
        padded = list(row) + [''] * (len(self._headers) - len(row))
        return dict(zip(self._headers, padded))

    def _read_rows(self):
        return [(position, self._row_values(row)) for position, row in enumerate(self.rows)]

    def _append_rows(self, entries):
        handles = []
        for entry in entries:
            self.rows.append([entry.get(header, '') for header in self._headers])
            handles.append(len(self.rows) - 1)
        return handles

    def _write_cells(self, cells):
        for handle, header, value in cells:
            row = self.rows[handle]
            column = self._headers.index(header)
            if len(row) <= column:
                row.extend([''] * (column + 1 - len(row)))
            row[column] = value

    def _add_headers(self, headers):
        self._headers.extend(headers)

    def entry(self, record_id):
        """Convenience lookup returning {header: value} or None."""
        handle = self.load_index().get(record_id)
        if handle is None:
            return None
        return self._row_values(self.rows[handle])


def run_timestamp():
    """UPDATED_AT stamp shared by every write of a run."""
    return datetime.now().strftime('%Y-%m-%d %H:%M:%S')
