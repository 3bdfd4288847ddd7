# smartsheet_store.py

import smartsheet

from history_store import HistoryStore

# Process in batches of 500 to avoid API limits and timeouts
BATCH_SIZE = 500
# Row ids travel in the query string on delete, keep those batches smaller
DELETE_BATCH_SIZE = 300


def get_column_map_by_name(sheet):
    return {column.title: column.id for column in sheet.columns}


def cell_value(row, column_id):
    cell = row.get_column(column_id)
    if cell is None or cell.value is None:
        return ''
    return cell.value


def _writable(value):
    return '' if value is None else value


def _batches(items, size):
    for i in range(0, len(items), size):
        yield items[i:i + size]


def _send_in_batches(send, sheet_id, rows, label, size=BATCH_SIZE):
    total_batches = (len(rows) + size - 1) // size
    for batch_num, batch in enumerate(_batches(rows, size), start=1):
        print(f"  Processing {label} batch {batch_num}/{total_batches} ({len(batch)} rows)...")
        send(sheet_id, batch)


def read_table(smart, sheet_id):
    """
    Loads a sheet as a plain table.

    Returns:
        (headers, rows): column titles in sheet order and one list of cell
        values per row in the same order.
    """
    sheet = smart.Sheets.get_sheet(sheet_id)
    columns = sorted(sheet.columns, key=lambda column: column.index)
    headers = [column.title for column in columns]
    rows = [[cell_value(row, column.id) for column in columns] for row in sheet.rows]
    print(f"  Loaded sheet '{sheet.name}' (ID: {sheet_id}) with {len(rows)} rows")
    return headers, rows


def load_settings_from_sheet(smart, sheet_id):
    """
    Reads a KEY / VALUE config sheet (first two columns).
    Blank keys are skipped and the first occurrence of a key wins.
    """
    headers, rows = read_table(smart, sheet_id)
    settings = {}
    if len(headers) < 2:
        print(f"WARNING: Config sheet {sheet_id} needs a key and a value column. Using defaults.")
        return settings
    for row in rows:
        key = str(row[0]).strip().upper() if row[0] is not None else ''
        if key and key not in settings:
            settings[key] = row[1]
    return settings


def _add_missing_columns(smart, sheet_id, existing_titles, wanted_titles):
    missing = [title for title in wanted_titles if title not in existing_titles]
    if not missing:
        return []
    start = len(existing_titles)
    columns = [
        smartsheet.models.Column({'title': title, 'type': 'TEXT_NUMBER', 'index': start + offset})
        for offset, title in enumerate(missing)
    ]
    print(f"  Adding {len(missing)} column(s) to sheet {sheet_id}: {missing}")
    smart.Sheets.add_columns(sheet_id, columns)
    return missing


def replace_board(smart, sheet_id, headers, rows):
    """
    Replaces the board contents with `rows`, in order.
    Missing columns are created; presentation is left to the sheet owner.
    """
    sheet = smart.Sheets.get_sheet(sheet_id)
    existing = [column.title for column in sorted(sheet.columns, key=lambda column: column.index)]
    if _add_missing_columns(smart, sheet_id, existing, headers):
        sheet = smart.Sheets.get_sheet(sheet_id)
    col_map = get_column_map_by_name(sheet)

    old_row_ids = [row.id for row in sheet.rows]
    if old_row_ids:
        print(f"Clearing {len(old_row_ids)} existing board rows...")
        for batch in _batches(old_row_ids, DELETE_BATCH_SIZE):
            smart.Sheets.delete_rows(sheet_id, batch)

    new_rows = []
    for values in rows:
        new_row = smartsheet.models.Row({'to_bottom': True, 'cells': []})
        for header, value in zip(headers, values):
            new_row.cells.append(smartsheet.models.Cell({'column_id': col_map[header], 'value': _writable(value)}))
        new_rows.append(new_row)

    if new_rows:
        print(f"Writing {len(new_rows)} board rows...")
        _send_in_batches(smart.Sheets.add_rows, sheet_id, new_rows, 'board')
    else:
        print("No board rows to write.")
    return len(new_rows)


class SmartsheetHistoryStore(HistoryStore):
    """HistoryStore backed by a Smartsheet sheet. Row handles are Smartsheet row ids."""

    def __init__(self, smart, sheet_id):
        self.smart = smart
        self.sheet_id = sheet_id
        self._sheet = None

    def sheet(self):
        if self._sheet is None:
            self._sheet = self.smart.Sheets.get_sheet(self.sheet_id)
        return self._sheet

    def _invalidate(self):
        self._sheet = None

    def _columns(self):
        return sorted(self.sheet().columns, key=lambda column: column.index)

    def headers(self):
        return [column.title for column in self._columns()]

    def _read_rows(self):
        columns = self._columns()
        return [
            (row.id, {column.title: cell_value(row, column.id) for column in columns})
            for row in self.sheet().rows
        ]

    def _append_rows(self, entries):
        col_map = get_column_map_by_name(self.sheet())
        new_rows = []
        for entry in entries:
            new_row = smartsheet.models.Row({'to_bottom': True, 'cells': []})
            for title, column_id in col_map.items():
                if title in entry:
                    new_row.cells.append(smartsheet.models.Cell({'column_id': column_id, 'value': _writable(entry[title])}))
            new_rows.append(new_row)

        print(f"Creating {len(new_rows)} new history rows...")
        handles = []
        for batch in _batches(new_rows, BATCH_SIZE):
            response = self.smart.Sheets.add_rows(self.sheet_id, batch)
            handles.extend(row.id for row in (getattr(response, 'result', None) or []))
        self._invalidate()
        return handles

    def _write_cells(self, cells):
        col_map = get_column_map_by_name(self.sheet())
        by_row = {}
        for row_id, title, value in cells:
            if row_id not in by_row:
                by_row[row_id] = smartsheet.models.Row({'id': row_id, 'cells': []})
            by_row[row_id].cells.append(smartsheet.models.Cell({'column_id': col_map[title], 'value': _writable(value)}))

        update_rows = list(by_row.values())
        print(f"Updating {len(update_rows)} history rows...")
        _send_in_batches(self.smart.Sheets.update_rows, self.sheet_id, update_rows, 'history update')
        self._invalidate()

    def _add_headers(self, headers):
        _add_missing_columns(self.smart, self.sheet_id, self.headers(), headers)
        self._invalidate()
