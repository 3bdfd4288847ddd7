# edit_sync.py

from dataclasses import dataclass

from config import RECORD_ID, UPDATED_AT
from history_store import normalize_tracking_id, run_timestamp


@dataclass
class BoardEdit:
    """
    A changed block of board cells.

    row and column are the 1-based position of the top-left cell (row 1 is
    the header row); values is a 2-D list, one inner list per edited row.
    """
    sheet_name: str
    row: int
    column: int
    values: list


def _is_well_formed(edit):
    if not isinstance(edit.row, int) or not isinstance(edit.column, int):
        return False
    if edit.row < 1 or edit.column < 1:
        return False
    if not edit.values or not all(isinstance(line, (list, tuple)) for line in edit.values):
        return False
    width = len(edit.values[0])
    return width > 0 and all(len(line) == width for line in edit.values)


def _stage_edit(edit, editable, id_column, index, board_headers, board_rows, changes):
    """Merges one edit's accepted cells into `changes`; returns how many were accepted."""
    staged = 0
    for row_offset, line in enumerate(edit.values):
        data_position = edit.row + row_offset - 2
        if data_position < 0 or data_position >= len(board_rows):
            continue
        board_row = board_rows[data_position]
        record_id = normalize_tracking_id(board_row[id_column] if id_column < len(board_row) else None)
        if not record_id or record_id not in index:
            continue

        for col_offset, value in enumerate(line):
            column = edit.column + col_offset
            if column > len(board_headers):
                continue
            header = board_headers[column - 1]
            if header not in editable:
                continue
            changes.setdefault(record_id, {})[header] = value
            staged += 1
    return staged


def apply_board_edits(store, settings, edits, board_name, board_headers, board_rows, now=None):
    """
    Pushes team edits on the board into history.

    Edits on other sheets, on the header row, in malformed ranges, on rows
    with an unknown id or on non-editable columns are ignored. Accepted
    cells are written together with an UPDATED_AT stamp per touched entry,
    in one batch.

    Returns the number of cells written.
    """
    if RECORD_ID not in board_headers:
        return 0
    edits = [edit for edit in edits if edit.sheet_name == board_name and _is_well_formed(edit)]
    if not edits:
        return 0

    now = now or run_timestamp()
    editable = set(settings.editable_fields)
    id_column = board_headers.index(RECORD_ID)
    index = store.load_index()

    changes = {}
    applied = 0
    for edit in edits:
        applied += _stage_edit(edit, editable, id_column, index, board_headers, board_rows, changes)

    # --- BATCH OPERATIONS ---
    for values in changes.values():
        values[UPDATED_AT] = now
    if changes:
        store.update_rows(changes)
    return applied


def apply_board_edit(store, settings, edit, board_name, board_headers, board_rows, now=None):
    """Single-edit form of apply_board_edits, for per-edit triggers."""
    return apply_board_edits(store, settings, [edit], board_name, board_headers, board_rows, now)


def collect_board_edits(board_name, board_headers, board_rows, snapshot, settings):
    """
    Diffs the editable board cells against history, one BoardEdit per
    changed cell. Used where the host has no per-edit trigger.
    """
    if RECORD_ID not in board_headers:
        return []
    id_column = board_headers.index(RECORD_ID)
    editable = [header for header in settings.editable_fields if header in board_headers]

    edits = []
    for position, board_row in enumerate(board_rows):
        record_id = normalize_tracking_id(board_row[id_column] if id_column < len(board_row) else None)
        history_obj = snapshot.rows.get(record_id)
        if history_obj is None:
            continue
        for header in editable:
            column = board_headers.index(header)
            board_value = board_row[column] if column < len(board_row) else ''
            if header in history_obj and str(board_value) != str(history_obj[header]):
                edits.append(BoardEdit(board_name, position + 2, column + 1, [[board_value]]))
    return edits
