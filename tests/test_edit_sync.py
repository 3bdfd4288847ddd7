"""Tests for pushing board edits back into history."""

from config import SyncSettings
from edit_sync import BoardEdit, apply_board_edit, apply_board_edits, collect_board_edits
from history_store import MemoryHistoryStore

NOW = '2026-10-17 10:00:00'
BOARD = 'Working Board'
BOARD_HEADERS = ['PRIORITY', 'OWNER', 'RECORD_ID', 'STATUS', 'NOTE']
BOARD_ROWS = [
    [2, 'Bob', 'A1', 'New', ''],
    [1, 'Ann', 'B2', 'Done', 'signed'],
]


def make_store():
    return MemoryHistoryStore(
        ['RECORD_ID', 'OWNER', 'STATUS', 'NOTE', 'UPDATED_AT'],
        [['A1', 'Bob', 'New', '', ''], ['B2', 'Ann', 'Done', 'signed', '']],
    )


def test_editable_cell_is_pushed_with_timestamp():
    store = make_store()
    settings = SyncSettings.from_mapping()

    applied = apply_board_edit(store, settings, BoardEdit(BOARD, 2, 4, [['Contacted']]), BOARD, BOARD_HEADERS, BOARD_ROWS, now=NOW)

    assert applied == 1
    assert store.entry('A1')['STATUS'] == 'Contacted'
    assert store.entry('A1')['UPDATED_AT'] == NOW
    assert store.entry('B2')['UPDATED_AT'] == ''


def test_multi_cell_range():
    store = make_store()
    settings = SyncSettings.from_mapping()
    edit = BoardEdit(BOARD, 2, 4, [['Waiting', 'left voicemail'], ['Lost', 'churned']])

    assert apply_board_edit(store, settings, edit, BOARD, BOARD_HEADERS, BOARD_ROWS, now=NOW) == 4
    assert store.entry('A1')['NOTE'] == 'left voicemail'
    assert store.entry('B2')['STATUS'] == 'Lost'


def test_non_editable_field_is_ignored():
    store = make_store()
    settings = SyncSettings.from_mapping()

    applied = apply_board_edit(store, settings, BoardEdit(BOARD, 2, 2, [['Mallory']]), BOARD, BOARD_HEADERS, BOARD_ROWS, now=NOW)

    assert applied == 0
    assert store.entry('A1')['OWNER'] == 'Bob'


def test_other_sheet_header_row_and_unknown_id_are_ignored():
    store = make_store()
    settings = SyncSettings.from_mapping()
    rows = BOARD_ROWS + [[0, '', 'Z9', 'New', '']]

    assert apply_board_edit(store, settings, BoardEdit('Raw', 2, 4, [['x']]), BOARD, BOARD_HEADERS, rows) == 0
    assert apply_board_edit(store, settings, BoardEdit(BOARD, 1, 4, [['x']]), BOARD, BOARD_HEADERS, rows) == 0
    assert apply_board_edit(store, settings, BoardEdit(BOARD, 4, 4, [['x']]), BOARD, BOARD_HEADERS, rows) == 0
    assert store.entry('Z9') is None


def test_malformed_range_is_ignored():
    store = make_store()
    settings = SyncSettings.from_mapping()

    assert apply_board_edit(store, settings, BoardEdit(BOARD, 2, 4, [['a', 'b'], ['c']]), BOARD, BOARD_HEADERS, BOARD_ROWS) == 0
    assert apply_board_edit(store, settings, BoardEdit(BOARD, 0, 4, [['a']]), BOARD, BOARD_HEADERS, BOARD_ROWS) == 0
    assert apply_board_edit(store, settings, BoardEdit(BOARD, 2, 4, []), BOARD, BOARD_HEADERS, BOARD_ROWS) == 0
    assert store.entry('A1')['STATUS'] == 'New'


def test_collect_board_edits_finds_changed_editable_cells():
    store = make_store()
    settings = SyncSettings.from_mapping()
    board_rows = [
        [2, 'Someone Else', 'A1', 'In Progress', ''],
        [1, 'Ann', 'B2', 'Done', 'signed'],
    ]

    edits = collect_board_edits(BOARD, BOARD_HEADERS, board_rows, store.load_full(), settings)

    assert edits == [BoardEdit(BOARD, 2, 4, [['In Progress']])]


def test_several_edits_are_written_in_one_batch():
    store = make_store()
    settings = SyncSettings.from_mapping()
    writes = []
    original = store._write_cells
    store._write_cells = lambda cells: (writes.append(list(cells)), original(cells))
    edits = [
        BoardEdit(BOARD, 2, 4, [['Waiting']]),
        BoardEdit(BOARD, 3, 5, [['renewal due']]),
        BoardEdit(BOARD, 2, 2, [['Mallory']]),
    ]

    applied = apply_board_edits(store, settings, edits, BOARD, BOARD_HEADERS, BOARD_ROWS, now=NOW)

    assert applied == 2
    assert len(writes) == 1
    assert store.entry('A1')['STATUS'] == 'Waiting'
    assert store.entry('B2')['NOTE'] == 'renewal due'
    assert store.entry('A1')['OWNER'] == 'Bob'
