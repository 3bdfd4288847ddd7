"""Tests for the snapshot freeze."""

from config import SyncSettings
from history_store import MemoryHistoryStore
from records import Record
from snapshot import freeze_snapshot, run_snapshot

NOW = '2026-10-17 09:00:00'


def test_known_ids_are_frozen_and_unknown_skipped():
    store = MemoryHistoryStore(['RECORD_ID', 'OWNER', 'STATUS'], [['A1', 'Bob', 'Done'], ['B2', 'Ben', '']])
    settings = SyncSettings.from_mapping()

    result = run_snapshot(store, ['RECORD_ID', 'PRIORITY'], [['A1', '6'], ['X9', '2']], settings, now=NOW)

    assert result.frozen == 1
    assert result.skipped == 1
    entry = store.entry('A1')
    assert entry['PREV_PERIOD_FLAG'] == 'YES'
    assert entry['PREV_PERIOD_TIER'] == 4
    assert entry['UPDATED_AT'] == NOW
    assert entry['STATUS'] == 'Done'
    assert store.entry('X9') is None
    assert len(store.rows) == 2


def test_records_missing_from_input_are_not_flipped():
    store = MemoryHistoryStore(
        ['RECORD_ID', 'PREV_PERIOD_FLAG', 'PREV_PERIOD_TIER'],
        [['A1', 'YES', 3], ['B2', 'NO', 0]],
    )
    settings = SyncSettings.from_mapping()

    freeze_snapshot(store, [Record(id='B2', priority_score=1)], settings, now=NOW)

    assert store.entry('A1')['PREV_PERIOD_FLAG'] == 'YES'
    assert store.entry('A1')['PREV_PERIOD_TIER'] == 3
    assert store.entry('B2')['PREV_PERIOD_TIER'] == 1


def test_custom_target_fields_are_added_to_schema():
    store = MemoryHistoryStore(['RECORD_ID'], [['A1']])
    settings = SyncSettings.from_mapping({
        'PREV_PERIOD_FLAG_FIELD': 'LAST_WEEK_FLAG',
        'PREV_PERIOD_TIER_FIELD': 'LAST_WEEK_TIER',
    })

    freeze_snapshot(store, [Record(id='A1', priority_score=2)], settings, now=NOW)

    assert store.headers() == ['RECORD_ID', 'LAST_WEEK_FLAG', 'LAST_WEEK_TIER', 'UPDATED_AT']
    assert store.rows[0] == ['A1', 'YES', 2, NOW]


def test_numeric_id_in_history_is_frozen():
    store = MemoryHistoryStore(['RECORD_ID', 'OWNER'], [[1001.0, 'Bob']])
    settings = SyncSettings.from_mapping()

    result = run_snapshot(store, ['RECORD_ID', 'PRIORITY'], [[1001.0, 3]], settings, now=NOW)

    assert result.frozen == 1
    assert result.skipped == 0
    assert store.entry('1001')['PREV_PERIOD_FLAG'] == 'YES'
    assert store.entry('1001')['PREV_PERIOD_TIER'] == 3
