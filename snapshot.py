# snapshot.py

from dataclasses import dataclass

from config import UPDATED_AT
from history_store import run_timestamp
from records import clamp_priority, normalize_table

FROZEN_FLAG = 'YES'


@dataclass
class SnapshotResult:
    frozen: int = 0
    skipped: int = 0


def freeze_snapshot(store, records, settings, now=None):
    """
    Stamps the previous-period flag and tier onto history entries.

    Only ids already in history are written; unknown ids are skipped and no
    history row is ever created. Entries absent from `records` keep their
    current flag.
    """
    now = now or run_timestamp()
    flag_field = settings.prev_period_flag_field
    tier_field = settings.prev_period_tier_field

    added = store.ensure_schema([flag_field, tier_field, UPDATED_AT])
    if added:
        print(f"  - Extended history schema with {added}")

    index = store.load_index()
    result = SnapshotResult()
    changes = {}
    for record in records:
        if record.id not in index:
            result.skipped += 1
            continue
        changes[record.id] = {
            flag_field: FROZEN_FLAG,
            tier_field: clamp_priority(record.priority_score),
            UPDATED_AT: now,
        }

    if changes:
        print(f"Freezing {flag_field}/{tier_field} for {len(changes)} history entries...")
        result.frozen = store.update_rows(changes)
    else:
        print("No history entries matched the snapshot input.")
    if result.skipped:
        print(f"  - Skipped {result.skipped} rows with no history entry.")
    return result


def run_snapshot(store, headers, rows, settings, now=None):
    records, _ = normalize_table(headers, rows, settings)
    print(f"Normalized {len(records)} of {len(rows)} snapshot rows.")
    return freeze_snapshot(store, records, settings, now)
