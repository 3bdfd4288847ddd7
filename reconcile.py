# reconcile.py

from dataclasses import dataclass, field

from column_mapping import fixed_board_columns
from config import RECORD_ID, OWNER, SUBJECT, CREATED_AT, PRIORITY
from history_store import new_history_entry, run_timestamp
from records import normalize_table


@dataclass
class ReconcileResult:
    headers: list
    rows: list = field(default_factory=list)
    new_entries: list = field(default_factory=list)
    owner_column: list = field(default_factory=list)
    owner_changes: int = 0
    matched: int = 0


def board_headers(settings, extras):
    """
    Board column order: priority, owner, id, subject, created-at, team
    fields, snapshot fields, UPDATED_AT, then the essential columns.
    """
    return fixed_board_columns(settings) + list(extras)


def canonical_values(record):
    return {
        PRIORITY: record.priority_score,
        OWNER: record.owner,
        RECORD_ID: record.id,
        SUBJECT: record.subject,
        CREATED_AT: record.created_at,
    }


def compose_output_row(headers, history_obj, record):
    """
    Builds one board row. For each column the history value wins, then the
    canonical record field, then the record's essential extras.
    """
    canonical = canonical_values(record)
    row = []
    for header in headers:
        if header in history_obj:
            value = history_obj[header]
        elif header in canonical:
            value = canonical[header]
        else:
            value = record.extras.get(header)
        row.append('' if value is None else value)
    return row


def reconcile_records(records, snapshot, settings, extras, now):
    """
    Merges normalized records into a history snapshot without touching storage.

    Args:
        records: Records in input order
        snapshot: HistorySnapshot loaded at the start of the run
        settings: SyncSettings
        extras: essential column names, in board order
        now: UPDATED_AT value for new entries

    Returns:
        ReconcileResult with the board rows, the entries to insert and the
        staged OWNER column buffer covering every stored history row.
    """
    result = ReconcileResult(
        headers=board_headers(settings, extras),
        owner_column=list(snapshot.owner_column),
    )
    working = {}
    created = set()

    for record in records:
        history_obj = working.get(record.id)
        if history_obj is None:
            if record.id in snapshot.rows:
                history_obj = dict(snapshot.rows[record.id])
                result.matched += 1
            else:
                history_obj = new_history_entry(
                    record, snapshot.headers,
                    settings.prev_period_flag_field, settings.prev_period_tier_field, now)
                result.new_entries.append(history_obj)
                created.add(record.id)
            working[record.id] = history_obj

        if settings.overwrite_owner and record.id not in created:
            position = snapshot.positions[record.id]
            new_owner = record.owner or history_obj.get(OWNER, '')
            if result.owner_column[position] != new_owner:
                result.owner_changes += 1
            result.owner_column[position] = new_owner
            history_obj[OWNER] = new_owner

        result.rows.append(compose_output_row(result.headers, history_obj, record))

    return result


def run_reconciliation(store, headers, rows, settings, now=None, header_colors=None):
    """
    Full reconcile pass against a HistoryStore.

    Reads history once, computes every board row, then writes new entries in
    one bulk insert and (when DAILY_OVERWRITE_OWNER is on) the whole OWNER
    column in one bulk write. The caller owns writing the board itself.
    """
    now = now or run_timestamp()
    records, extras = normalize_table(headers, rows, settings, header_colors)
    print(f"Normalized {len(records)} of {len(rows)} source rows ({len(extras)} essential columns).")

    added = store.ensure_schema(settings.history_headers())
    if added:
        print(f"  - Extended history schema with {added}")

    snapshot = store.load_full()
    print(f"Found {len(snapshot.rows)} existing history entries.")

    result = reconcile_records(records, snapshot, settings, extras, now)

    # --- BATCH OPERATIONS ---
    if result.new_entries:
        print(f"Inserting {len(result.new_entries)} new history entries...")
        store.insert_rows(result.new_entries)
    else:
        print("No new history entries to insert.")

    if settings.overwrite_owner and result.owner_column:
        print(f"Rewriting OWNER column ({result.owner_changes} changed of {len(result.owner_column)} rows)...")
        store.write_column(OWNER, result.owner_column)

    return result
