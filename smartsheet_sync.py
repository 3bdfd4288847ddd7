# smartsheet_sync.py

import argparse
import os
import traceback

import smartsheet

from config import SHEET_CONFIG, SyncSettings
from edit_sync import apply_board_edits, collect_board_edits
from history_store import run_timestamp
from reconcile import run_reconciliation
from smartsheet_store import SmartsheetHistoryStore, load_settings_from_sheet, read_table, replace_board
from snapshot import run_snapshot

RUN_MODES = ('reconcile', 'snapshot', 'edits')

# ============================================================================
# HELPER FUNCTIONS
# ============================================================================

def load_settings(smart, config):
    config_sheet_id = config.get('config_sheet_id')
    if not config_sheet_id:
        print("No config sheet configured. Using default settings.")
        return SyncSettings.from_mapping()
    print(f"Loading settings from config sheet {config_sheet_id}...")
    return SyncSettings.from_mapping(load_settings_from_sheet(smart, config_sheet_id))


def check_sheets(smart, sheet_ids):
    """
    Confirms every sheet the run needs can be opened before anything is written.
    Returns False (after printing the failure) when one cannot.
    """
    for role, sheet_id in sheet_ids.items():
        if not sheet_id:
            print(f"FATAL ERROR: No {role} sheet configured. Halting.")
            return False
        try:
            sheet = smart.Sheets.get_sheet(sheet_id, page_size=1)
            print(f"  Found {role} sheet '{sheet.name}' (ID: {sheet_id})")
        except Exception as e:
            print(f"FATAL ERROR: Could not load {role} sheet {sheet_id}. Halting. Error: {e}")
            return False
    return True

# --- LOGIC HANDLERS ---

def handle_reconcile(smart, config, settings, now):
    source_headers, source_rows = read_table(smart, config['source_sheet_id'])
    store = SmartsheetHistoryStore(smart, config['history_sheet_id'])

    if settings.essential_by_header_color:
        print("WARNING: ESSENTIAL_BY_HEADER_COLOR is set but Smartsheet exposes no header colours. Using ESSENTIAL_COLUMNS only.")

    result = run_reconciliation(store, source_headers, source_rows, settings, now=now)
    print(f"Reconciled {len(result.rows)} rows: {len(result.new_entries)} new, {result.matched} existing.")

    replace_board(smart, config['board_sheet_id'], result.headers, result.rows)
    return result


def handle_snapshot(smart, config, settings, now):
    snapshot_sheet_id = config.get('snapshot_sheet_id') or config['source_sheet_id']
    headers, rows = read_table(smart, snapshot_sheet_id)
    store = SmartsheetHistoryStore(smart, config['history_sheet_id'])

    result = run_snapshot(store, headers, rows, settings, now=now)
    print(f"Snapshot frozen for {result.frozen} entries, {result.skipped} skipped.")
    return result


def handle_edits(smart, config, settings, now):
    board_name = config.get('board_sheet_name', '')
    board_headers, board_rows = read_table(smart, config['board_sheet_id'])
    store = SmartsheetHistoryStore(smart, config['history_sheet_id'])

    edits = collect_board_edits(board_name, board_headers, board_rows, store.load_full(), settings)
    if not edits:
        print("No board edits to push.")
        return 0

    print(f"Found {len(edits)} edited board cells. Pushing to history...")
    applied = apply_board_edits(store, settings, edits, board_name, board_headers, board_rows, now=now)
    print(f"Pushed {applied} board edits.")
    return applied

# --- MAIN DISPATCHER ---

def main_process(smart, config, mode='reconcile'):
    print("--- Starting Sync Process ---")
    print(f"Run mode: '{mode}'")

    required = {'history': config.get('history_sheet_id')}
    if mode == 'reconcile':
        required['source'] = config.get('source_sheet_id')
        required['board'] = config.get('board_sheet_id')
    elif mode == 'snapshot':
        required['snapshot'] = config.get('snapshot_sheet_id') or config.get('source_sheet_id')
    elif mode == 'edits':
        required['board'] = config.get('board_sheet_id')
    else:
        print(f"FATAL ERROR: Unknown run mode '{mode}'. Halting.")
        return None

    if not check_sheets(smart, required):
        return None

    settings = load_settings(smart, config)
    now = run_timestamp()
    handlers = {
        'reconcile': handle_reconcile,
        'snapshot': handle_snapshot,
        'edits': handle_edits,
    }

    try:
        result = handlers[mode](smart, config, settings, now)
    except Exception as e:
        print(f"ERROR during '{mode}' run. Error: {e}")
        traceback.print_exc()
        raise

    print("\n" + "="*80)
    print("--- Sync Process Complete ---")
    print("="*80)
    return result


def main(argv=None):
    parser = argparse.ArgumentParser(description="Sync a raw dataset into the team history and working board.")
    parser.add_argument('mode', nargs='?', default='reconcile', choices=RUN_MODES)
    args = parser.parse_args(argv)

    access_token = os.getenv('SMARTSHEET_ACCESS_TOKEN')
    if not access_token:
        raise ValueError("FATAL ERROR: SMARTSHEET_ACCESS_TOKEN environment variable not found.")

    smartsheet_client = smartsheet.Smartsheet(access_token)
    smartsheet_client.errors_as_exceptions(True)
    main_process(smartsheet_client, SHEET_CONFIG, args.mode)


if __name__ == '__main__':
    main()
