# config.py

# ============================================================================
# WORKING BOARD SYNCHRONIZATION CONFIGURATION
# ============================================================================
# This configuration defines the sheets and the default settings for the
# raw-data -> history -> working board synchronization.
#
# ARCHITECTURE OVERVIEW:
# - source_sheet_id: Raw dataset imported on every run
# - history_sheet_id: Persistent team history, one row per RECORD_ID
# - board_sheet_id: Working board, fully rewritten by each reconcile run
# - config_sheet_id: Optional KEY / VALUE sheet overriding DEFAULT_SETTINGS
# - snapshot_sheet_id: Optional source for the snapshot freeze
#                      (falls back to source_sheet_id)
#
# RUN MODES:
# - 'reconcile': Maps the source, merges it into history and rewrites
#                the board
# - 'snapshot': Freezes PREV_PERIOD_FLAG / PREV_PERIOD_TIER into history
#               for every record already known to history
# - 'edits': Pushes team edits made on the board back into history
#
# SETTINGS CONVENTIONS:
# - All settings are flat KEY -> string values, exactly as they would be
#   typed into the config sheet
# - Lists are semicolon-delimited ("STATUS;NOTE")
# - Flags are YES / NO; anything else falls back to the per-flag default
# - ESSENTIAL_BY_HEADER_COLOR only applies when the caller supplies header
#   colour metadata; the Smartsheet entry point has none and warns instead
# ============================================================================

from dataclasses import dataclass, field

SHEET_CONFIG = {
    'source_sheet_id': 3733355007790980,
    'history_sheet_id': 5723337641643908,
    'board_sheet_id': 2198406433820548,
    'config_sheet_id': None,
    'snapshot_sheet_id': None,
    'board_sheet_name': 'Working Board',
}

# Canonical field keys used by the column mapper and the record normalizer
FIELD_ID = 'id'
FIELD_OWNER = 'owner'
FIELD_SUBJECT = 'subject'
FIELD_CREATED_AT = 'created_at'
FIELD_PRIORITY = 'priority'

CANONICAL_FIELDS = [FIELD_ID, FIELD_OWNER, FIELD_SUBJECT, FIELD_CREATED_AT, FIELD_PRIORITY]

# Board / history header names
RECORD_ID = 'RECORD_ID'
OWNER = 'OWNER'
SUBJECT = 'SUBJECT'
CREATED_AT = 'CREATED_AT'
PRIORITY = 'PRIORITY'
UPDATED_AT = 'UPDATED_AT'

TEAM_FIELDS = ['STATUS', 'NEXT_ACTION', 'ATTEMPTS', 'CONTACTED_AT', 'NOTE', 'VALUE']

DEFAULT_FLAG_FIELD = 'PREV_PERIOD_FLAG'
DEFAULT_TIER_FIELD = 'PREV_PERIOD_TIER'
DEFAULT_COLOR_HEX = '#FFFF00'
DEFAULT_COLOR_TOLERANCE = 110

DEFAULT_SETTINGS = {
    # Header-name overrides for the canonical fields
    'MAP_ID': RECORD_ID,
    'MAP_OWNER': OWNER,
    'MAP_SUBJECT': SUBJECT,
    'MAP_CREATED_AT': CREATED_AT,
    'MAP_PRIORITY': PRIORITY,
    # Board behaviour
    'EDITABLE_FIELDS': ';'.join(TEAM_FIELDS),
    'STATUS_OPTIONS': 'New;Contacted;In Progress;Waiting;Done;Lost',
    'PROTECT_NON_EDITABLE': 'YES',
    'DAILY_OVERWRITE_OWNER': 'YES',
    # Essential passthrough columns
    'ESSENTIAL_BY_HEADER_COLOR': 'NO',
    'ESSENTIAL_COLUMNS': '',
    'ESSENTIAL_COLOR_HEX': DEFAULT_COLOR_HEX,
    'COLOR_TOLERANCE': str(DEFAULT_COLOR_TOLERANCE),
    # Row filter
    'IGNORE_TEXT': '',
    # Snapshot target headers
    'PREV_PERIOD_FLAG_FIELD': DEFAULT_FLAG_FIELD,
    'PREV_PERIOD_TIER_FIELD': DEFAULT_TIER_FIELD,
}

TRUE_VALUES = {'YES', 'Y', 'TRUE', '1'}
FALSE_VALUES = {'NO', 'N', 'FALSE', '0'}


def _text(value):
    if value is None:
        return ''
    return str(value).strip()


def parse_flag(value, default):
    text = _text(value).upper()
    if text in TRUE_VALUES:
        return True
    if text in FALSE_VALUES:
        return False
    return default


def parse_list(value):
    """Splits a semicolon-delimited setting, dropping blank entries."""
    return [part.strip() for part in _text(value).split(';') if part.strip()]


def parse_color_hex(value, default=DEFAULT_COLOR_HEX):
    text = _text(value).lstrip('#').upper()
    if len(text) != 6:
        return default
    try:
        int(text, 16)
    except ValueError:
        return default
    return '#' + text


def parse_tolerance(value, default=DEFAULT_COLOR_TOLERANCE):
    try:
        tolerance = int(float(_text(value)))
    except (ValueError, OverflowError):
        return default
    return max(0, min(255, tolerance))


@dataclass
class SyncSettings:
    """Parsed run settings, built once per run and handed to every step."""
    map_id: str = RECORD_ID
    map_owner: str = OWNER
    map_subject: str = SUBJECT
    map_created_at: str = CREATED_AT
    map_priority: str = PRIORITY
    editable_fields: list = field(default_factory=lambda: list(TEAM_FIELDS))
    status_options: list = field(default_factory=list)
    protect_non_editable: bool = True
    overwrite_owner: bool = True
    essential_by_header_color: bool = False
    essential_columns: list = field(default_factory=list)
    essential_color_hex: str = DEFAULT_COLOR_HEX
    color_tolerance: int = DEFAULT_COLOR_TOLERANCE
    ignore_text: str = ''
    prev_period_flag_field: str = DEFAULT_FLAG_FIELD
    prev_period_tier_field: str = DEFAULT_TIER_FIELD

    @classmethod
    def from_mapping(cls, mapping=None):
        """
        Builds settings from a flat KEY -> value mapping.
        Missing keys take their value from DEFAULT_SETTINGS.
        """
        raw = dict(DEFAULT_SETTINGS)
        for key, value in (mapping or {}).items():
            raw[_text(key).upper()] = value

        return cls(
            map_id=_text(raw['MAP_ID']) or RECORD_ID,
            map_owner=_text(raw['MAP_OWNER']) or OWNER,
            map_subject=_text(raw['MAP_SUBJECT']) or SUBJECT,
            map_created_at=_text(raw['MAP_CREATED_AT']) or CREATED_AT,
            map_priority=_text(raw['MAP_PRIORITY']) or PRIORITY,
            editable_fields=parse_list(raw['EDITABLE_FIELDS']),
            status_options=parse_list(raw['STATUS_OPTIONS']),
            protect_non_editable=parse_flag(raw['PROTECT_NON_EDITABLE'], True),
            overwrite_owner=parse_flag(raw['DAILY_OVERWRITE_OWNER'], True),
            essential_by_header_color=parse_flag(raw['ESSENTIAL_BY_HEADER_COLOR'], False),
            essential_columns=parse_list(raw['ESSENTIAL_COLUMNS']),
            essential_color_hex=parse_color_hex(raw['ESSENTIAL_COLOR_HEX']),
            color_tolerance=parse_tolerance(raw['COLOR_TOLERANCE']),
            ignore_text=_text(raw['IGNORE_TEXT']),
            prev_period_flag_field=_text(raw['PREV_PERIOD_FLAG_FIELD']) or DEFAULT_FLAG_FIELD,
            prev_period_tier_field=_text(raw['PREV_PERIOD_TIER_FIELD']) or DEFAULT_TIER_FIELD,
        )

    def header_overrides(self):
        return {
            FIELD_ID: self.map_id,
            FIELD_OWNER: self.map_owner,
            FIELD_SUBJECT: self.map_subject,
            FIELD_CREATED_AT: self.map_created_at,
            FIELD_PRIORITY: self.map_priority,
        }

    def history_headers(self):
        """Canonical minimum header set of the history sheet, in order."""
        return ([RECORD_ID, OWNER] + TEAM_FIELDS +
                [self.prev_period_flag_field, self.prev_period_tier_field, UPDATED_AT])
