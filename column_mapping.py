# column_mapping.py

from config import (
    FIELD_ID, FIELD_OWNER, FIELD_SUBJECT, FIELD_CREATED_AT, FIELD_PRIORITY,
    CANONICAL_FIELDS, RECORD_ID, OWNER, SUBJECT, CREATED_AT, PRIORITY, UPDATED_AT, TEAM_FIELDS,
)

# Fallback header names tried after the configured MAP_* header
FIELD_SYNONYMS = {
    FIELD_ID: [RECORD_ID, 'ID', 'Record ID', 'ACCOUNT_ID', 'LEAD_ID', 'Row ID'],
    FIELD_OWNER: [OWNER, 'Owner', 'ASSIGNED_TO', 'Assigned To', 'Account Owner'],
    FIELD_SUBJECT: [SUBJECT, 'NAME', 'Name', 'ACCOUNT_NAME', 'Account Name', 'Company'],
    FIELD_CREATED_AT: [CREATED_AT, 'CREATED', 'Created', 'Created Date', 'DATE'],
    FIELD_PRIORITY: [PRIORITY, 'PRIORITY_SCORE', 'Priority', 'SCORE', 'Score'],
}


def header_positions(headers):
    """
    Maps each trimmed header title to its 1-based column position.
    When a title repeats, the first occurrence wins.
    """
    positions = {}
    for index, header in enumerate(headers, start=1):
        title = str(header).strip() if header is not None else ''
        if title and title not in positions:
            positions[title] = index
    return positions


def resolve_columns(headers, settings):
    """
    Resolves every canonical field to a 1-based column position.

    Resolution order per field: the configured MAP_* header, then the
    built-in synonyms. Fields that cannot be found map to None.
    """
    positions = header_positions(headers)
    overrides = settings.header_overrides()
    resolved = {}
    for field_name in CANONICAL_FIELDS:
        candidates = [overrides.get(field_name)] + FIELD_SYNONYMS[field_name]
        resolved[field_name] = None
        for candidate in candidates:
            if candidate and candidate.strip() in positions:
                resolved[field_name] = positions[candidate.strip()]
                break
    return resolved


def fixed_board_columns(settings):
    return ([PRIORITY, OWNER, RECORD_ID, SUBJECT, CREATED_AT] + TEAM_FIELDS +
            [settings.prev_period_flag_field, settings.prev_period_tier_field, UPDATED_AT])


def _hex_to_rgb(hex_value):
    text = str(hex_value or '').strip().lstrip('#')
    if len(text) != 6:
        return None
    try:
        return tuple(int(text[i:i + 2], 16) for i in (0, 2, 4))
    except ValueError:
        return None


def headers_matching_color(header_colors, target_hex, tolerance):
    """
    Returns the headers whose colour is within `tolerance` of `target_hex`
    on each of the R, G and B channels. Headers with no parseable colour
    never match.
    """
    target = _hex_to_rgb(target_hex)
    if target is None:
        return []
    matches = []
    for header, color in header_colors.items():
        rgb = _hex_to_rgb(color)
        if rgb is None:
            continue
        if all(abs(channel - wanted) <= tolerance for channel, wanted in zip(rgb, target)):
            matches.append(header)
    return matches


def resolve_essential_columns(headers, settings, header_colors=None):
    """
    Resolves the essential passthrough columns.

    Args:
        headers: input header row
        settings: SyncSettings
        header_colors: optional {header: '#RRGGBB'} metadata from the host sheet

    Returns:
        Ordered list of (header_name, position). Names are deduplicated
        case-insensitively, fixed board columns are excluded and names
        without a matching input header are dropped.
    """
    names = list(settings.essential_columns)
    if settings.essential_by_header_color and header_colors:
        names.extend(headers_matching_color(
            header_colors, settings.essential_color_hex, settings.color_tolerance))

    excluded = {name.upper() for name in fixed_board_columns(settings)}
    by_lower = {}
    for title, position in header_positions(headers).items():
        by_lower.setdefault(title.lower(), (title, position))

    essential = []
    seen = set()
    for name in names:
        key = str(name).strip().lower()
        if not key or key in seen or key.upper() in excluded:
            continue
        seen.add(key)
        if key in by_lower:
            essential.append(by_lower[key])
    return essential
