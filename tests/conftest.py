"""Shared fixtures: settings helpers and a fake Smartsheet client."""

import itertools

import pytest

from config import SyncSettings


class FakeColumn:
    def __init__(self, column_id, title, index):
        self.id = column_id
        self.title = title
        self.index = index


class FakeCell:
    def __init__(self, column_id, value):
        self.column_id = column_id
        self.value = value


class FakeRow:
    def __init__(self, row_id, cells):
        self.id = row_id
        self.cells = cells

    def get_column(self, column_id):
        for cell in self.cells:
            if cell.column_id == column_id:
                return cell
        return None


class FakeSheet:
    def __init__(self, sheet_id, name):
        self.id = sheet_id
        self.name = name
        self.columns = []
        self.rows = []


class FakeResult:
    def __init__(self, result):
        self.result = result


class FakeSheets:
    """Implements the handful of Sheets calls the sync uses, in memory."""

    def __init__(self):
        self.sheets = {}
        self.calls = []
        self._ids = itertools.count(1000)

    def create(self, sheet_id, name, headers, rows=()):
        sheet = FakeSheet(sheet_id, name)
        for index, title in enumerate(headers):
            sheet.columns.append(FakeColumn(next(self._ids), title, index))
        for values in rows:
            cells = [FakeCell(column.id, value) for column, value in zip(sheet.columns, values)]
            sheet.rows.append(FakeRow(next(self._ids), cells))
        self.sheets[sheet_id] = sheet
        return sheet

    def table(self, sheet_id):
        sheet = self.sheets[sheet_id]
        headers = [column.title for column in sheet.columns]
        rows = []
        for row in sheet.rows:
            cells = [row.get_column(column.id) for column in sheet.columns]
            rows.append([cell.value if cell else None for cell in cells])
        return headers, rows

    def get_sheet(self, sheet_id, **kwargs):
        self.calls.append(('get_sheet', sheet_id))
        if sheet_id not in self.sheets:
            raise RuntimeError(f"Sheet {sheet_id} not found")
        return self.sheets[sheet_id]

    def add_rows(self, sheet_id, rows):
        self.calls.append(('add_rows', sheet_id, len(rows)))
        sheet = self.sheets[sheet_id]
        added = []
        for row in rows:
            new_row = FakeRow(next(self._ids), [FakeCell(cell.column_id, cell.value) for cell in row.cells])
            sheet.rows.append(new_row)
            added.append(new_row)
        return FakeResult(added)

    def update_rows(self, sheet_id, rows):
        self.calls.append(('update_rows', sheet_id, len(rows)))
        sheet = self.sheets[sheet_id]
        by_id = {row.id: row for row in sheet.rows}
        for row in rows:
            target = by_id[row.id]
            for cell in row.cells:
                existing = target.get_column(cell.column_id)
                if existing is None:
                    target.cells.append(FakeCell(cell.column_id, cell.value))
                else:
                    existing.value = cell.value
        return FakeResult(rows)

    def delete_rows(self, sheet_id, row_ids):
        self.calls.append(('delete_rows', sheet_id, len(row_ids)))
        sheet = self.sheets[sheet_id]
        doomed = set(row_ids)
        sheet.rows = [row for row in sheet.rows if row.id not in doomed]
        return FakeResult(list(row_ids))

    def add_columns(self, sheet_id, columns):
        self.calls.append(('add_columns', sheet_id, len(columns)))
        sheet = self.sheets[sheet_id]
        for column in columns:
            sheet.columns.append(FakeColumn(next(self._ids), column.title, len(sheet.columns)))
        return FakeResult(columns)


class FakeSmartsheet:
    def __init__(self):
        self.Sheets = FakeSheets()


@pytest.fixture
def smart():
    return FakeSmartsheet()


@pytest.fixture
def settings():
    return SyncSettings.from_mapping()
