"""
loaders/sheets_store.py — Google Sheets backend for the tabular store.

Each table is a worksheet whose first row holds the headers. Data rows
start on sheet row 2, so StoreRow.index == sheet row number - 2.

Reads go through the Sheets v4 values API in bounded row windows up to the
worksheet's grid row count, so large tables are never truncated by a
single-request limit. Deletes remove one grid row at a time via
batchUpdate/deleteDimension; callers delete from the highest index down.

Usage:
    from statdash_shared.db import build_sheets_service

    store = GoogleSheetsStore(build_sheets_service(settings), settings.google_sheet_id)
    rows = await store.get_all_rows("Data")
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

import structlog

from statdash_pipeline.loaders.store import StoreRow, iter_batches

log = structlog.get_logger(__name__)

# Values are written as if typed by a user, so numbers and dates are parsed
# by the sheet the same way the dashboard's own writes are.
VALUE_INPUT_OPTION = "USER_ENTERED"


def column_letter(n: int) -> str:
    """1 → A, 26 → Z, 27 → AA."""
    if n < 1:
        raise ValueError(f"column number must be >= 1, got {n}")
    letters = ""
    while n:
        n, rem = divmod(n - 1, 26)
        letters = chr(65 + rem) + letters
    return letters


def _quote(table: str) -> str:
    return "'" + table.replace("'", "''") + "'"


def _cell(value: Any) -> Any:
    return "" if value is None else value


class GoogleSheetsStore:
    """TabularStore backed by one Google spreadsheet."""

    def __init__(self, service: Any, spreadsheet_id: str, *, page_size: int = 1000) -> None:
        self._service = service
        self._spreadsheet_id = spreadsheet_id
        self._page_size = page_size
        self._sheet_ids: dict[str, int] = {}
        self._log = log.bind(spreadsheet_id=spreadsheet_id)

    # ------------------------------------------------------------------
    # Sheets API helpers
    # ------------------------------------------------------------------

    def _values(self) -> Any:
        return self._service.spreadsheets().values()

    def _sheet_properties(self, table: str) -> dict[str, Any]:
        spreadsheet = (
            self._service.spreadsheets()
            .get(
                spreadsheetId=self._spreadsheet_id,
                fields="sheets(properties(sheetId,title,gridProperties(rowCount)))",
            )
            .execute()
        )
        for sheet in spreadsheet.get("sheets", []):
            props = sheet.get("properties", {})
            if props.get("title") == table:
                self._sheet_ids[table] = props["sheetId"]
                return props
        raise KeyError(f"Sheet '{table}' not found in spreadsheet {self._spreadsheet_id}")

    # ------------------------------------------------------------------
    # TabularStore interface
    # ------------------------------------------------------------------

    async def load_headers(self, table: str) -> list[str]:
        result = (
            self._values()
            .get(spreadsheetId=self._spreadsheet_id, range=f"{_quote(table)}!1:1")
            .execute()
        )
        values = result.get("values", [])
        return [str(h) for h in values[0]] if values else []

    async def get_all_rows(self, table: str) -> list[StoreRow]:
        headers = await self.load_headers(table)
        if not headers:
            return []

        row_count = int(
            self._sheet_properties(table).get("gridProperties", {}).get("rowCount", 0)
        )
        last_col = column_letter(len(headers))
        rows: list[StoreRow] = []
        start = 2
        windows = 0

        while start <= row_count:
            end = min(start + self._page_size - 1, row_count)
            result = (
                self._values()
                .get(
                    spreadsheetId=self._spreadsheet_id,
                    range=f"{_quote(table)}!A{start}:{last_col}{end}",
                )
                .execute()
            )
            windows += 1
            for offset, raw in enumerate(result.get("values", [])):
                padded = list(raw) + [""] * (len(headers) - len(raw))
                rows.append(
                    StoreRow(
                        table=table,
                        index=start - 2 + offset,
                        values=dict(zip(headers, padded)),
                    )
                )
            start = end + 1

        self._log.debug("sheet_rows_read", table=table, rows=len(rows), windows=windows)
        return rows

    async def add_rows(
        self, table: str, rows: Sequence[Mapping[str, Any]], chunk_size: int
    ) -> int:
        if not rows:
            return 0

        headers = await self.load_headers(table)
        if not headers:
            headers = list(rows[0].keys())
            (
                self._values()
                .update(
                    spreadsheetId=self._spreadsheet_id,
                    range=f"{_quote(table)}!A1",
                    valueInputOption="RAW",
                    body={"values": [headers]},
                )
                .execute()
            )
            self._log.info("sheet_header_written", table=table, headers=headers)

        unknown = {key for row in rows for key in row} - set(headers)
        if unknown:
            self._log.warning("columns_not_in_sheet", table=table, columns=sorted(unknown))

        written = 0
        for batch in iter_batches(rows, chunk_size):
            values = [[_cell(row.get(h)) for h in headers] for row in batch]
            (
                self._values()
                .append(
                    spreadsheetId=self._spreadsheet_id,
                    range=f"{_quote(table)}!A1",
                    valueInputOption=VALUE_INPUT_OPTION,
                    insertDataOption="INSERT_ROWS",
                    body={"values": values},
                )
                .execute()
            )
            written += len(batch)
            self._log.debug("sheet_rows_appended", table=table, batch_size=len(batch))
        return written

    async def delete_row(self, row: StoreRow) -> None:
        sheet_id = self._sheet_ids.get(row.table)
        if sheet_id is None:
            sheet_id = self._sheet_properties(row.table)["sheetId"]
        grid_index = row.index + 1  # header occupies grid row 0
        (
            self._service.spreadsheets()
            .batchUpdate(
                spreadsheetId=self._spreadsheet_id,
                body={
                    "requests": [
                        {
                            "deleteDimension": {
                                "range": {
                                    "sheetId": sheet_id,
                                    "dimension": "ROWS",
                                    "startIndex": grid_index,
                                    "endIndex": grid_index + 1,
                                }
                            }
                        }
                    ]
                },
            )
            .execute()
        )

    async def update_row(self, row: StoreRow, fields: Mapping[str, Any]) -> None:
        headers = await self.load_headers(row.table)
        merged = {**row.values, **{k: v for k, v in fields.items() if k in headers}}
        (
            self._values()
            .update(
                spreadsheetId=self._spreadsheet_id,
                range=f"{_quote(row.table)}!A{row.index + 2}",
                valueInputOption=VALUE_INPUT_OPTION,
                body={"values": [[_cell(merged.get(h)) for h in headers]]},
            )
            .execute()
        )
