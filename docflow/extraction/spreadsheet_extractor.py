import io

import openpyxl
import pandas as pd
from tabulate import tabulate

from docflow.extraction.base import BaseExtractor, is_ole2
from docflow.extraction.exceptions import ExtractionError


class SpreadsheetExtractor(BaseExtractor):
    """Renders every sheet as ``Sheet: <name>`` followed by a plain-text table.

    Workbooks in the legacy binary format (.xls) are read through pandas with
    the xlrd engine; everything else through openpyxl.
    """

    def extract(self, data: bytes, filename: str) -> str:
        if is_ole2(data):
            sheets = self._read_legacy(data, filename)
        else:
            sheets = self._read_workbook(data, filename)
        return "\n\n".join(self._render_sheet(name, rows) for name, rows in sheets)

    @staticmethod
    def _read_workbook(data: bytes, filename: str) -> list[tuple[str, list[list[object]]]]:
        try:
            workbook = openpyxl.load_workbook(io.BytesIO(data), data_only=True, read_only=True)
        except Exception as exc:
            raise ExtractionError(filename, f"Excel extraction failed: {exc}") from exc

        try:
            return [
                (name, [list(row) for row in workbook[name].iter_rows(values_only=True)])
                for name in workbook.sheetnames
            ]
        finally:
            workbook.close()

    @staticmethod
    def _read_legacy(data: bytes, filename: str) -> list[tuple[str, list[list[object]]]]:
        try:
            frames = pd.read_excel(io.BytesIO(data), sheet_name=None, header=None, engine="xlrd")
        except Exception as exc:
            raise ExtractionError(filename, f"Legacy Excel extraction failed: {exc}") from exc

        sheets = []
        for name, df in frames.items():
            df = df.astype(object).where(df.notna(), None)
            sheets.append((str(name), df.values.tolist()))
        return sheets

    @staticmethod
    def _render_sheet(name: str, rows: list[list[object]]) -> str:
        cleaned = [
            ["" if value is None else value for value in row]
            for row in rows
            if any(value is not None for value in row)
        ]
        table = tabulate(cleaned, tablefmt="plain") if cleaned else ""
        return f"Sheet: {name}\n{table}".rstrip()
