import csv
import io
from collections.abc import Iterable
from typing import Any

from openpyxl import Workbook


def csv_bytes(*, header: list[str], rows: Iterable[Iterable[Any]]) -> bytes:
    out = io.StringIO()
    writer = csv.writer(out)
    writer.writerow(header)
    for row in rows:
        writer.writerow(list(row))
    return out.getvalue().encode("utf-8")


def xlsx_bytes(*, sheet_name: str, header: list[str], rows: Iterable[Iterable[Any]]) -> bytes:
    wb = Workbook()
    ws = wb.active
    ws.title = sheet_name
    ws.append(header)
    for row in rows:
        ws.append(list(row))
    ws.freeze_panes = "A2"

    out = io.BytesIO()
    wb.save(out)
    return out.getvalue()
