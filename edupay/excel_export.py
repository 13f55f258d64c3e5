"""
Excel export of the daily record and monthly summary reports
"""
from __future__ import annotations

from pathlib import Path
from typing import Union

from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter

from .aggregation import (
    daily_cash_sheet,
    daily_history,
    daily_kpay_list,
    monthly_summary,
    sheet_level_matrix,
)
from .constants import SHEET_COUNT
from .levels import OTHER_BUCKET, SUMMARY_BUCKETS
from .models import AppData
from .utils import format_month_year

AMOUNT_FORMAT = "#,##0"


def _style_header(ws, row=1):
    """Apply header styling to worksheet row"""
    header_font = Font(bold=True, color="FFFFFF")
    fill = PatternFill("solid", fgColor="0EA5E9")
    align = Alignment(horizontal="center", vertical="center")
    thin = Side(style="thin", color="A0A0A0")
    border = Border(left=thin, right=thin, top=thin, bottom=thin)
    for cell in ws[row]:
        cell.font = header_font
        cell.fill = fill
        cell.alignment = align
        cell.border = border


def _style_total(ws, row):
    for cell in ws[row]:
        cell.font = Font(bold=True)
        cell.fill = PatternFill("solid", fgColor="E0F2FE")


def _autosize_columns(ws, min_width=8, max_width=40):
    """Auto-size columns based on content"""
    for col in range(1, ws.max_column + 1):
        letter = get_column_letter(col)
        max_len = 0
        for cell in ws[letter]:
            if cell.value is None:
                continue
            max_len = max(max_len, len(str(cell.value)))
        ws.column_dimensions[letter].width = max(min_width, min(max_width, max_len + 2))


def _amount_columns(ws, first_row, columns):
    for r in range(first_row, ws.max_row + 1):
        for c in columns:
            ws.cell(r, c).number_format = AMOUNT_FORMAT


def _with_currency(label: str, currency: str) -> str:
    return f"{label} ({currency})" if currency else label


def _titled(text: str, school_name: str) -> str:
    return f"{school_name}: {text}" if school_name else text


def export_daily_record(
    data: AppData,
    filepath: Union[str, Path],
    date: str,
    sheet_no: int,
    school_name: str = "",
    currency: str = "",
) -> None:
    """
    Export one day's records:
    - Cash: the collection sheet ``sheet_no`` by level family
    - K-pay: every K-pay transfer of the day
    - History: every payment of the day
    """
    wb = Workbook()
    wb.remove(wb.active)
    wb.properties.title = _titled(f"Daily record {date} sheet {sheet_no}", school_name)

    cash = daily_cash_sheet(data.students, data.payments, date, sheet_no)
    ws = wb.create_sheet("Cash")
    ws.append(["Level", "Students", _with_currency("Cash", currency)])
    _style_header(ws, 1)
    ws.freeze_panes = "A2"
    for family, t in cash.families().items():
        if family == OTHER_BUCKET and not t.count:
            continue
        ws.append([family, t.count, t.amount])
    if cash.unassigned.count:
        ws.append(["(deleted students)", cash.unassigned.count, cash.unassigned.amount])
    ws.append(["TOTAL", cash.payment_count, cash.total_cash])
    _style_total(ws, ws.max_row)
    _amount_columns(ws, 2, [3])
    _autosize_columns(ws)

    kpay = daily_kpay_list(data.students, data.payments, date, sort=True)
    ws = wb.create_sheet("K-pay")
    ws.append(["No", "Name", "Class", "Schedule", "Date", _with_currency("Amount", currency)])
    _style_header(ws, 1)
    ws.freeze_panes = "A2"
    for i, r in enumerate(kpay.rows, start=1):
        ws.append([i, r.name, r.class_name, r.schedule, r.date, r.amount])
    ws.append(["TOTAL", kpay.count, "", "", "", kpay.total_amount])
    _style_total(ws, ws.max_row)
    _amount_columns(ws, 2, [6])
    _autosize_columns(ws)

    ws = wb.create_sheet("History")
    ws.append(
        ["Name", "Burmese Name", "Class", "Schedule", "Method", "Sheet", _with_currency("Amount", currency), "Notes"]
    )
    _style_header(ws, 1)
    ws.freeze_panes = "A2"
    for r in daily_history(data.students, data.payments, date):
        ws.append([r.name, r.burmese_name, r.class_name, r.schedule, r.method, r.sheet_no, r.amount, r.notes])
    _amount_columns(ws, 2, [7])
    _autosize_columns(ws)

    wb.save(filepath)


def export_monthly_summary(
    data: AppData,
    filepath: Union[str, Path],
    month: str,
    sheet_count: int = SHEET_COUNT,
    school_name: str = "",
    currency: str = "",
) -> None:
    """
    Export a month's summary reports:
    - Final summary: receipts per level bucket, cash and K-pay
    - TSL: cash receipts counted per sheet and level bucket
    - TIL: cash amounts per sheet and level bucket
    """
    wb = Workbook()
    wb.remove(wb.active)

    summary = monthly_summary(data.students, data.payments, month)
    ws = wb.create_sheet("Final summary")
    ws.append([_titled(f"Monthly summary {format_month_year(month) or month}", school_name)])
    ws.cell(1, 1).font = Font(bold=True, size=13)
    ws.append(["Method"] + SUMMARY_BUCKETS + ["Students", _with_currency("Amount", currency)])
    _style_header(ws, 2)
    for label, tally in (("Cash", summary.cash), ("K-pay", summary.kpay)):
        ws.append([label] + [tally.counts.get(b, 0) for b in SUMMARY_BUCKETS] + [tally.total_count, tally.total_amount])
    ws.append(
        ["Gross"]
        + [summary.cash.counts.get(b, 0) + summary.kpay.counts.get(b, 0) for b in SUMMARY_BUCKETS]
        + [summary.gross_count, summary.gross_amount]
    )
    _style_total(ws, ws.max_row)
    _amount_columns(ws, 3, [len(SUMMARY_BUCKETS) + 3])
    _autosize_columns(ws)

    matrix = sheet_level_matrix(data.students, data.payments, month, sheet_count)
    for title, attr in (("TSL", "count"), ("TIL", "amount")):
        ws = wb.create_sheet(title)
        ws.append(["Sheet"] + SUMMARY_BUCKETS + ["Total"])
        _style_header(ws, 1)
        ws.freeze_panes = "B2"
        for sheet in matrix.sheets:
            cells = [getattr(matrix.cell(sheet, b), attr) for b in SUMMARY_BUCKETS]
            ws.append([sheet] + cells + [sum(cells)])
        columns = [getattr(matrix.column_total(b), attr) for b in SUMMARY_BUCKETS]
        ws.append(["TOTAL"] + columns + [sum(columns)])
        _style_total(ws, ws.max_row)
        if attr == "amount":
            _amount_columns(ws, 2, range(2, len(SUMMARY_BUCKETS) + 3))
        _autosize_columns(ws)

    wb.save(filepath)
