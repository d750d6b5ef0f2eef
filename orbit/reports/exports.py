"""
CSV and Excel renditions of a ReportData
"""
import csv

from django.http import HttpResponse
from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter

from .data import _cell

XLSX_CONTENT_TYPE = 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'
HEADER_FILL = PatternFill(start_color='366092', end_color='366092', fill_type='solid')
HEADER_FONT = Font(bold=True, color='FFFFFF')


def write_report_csv(report, stream):
    """
    One block per table: the table name and header line (quoted only where
    needed), every row with all cells quoted, then a blank line.
    """
    writer = csv.writer(stream, quoting=csv.QUOTE_ALL, lineterminator='\n')
    header_writer = csv.writer(stream, quoting=csv.QUOTE_MINIMAL, lineterminator='\n')
    for name, table in report.tables.items():
        header_writer.writerow([name])
        header_writer.writerow(table.headers)
        for row in table.rows:
            writer.writerow([_cell(value) for value in row])
        stream.write('\n')


def export_csv(report):
    response = HttpResponse(content_type='text/csv; charset=utf-8')
    response['Content-Disposition'] = f'attachment; filename="{report.filename("csv")}"'
    response.write('﻿')
    write_report_csv(report, response)
    return response


def _sheet_title(name, used):
    # Excel sheet titles: max 31 chars, no []:*?/\ and unique per workbook
    title = ''.join(ch for ch in name if ch not in '[]:*?/\\')[:31] or 'Sheet'
    base, counter = title, 2
    while title in used:
        suffix = f" ({counter})"
        title = base[:31 - len(suffix)] + suffix
        counter += 1
    used.add(title)
    return title


def _write_header(ws, headers):
    for col_num, header in enumerate(headers, 1):
        cell = ws.cell(row=1, column=col_num)
        cell.value = header
        cell.fill = HEADER_FILL
        cell.font = HEADER_FONT
        cell.alignment = Alignment(horizontal='center')


def _autosize(ws, column_count):
    for col_num in range(1, column_count + 1):
        letter = get_column_letter(col_num)
        longest = max((len(str(cell.value)) for cell in ws[letter] if cell.value is not None), default=0)
        ws.column_dimensions[letter].width = min(max(15, longest + 2), 60)


def build_workbook(report):
    wb = Workbook()
    ws = wb.active
    ws.title = 'Summary'
    used = {'Summary'}

    meta = report.metadata
    _write_header(ws, ['Field', 'Value'])
    info = [
        ('Report', meta.title),
        ('Subtitle', meta.subtitle),
        ('Prepared by', meta.prepared_by),
        ('Prepared for', meta.prepared_for),
        ('Period', meta.date_range),
        ('Generated', meta.created_at.strftime('%Y-%m-%d %H:%M')),
    ]
    info.extend((label, _cell(value)) for label, value in report.summary_stats.items())
    for row_num, (label, value) in enumerate(info, 2):
        ws.cell(row=row_num, column=1, value=label).font = Font(bold=True)
        ws.cell(row=row_num, column=2, value=value)
    _autosize(ws, 2)

    for name, table in report.tables.items():
        sheet = wb.create_sheet(title=_sheet_title(name, used))
        _write_header(sheet, table.headers)
        for row_num, row in enumerate(table.rows, 2):
            for col_num, value in enumerate(row, 1):
                sheet.cell(row=row_num, column=col_num, value=value if isinstance(value, (int, float)) else _cell(value))
        _autosize(sheet, len(table.headers))
    return wb


def export_xlsx(report):
    response = HttpResponse(content_type=XLSX_CONTENT_TYPE)
    response['Content-Disposition'] = f'attachment; filename="{report.filename("xlsx")}"'
    build_workbook(report).save(response)
    return response
