"""
PDF rendering for ReportData using the reportlab canvas.

Every page carries a header (report date, period) and a footer
("Page i of n", generation time, institute name). Tables flow across
pages and repeat their header row.
"""
import io

from reportlab.lib.colors import Color, HexColor, white
from reportlab.lib.pagesizes import A4
from reportlab.pdfbase.pdfmetrics import stringWidth
from reportlab.pdfgen import canvas

from .formatting import format_date, format_datetime

W, H = A4
MARGIN = 40
CONTENT_W = W - 2 * MARGIN
HEADER_H = 50
FOOTER_H = 40

FONT = 'Helvetica'
FONT_BOLD = 'Helvetica-Bold'

TABLE_HEADER_FILL = Color(41 / 255, 128 / 255, 185 / 255)
ALT_ROW_FILL = Color(240 / 255, 240 / 255, 240 / 255)
TEXT = HexColor('#333333')
MUTED = HexColor('#666666')
RULE = HexColor('#CCCCCC')

ROW_H = 18
CELL_PAD = 4


def fit_text(text, width, font=FONT, size=9):
    """Truncate text with an ellipsis so it fits within width"""
    text = '' if text is None else str(text)
    if stringWidth(text, font, size) <= width:
        return text
    while text and stringWidth(text + '...', font, size) > width:
        text = text[:-1]
    return text + '...'


class NumberedCanvas(canvas.Canvas):
    """Canvas that defers footers until the page count is known"""

    def __init__(self, *args, **kwargs):
        self.footer_owner = kwargs.pop('footer_owner', '')
        self.generated_on = kwargs.pop('generated_on', '')
        super().__init__(*args, **kwargs)
        self._saved_page_states = []

    def showPage(self):
        self._saved_page_states.append(dict(self.__dict__))
        self._startPage()

    def save(self):
        page_count = len(self._saved_page_states)
        for state in self._saved_page_states:
            self.__dict__.update(state)
            self.draw_footer(page_count)
            super().showPage()
        super().save()

    def draw_footer(self, page_count):
        self.saveState()
        self.setStrokeColor(RULE)
        self.setLineWidth(0.5)
        self.line(MARGIN, FOOTER_H, W - MARGIN, FOOTER_H)
        self.setFont(FONT, 8)
        self.setFillColor(MUTED)
        self.drawString(MARGIN, FOOTER_H - 14, f"Generated on: {self.generated_on}")
        self.drawCentredString(W / 2, FOOTER_H - 14, f"Page {self._pageNumber} of {page_count}")
        self.drawRightString(W - MARGIN, FOOTER_H - 14, f"© {self.footer_owner}")
        self.restoreState()


class ReportPDF:
    """Lays out a ReportData on A4 portrait pages"""

    def __init__(self, report):
        self.report = report
        self.buffer = io.BytesIO()
        meta = report.metadata
        self.c = NumberedCanvas(
            self.buffer,
            pagesize=A4,
            footer_owner=meta.prepared_by,
            generated_on=format_datetime(meta.created_at),
        )
        self.c.setTitle(meta.title)
        self.c.setAuthor(meta.prepared_by)
        self.y = H - MARGIN
        self.page_started = False

    # Page infrastructure
    def new_page(self):
        if self.page_started:
            self.c.showPage()
        self.page_started = True
        self._draw_header()
        self.y = H - MARGIN - HEADER_H

    def _draw_header(self):
        meta = self.report.metadata
        c = self.c
        c.saveState()
        c.setFont(FONT, 9)
        c.setFillColor(MUTED)
        top = H - MARGIN
        c.drawString(MARGIN, top - 10, meta.prepared_by)
        c.drawRightString(W - MARGIN, top - 10, f"Report Date: {format_date(meta.created_at)}")
        if meta.date_range:
            c.drawRightString(W - MARGIN, top - 22, f"Period: {meta.date_range}")
        c.setStrokeColor(RULE)
        c.setLineWidth(0.8)
        c.line(MARGIN, top - 30, W - MARGIN, top - 30)
        c.restoreState()

    def ensure_space(self, height):
        if self.y - height < FOOTER_H + 20:
            self.new_page()
            return True
        return False

    # Drawing primitives
    def text(self, value, x, font=FONT, size=10, color=TEXT, align='left', advance=None):
        c = self.c
        c.saveState()
        c.setFont(font, size)
        c.setFillColor(color)
        if align == 'center':
            c.drawCentredString(x, self.y, value)
        elif align == 'right':
            c.drawRightString(x, self.y, value)
        else:
            c.drawString(x, self.y, value)
        c.restoreState()
        if advance:
            self.y -= advance

    def wrapped(self, value, font=FONT, size=10, color=TEXT, leading=14):
        words = str(value).split()
        line = ''
        for word in words:
            candidate = f"{line} {word}".strip()
            if stringWidth(candidate, font, size) <= CONTENT_W:
                line = candidate
                continue
            self.ensure_space(leading)
            self.text(line, MARGIN, font, size, color, advance=leading)
            line = word
        if line:
            self.ensure_space(leading)
            self.text(line, MARGIN, font, size, color, advance=leading)

    # Sections
    def draw_title_block(self):
        meta = self.report.metadata
        self.y -= 10
        self.text(meta.title, MARGIN, FONT_BOLD, 18, advance=22)
        if meta.subtitle:
            self.text(meta.subtitle, MARGIN, FONT, 12, MUTED, advance=18)
        self.y -= 4
        if meta.prepared_by:
            self.text(f"Prepared by: {meta.prepared_by}", MARGIN, FONT, 10, advance=14)
        if meta.prepared_for:
            self.text(f"Prepared for: {meta.prepared_for}", MARGIN, FONT, 10, advance=14)
        if meta.notes:
            self.y -= 4
            self.wrapped(f"Note: {meta.notes}", FONT, 9, MUTED, leading=12)
        self.y -= 10

    def draw_summary(self):
        stats = list(self.report.summary_stats.items())
        if not stats:
            return
        self.ensure_space(40)
        self.text("Summary Statistics", MARGIN, FONT_BOLD, 13, advance=20)

        column_w = CONTENT_W / 2
        for index in range(0, len(stats), 2):
            self.ensure_space(16)
            for offset, (label, value) in enumerate(stats[index:index + 2]):
                x = MARGIN + offset * column_w
                label_text = fit_text(f"{label}:", column_w * 0.55, FONT_BOLD, 10)
                self.text(label_text, x, FONT_BOLD, 10)
                self.text(fit_text(value, column_w * 0.42, FONT, 10), x + column_w * 0.57, FONT, 10)
            self.y -= 16
        self.y -= 10

    def draw_table(self, name, table):
        headers = table.headers
        if not headers:
            return
        col_w = CONTENT_W / len(headers)

        self.ensure_space(30 + 2 * ROW_H)
        self.text(name, MARGIN, FONT_BOLD, 12, advance=8)
        self._draw_table_header(headers, col_w)

        if not table.rows:
            self.y -= ROW_H
            self.text("No data available for this period", MARGIN + CELL_PAD, FONT, 9, MUTED)
            self.y -= 8
        for index, row in enumerate(table.rows):
            if self.ensure_space(ROW_H):
                self._draw_table_header(headers, col_w)
            self.y -= ROW_H
            fill = ALT_ROW_FILL if index % 2 else white
            self._draw_row(row, col_w, FONT, TEXT, fill)
        self.y -= 20

    def _draw_table_header(self, headers, col_w):
        self.y -= ROW_H
        self._draw_row(headers, col_w, FONT_BOLD, white, TABLE_HEADER_FILL)

    def _draw_row(self, cells, col_w, font, color, fill):
        c = self.c
        c.saveState()
        c.setFillColor(fill)
        c.setStrokeColor(RULE)
        c.setLineWidth(0.4)
        for i in range(len(cells)):
            c.rect(MARGIN + i * col_w, self.y, col_w, ROW_H, fill=1, stroke=1)
        c.setFont(font, 8)
        c.setFillColor(color)
        for i, cell in enumerate(cells):
            c.drawString(MARGIN + i * col_w + CELL_PAD, self.y + 6, fit_text(cell, col_w - 2 * CELL_PAD, font, 8))
        c.restoreState()

    def render(self):
        self.new_page()
        self.draw_title_block()
        self.draw_summary()
        for name, table in self.report.tables.items():
            self.draw_table(name, table)
        self.c.showPage()
        self.c.save()
        return self.buffer.getvalue()


def render_report_pdf(report):
    """Render a ReportData to PDF bytes"""
    return ReportPDF(report).render()
